#!/usr/bin/env python3
"""Command-line interface for splitr.

Usage:
    splitr networks list|add NAME|delete ID
    splitr hosts list NETWORK_ID | add NETWORK_ID ADDRESS [-d TEXT] | delete HOST_ID
    splitr hosts export NETWORK_ID [-o FILE] | import NETWORK_ID FILE
    splitr sync NETWORK_ID
    splitr reset NETWORK_ID
    splitr vpn list|current
    splitr history [--network NAME] [-n N]
    splitr reveal-db

Environment variables: see splitr.config.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .app import App, create_app
from .config import Settings
from .errors import SplitrError, VPNServiceNotFoundError
from .schema import ListNetworkHostFilter
from .utils.audit_log import AUDIT_LOG_FILE, get_recent_changes, setup_audit_logging
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="splitr",
        description="Route selected hosts through the connected L2TP VPN",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    splitr networks add Office
    splitr hosts add 1 git.example.com -d "Internal git"
    splitr sync 1
""",
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log to stderr at debug level")

    sub = parser.add_subparsers(dest="command", required=True)

    networks = sub.add_parser("networks", help="Manage networks")
    networks_sub = networks.add_subparsers(dest="action", required=True)
    networks_sub.add_parser("list", help="List networks with active status")
    net_add = networks_sub.add_parser("add", help="Add a network named after a VPN service")
    net_add.add_argument("name")
    net_del = networks_sub.add_parser("delete", help="Reset routes and delete a network")
    net_del.add_argument("network_id", type=int)

    hosts = sub.add_parser("hosts", help="Manage hosts of a network")
    hosts_sub = hosts.add_subparsers(dest="action", required=True)
    host_list = hosts_sub.add_parser("list", help="List hosts of a network")
    host_list.add_argument("network_id", type=int)
    host_list.add_argument("--search", default="")
    host_add = hosts_sub.add_parser("add", help="Add a host and sync")
    host_add.add_argument("network_id", type=int)
    host_add.add_argument("address")
    host_add.add_argument("-d", "--description", default="")
    host_del = hosts_sub.add_parser("delete", help="Delete a host and sync")
    host_del.add_argument("host_id", type=int)
    host_export = hosts_sub.add_parser("export", help="Export hosts as JSON")
    host_export.add_argument("network_id", type=int)
    host_export.add_argument("-o", "--output", type=Path)
    host_import = hosts_sub.add_parser("import", help="Import hosts from JSON and sync")
    host_import.add_argument("network_id", type=int)
    host_import.add_argument("file", type=Path)

    sync = sub.add_parser("sync", help="Rebuild routes of a network")
    sync.add_argument("network_id", type=int)
    reset = sub.add_parser("reset", help="Clear routes of a network")
    reset.add_argument("network_id", type=int)

    vpn = sub.add_parser("vpn", help="Inspect L2TP VPN services")
    vpn_sub = vpn.add_subparsers(dest="action", required=True)
    vpn_sub.add_parser("list", help="List configured L2TP services")
    vpn_sub.add_parser("current", help="Show the connected L2TP service")

    history = sub.add_parser("history", help="Show recent route changes from the audit log")
    history.add_argument("--network", help="Only changes of this network name")
    history.add_argument("-n", "--limit", type=int, default=20)

    sub.add_parser("reveal-db", help="Show the database file in Finder")

    return parser


async def run_command(app: App, args: argparse.Namespace) -> int:
    """Dispatch one parsed command. Output goes to stdout."""
    if args.command == "networks":
        if args.action == "list":
            for item in await app.networks.list():
                marker = "*" if item.is_active else " "
                print(f"{marker} {item.network.id:4d}  {item.network.name}")
        elif args.action == "add":
            network = await app.networks.add(args.name)
            print(f"added network {network.id}: {network.name}")
        elif args.action == "delete":
            await app.networks.delete(args.network_id)
            print(f"deleted network {args.network_id}")

    elif args.command == "hosts":
        if args.action == "list":
            hosts = await app.network_hosts.list(ListNetworkHostFilter(
                network_ids=[args.network_id],
                search=args.search,
            ))
            for host in hosts:
                description = f"  ({host.description})" if host.description else ""
                print(f"{host.id:4d}  {host.address}{description}")
        elif args.action == "add":
            host = await app.network_hosts.add(args.network_id, args.address, args.description)
            print(f"added host {host.id}: {host.address}")
        elif args.action == "delete":
            await app.network_hosts.delete(args.host_id)
            print(f"deleted host {args.host_id}")
        elif args.action == "export":
            payload = await app.network_hosts.export_by_network_id(args.network_id)
            if args.output:
                args.output.write_text(payload.to_json(), encoding="utf-8")
                print(f"exported {len(payload.hosts)} hosts to {args.output}")
            else:
                print(payload.to_json())
        elif args.action == "import":
            data = args.file.read_text(encoding="utf-8")
            count = await app.network_hosts.import_by_network_id_from_json(args.network_id, data)
            print(f"imported {count} hosts")

    elif args.command == "sync":
        await app.network_host_setup.sync_by_network_id(args.network_id)
        print(f"synced network {args.network_id}")

    elif args.command == "reset":
        await app.network_host_setup.reset_by_network_id(args.network_id)
        print(f"reset network {args.network_id}")

    elif args.command == "vpn":
        if args.action == "list":
            for name in await app.networks.list_vpn_services():
                print(name)
        elif args.action == "current":
            try:
                print(await app.executor.get_current_vpn())
            except VPNServiceNotFoundError:
                print("no connected L2TP VPN")

    elif args.command == "history":
        records = get_recent_changes(
            app.settings.log_dir / AUDIT_LOG_FILE,
            network_name=args.network,
            limit=args.limit,
        )
        for record in records:
            status = "ok" if record.success else f"FAILED: {record.error}"
            print(f"{record.timestamp}  {record.network_name}  {record.operation}  "
                  f"{len(record.routes)} routes  {status}")

    elif args.command == "reveal-db":
        await app.executor.open_in_finder(str(app.settings.db_path))

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the splitr CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.load(args.config)
        if args.verbose:
            settings.log_level = "debug"
            settings.log_stderr = True

        setup_logging(settings)
        setup_audit_logging(settings.log_dir)
    except (SplitrError, OSError) as e:
        print(f"error: failed to initialize: {e}", file=sys.stderr)
        return 1

    try:
        app = create_app(settings)
    except Exception as e:
        logger.exception(f"failed to initialize: {e}")
        print(f"error: failed to initialize: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(run_command(app, args))
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
        return 130
    except SplitrError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
