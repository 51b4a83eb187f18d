"""Shared fixtures: a SQLite database per test, a fake executor and resolver."""
import asyncio
import logging
from typing import Optional

import pytest
from sqlalchemy import event

from splitr.command.runner import Command, CommandRunner
from splitr.errors import DNSResolutionError, VPNServiceNotFoundError
from splitr.schema import Network, NetworkHostSetup, NetworkInfo
from splitr.storage import (
    Database,
    NetworkHostSetupStorage,
    NetworkHostStorage,
    NetworkStorage,
    TransactionManager,
)
from splitr.usecase import (
    NetworkHostSetupUseCase,
    NetworkHostUseCase,
    NetworkUseCase,
    Resolver,
)
from splitr.utils.audit_log import AUDIT_LOG_FILE, audit_logger, setup_audit_logging
from splitr.utils.logging_config import main_logger, perf_logger


class ScriptedRunner(CommandRunner):
    """Returns canned output per argv and records every command run."""

    def __init__(self, outputs: Optional[dict] = None):
        self.outputs = outputs or {}
        self.commands: list[Command] = []

    def set_output(self, argv: list[str], result) -> None:
        self.outputs[tuple(argv)] = result

    async def run(self, command: Command) -> list[str]:
        self.commands.append(command)
        result = self.outputs.get(tuple(command.argv()), "")
        if isinstance(result, Exception):
            raise result
        return result.split("\n")


class FakeExecutor:
    """Stands in for CommandExecutor in use-case tests.

    `current_vpn=None` means no L2TP service is connected. Any method name
    in `errors` raises the mapped exception instead of answering.
    """

    def __init__(
        self,
        current_vpn: Optional[str] = "Office",
        interface: str = "en0",
        service: str = "Wi-Fi",
        info: Optional[NetworkInfo] = None,
        vpn_services: Optional[list[str]] = None,
    ):
        self.current_vpn = current_vpn
        self.interface = interface
        self.service = service
        self.info = info or NetworkInfo(subnet_mask="255.255.255.0", router="10.0.0.1")
        self.vpn_services = vpn_services or ["Office", "Home"]
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.route_changes: list[tuple[str, list[NetworkHostSetup]]] = []
        self.route_delay = 0.0

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    async def get_default_network_interface(self) -> str:
        self._call("get_default_network_interface")
        return self.interface

    async def get_network_service_by_network_interface(self, network_interface: str) -> str:
        self._call("get_network_service_by_network_interface")
        return self.service

    async def get_network_info_by_network_service(self, network_service: str) -> NetworkInfo:
        self._call("get_network_info_by_network_service")
        return self.info

    async def set_network_additional_routes(
        self, network: Network, setups: list[NetworkHostSetup]
    ) -> None:
        self._call("set_network_additional_routes")
        await asyncio.sleep(self.route_delay)
        self.route_changes.append((network.name, list(setups)))

    async def list_vpn(self) -> list[str]:
        self._call("list_vpn")
        return list(self.vpn_services)

    async def get_current_vpn(self) -> str:
        self._call("get_current_vpn")
        if self.current_vpn is None:
            raise VPNServiceNotFoundError()
        return self.current_vpn

    async def open_in_finder(self, path: str) -> None:
        self._call("open_in_finder")


class StaticResolver(Resolver):
    """Resolves from a fixed table; unknown addresses fail like a DNS miss."""

    def __init__(self, table: Optional[dict[str, list[str]]] = None):
        self.table = table or {}
        self.lookups: list[str] = []
        self.delay = 0.0

    async def resolve_ipv4(self, address: str) -> list[str]:
        self.lookups.append(address)
        await asyncio.sleep(self.delay)
        if address not in self.table:
            raise DNSResolutionError(
                f"failed to lookup IP for address {address}: not found",
                address=address,
            )
        return list(self.table[address])


class StatementLog:
    """Collects SQL statements issued on an engine."""

    def __init__(self):
        self.statements: list[str] = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    def matching(self, verb: str, table: str) -> list[str]:
        return [
            s for s in self.statements
            if s.lstrip().upper().startswith(verb.upper()) and table in s
        ]

    def writes(self, table: str = "network_host_setups") -> list[str]:
        return self.matching("INSERT", table) + self.matching("DELETE", table)

    def clear(self) -> None:
        self.statements.clear()


@pytest.fixture
def db(tmp_path):
    database = Database.open(tmp_path / "data" / "splitr.db")
    yield database
    database.close()


@pytest.fixture
def statements(db):
    log = StatementLog()
    event.listen(db.engine, "before_cursor_execute", log)
    yield log
    event.remove(db.engine, "before_cursor_execute", log)


@pytest.fixture
def network_storage(db):
    return NetworkStorage(db)


@pytest.fixture
def host_storage(db):
    return NetworkHostStorage(db)


@pytest.fixture
def setup_storage(db):
    return NetworkHostSetupStorage(db)


@pytest.fixture
def tx(db):
    return TransactionManager(db)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def resolver():
    return StaticResolver({
        "git.example.com": ["10.0.0.5"],
        "wiki.example.com": ["10.0.0.6", "10.0.0.7"],
        "10.1.2.3": ["10.1.2.3"],
    })


@pytest.fixture
def host_setup_usecase(tx, executor, network_storage, host_storage, setup_storage, resolver):
    return NetworkHostSetupUseCase(
        tx, executor, network_storage, host_storage, setup_storage, resolver=resolver
    )


@pytest.fixture
def network_usecase(tx, executor, network_storage, host_setup_usecase):
    return NetworkUseCase(tx, executor, network_storage, host_setup_usecase)


@pytest.fixture
def host_usecase(tx, host_setup_usecase, network_storage, host_storage):
    return NetworkHostUseCase(tx, host_setup_usecase, network_storage, host_storage)


@pytest.fixture
def office(network_storage):
    return network_storage.add(Network(name="Office"))


@pytest.fixture
def audit_log(tmp_path):
    """Route the audit logger to a temporary file for the test."""
    log_dir = tmp_path / "logs"
    setup_audit_logging(log_dir)
    yield log_dir / AUDIT_LOG_FILE
    for handler in list(audit_logger.handlers):
        handler.close()
        audit_logger.removeHandler(handler)
    audit_logger.propagate = True


@pytest.fixture
def clean_logging():
    """Undo handlers installed by setup_logging."""
    yield
    for logger in (main_logger, perf_logger):
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
    perf_logger.propagate = True
