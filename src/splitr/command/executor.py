"""Typed queries and mutations over macOS networking commands.

Each method issues exactly one OS process and interprets its output with
OutputParser. The tie-break rules differ between methods and are kept as
they are:

- default interface: last "interface" line wins
- network service: first matching descriptor/detail pair wins
- subnet mask / router: last match of each wins
- current VPN: first connected L2TP line wins
"""
import logging
from typing import Optional

from ..errors import NetworkInfoUnavailableError, VPNServiceNotFoundError
from ..schema import (
    Network,
    NetworkHostSetup,
    NetworkInfo,
    NetworkInterface,
    NetworkService,
    VPNService,
)
from ..utils.logging_config import timed
from .parser import OutputParser
from .runner import Command, CommandRunner, SubprocessRunner

logger = logging.getLogger(__name__)

CMD_SCUTIL = "scutil"
CMD_ROUTE = "route"
CMD_NETWORKSETUP = "networksetup"
CMD_OPEN = "open"

L2TP_NETWORK_TYPE = "[PPP:L2TP]"
L2TP_CONNECTED = "(Connected)"
ROUTE_INTERFACE = "interface"


class CommandExecutor:
    """Run `route`, `networksetup`, `scutil` and `open` for the use cases."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or SubprocessRunner()
        self.parser = OutputParser()

        self.list_vpn_args = ["--nc", "list"]
        self.get_default_interface_args = ["get", "default"]
        self.list_network_service_args = ["-listnetworkserviceorder"]
        self.get_network_service_info_args = ["-getinfo"]
        self.set_additional_routes_args = ["-setadditionalroutes"]
        self.open_in_finder_args = ["-R"]

    async def _execute(self, executable: str, args: list[str]) -> list[str]:
        return await self.runner.run(Command(executable, list(args)))

    @timed("get_default_interface")
    async def get_default_network_interface(self) -> NetworkInterface:
        """Interface of the default route, from `route get default`."""
        output = await self._execute(CMD_ROUTE, self.get_default_interface_args)

        network_interface = ""
        for line in output:
            if ROUTE_INTERFACE not in line:
                continue

            parts = line.strip().split(" ")
            if len(parts) < 2:
                continue

            network_interface = parts[1]

        if not network_interface:
            raise NetworkInfoUnavailableError(
                "failed to find network interface in command output",
                step="interface",
            )

        return network_interface

    @timed("get_network_service")
    async def get_network_service_by_network_interface(
        self,
        network_interface: NetworkInterface,
    ) -> NetworkService:
        """Service name whose detail line mentions the interface.

        `networksetup -listnetworkserviceorder` prints pairs such as:

            (1) Wi-Fi
            (Hardware Port: Wi-Fi, Device: en0)
        """
        output = await self._execute(CMD_NETWORKSETUP, self.list_network_service_args)

        for i, line in enumerate(output):
            if not line:
                continue
            if i + 1 >= len(output):
                continue

            detail_line = output[i + 1]
            if network_interface not in detail_line:
                continue

            if not self.parser.parse_interface_name(detail_line):
                continue

            service_name = self.parser.parse_network_service_name(line)
            if not service_name:
                continue

            return service_name

        raise NetworkInfoUnavailableError(
            f"failed to find network service by interface {network_interface}",
            step="service",
        )

    @timed("get_network_info")
    async def get_network_info_by_network_service(
        self,
        network_service: NetworkService,
    ) -> NetworkInfo:
        output = await self._execute(
            CMD_NETWORKSETUP,
            [*self.get_network_service_info_args, network_service],
        )

        info = NetworkInfo()
        for line in output:
            subnet_mask = self.parser.parse_subnet_mask(line)
            router = self.parser.parse_router(line)

            if subnet_mask:
                info.subnet_mask = subnet_mask
            if router:
                info.router = router

        if not info.subnet_mask or not info.router:
            raise NetworkInfoUnavailableError(
                "failed to find network info in command output",
                step="info",
            )

        return info

    @timed("set_additional_routes")
    async def set_network_additional_routes(
        self,
        network: Network,
        setups: list[NetworkHostSetup],
    ) -> None:
        """Replace the additional routes of the service named after the network.

        An empty list clears all additional routes.
        """
        args = [*self.set_additional_routes_args, network.name]
        for setup in setups:
            args.extend(setup.route_args())

        await self._execute(CMD_NETWORKSETUP, args)

    async def list_vpn(self) -> list[VPNService]:
        """Names of all configured L2TP VPN services."""
        output = await self._execute(CMD_SCUTIL, self.list_vpn_args)

        names = []
        for line in output:
            if L2TP_NETWORK_TYPE not in line:
                continue

            name = self.parser.parse_vpn_name(line)
            if not name:
                continue

            names.append(name)

        return names

    async def get_current_vpn(self) -> VPNService:
        """Name of the connected L2TP VPN.

        Raises:
            VPNServiceNotFoundError: If no L2TP service is connected
        """
        output = await self._execute(CMD_SCUTIL, self.list_vpn_args)

        for line in output:
            if L2TP_NETWORK_TYPE not in line or L2TP_CONNECTED not in line:
                continue

            name = self.parser.parse_vpn_name(line)
            if not name:
                continue

            return name

        raise VPNServiceNotFoundError()

    async def open_in_finder(self, path: str) -> None:
        await self._execute(CMD_OPEN, [*self.open_in_finder_args, path])
