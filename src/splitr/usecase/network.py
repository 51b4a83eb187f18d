"""Network management with active-VPN status."""
from __future__ import annotations

import logging
from typing import Optional

from ..command.executor import CommandExecutor
from ..errors import VPNServiceNotFoundError
from ..schema import ListNetworkFilter, Network, NetworkWithStatus, VPNService
from ..storage.network import NetworkStorage
from ..storage.transaction import TransactionManager
from .network_host_setup import NetworkHostSetupUseCase

logger = logging.getLogger(__name__)


class NetworkUseCase:

    def __init__(
        self,
        tx: TransactionManager,
        executor: CommandExecutor,
        network_storage: NetworkStorage,
        network_host_setup: NetworkHostSetupUseCase,
    ):
        self.tx = tx
        self.executor = executor
        self.network_storage = network_storage
        self.network_host_setup = network_host_setup

    async def add(self, name: str) -> Network:
        async def add_network() -> Network:
            return self.network_storage.add(Network(name=name))

        return await self.tx.do(add_network)

    async def list(self, filter: Optional[ListNetworkFilter] = None) -> list[NetworkWithStatus]:
        """Networks flagged with whether each is the connected VPN."""
        networks = self.network_storage.list(filter)

        try:
            current_vpn: Optional[VPNService] = await self.executor.get_current_vpn()
        except VPNServiceNotFoundError:
            current_vpn = None

        return [
            NetworkWithStatus(network=network, is_active=network.name == current_vpn)
            for network in networks
        ]

    async def delete(self, network_id: int) -> None:
        """Clear the network's live routes, then delete it with its hosts."""
        async def reset_and_delete() -> None:
            await self.network_host_setup.reset_by_network_id(network_id)
            self.network_storage.delete(network_id)

        await self.tx.do(reset_and_delete)
        logger.info(f"deleted network {network_id}")

    async def list_vpn_services(self) -> list[VPNService]:
        return await self.executor.list_vpn()
