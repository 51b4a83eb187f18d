"""Host management; every change re-syncs the network's routes.

Host writes and the following sync share one transaction, so a failed sync
(unresolvable host, route command failure) also undoes the host write.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..errors import NetworkHostAlreadyExistsError, NetworkHostNotFoundError
from ..schema import (
    ListNetworkHostFilter,
    NetworkHost,
    NetworkHostDTO,
    NetworkHostExport,
    utcnow,
)
from ..storage.network import NetworkStorage
from ..storage.network_host import NetworkHostStorage
from ..storage.transaction import TransactionManager
from .network_host_setup import NetworkHostSetupUseCase

logger = logging.getLogger(__name__)


class NetworkHostUseCase:

    def __init__(
        self,
        tx: TransactionManager,
        network_host_setup: NetworkHostSetupUseCase,
        network_storage: NetworkStorage,
        network_host_storage: NetworkHostStorage,
    ):
        self.tx = tx
        self.network_host_setup = network_host_setup
        self.network_storage = network_storage
        self.network_host_storage = network_host_storage

    async def add(self, network_id: int, address: str, description: str = "") -> NetworkHost:
        """Validate and store a host, then sync the network.

        Raises:
            InvalidAddressError: Address is not an IPv4 literal or hostname
            NetworkHostAlreadyExistsError: Address already on this network
        """
        host = NetworkHost.new(network_id, address, description)

        async def add_and_sync() -> NetworkHost:
            added = self.network_host_storage.add(host)
            await self.network_host_setup.sync_by_network_id(network_id)
            return added

        added = await self.tx.do(add_and_sync)
        logger.info(f"added host {added.address} to network {network_id}")
        return added

    async def list(self, filter: Optional[ListNetworkHostFilter] = None) -> list[NetworkHost]:
        return self.network_host_storage.list(filter)

    async def delete(self, host_id: int) -> None:
        """Delete a host and sync its network; unknown hosts are ignored."""
        try:
            host = self.network_host_storage.get(host_id)
        except NetworkHostNotFoundError:
            return

        async def delete_and_sync() -> None:
            self.network_host_storage.delete(host_id)
            await self.network_host_setup.sync_by_network_id(host.network_id)

        await self.tx.do(delete_and_sync)
        logger.info(f"deleted host {host.address} from network {host.network_id}")

    async def export_by_network_id(self, network_id: int) -> NetworkHostExport:
        """Hosts of a network without internal IDs."""
        self.network_storage.get(network_id)

        hosts = self.network_host_storage.list(ListNetworkHostFilter(network_ids=[network_id]))
        return NetworkHostExport(
            export_date=utcnow(),
            hosts=[
                NetworkHostDTO(address=host.address, description=host.description or "")
                for host in hosts
            ],
        )

    async def import_by_network_id_from_json(self, network_id: int, json_data: str) -> int:
        """Add hosts from an export document and sync once.

        Hosts already on the network are skipped, including ones inserted
        concurrently between the existence check and the insert.

        Returns:
            Number of hosts actually added
        """
        payload = NetworkHostExport.from_json(json_data)
        self.network_storage.get(network_id)

        async def import_and_sync() -> int:
            imported = 0
            for dto in payload.hosts:
                existing = self.network_host_storage.list(ListNetworkHostFilter(
                    network_ids=[network_id],
                    addresses=[dto.address],
                ))
                if existing:
                    continue

                host = NetworkHost.new(network_id, dto.address, dto.description)
                try:
                    self.network_host_storage.add(host)
                except NetworkHostAlreadyExistsError:
                    continue
                imported += 1

            if imported > 0:
                await self.network_host_setup.sync_by_network_id(network_id)
            return imported

        imported = await self.tx.do(import_and_sync)
        logger.info(f"imported {imported} of {len(payload.hosts)} hosts into network {network_id}")
        return imported
