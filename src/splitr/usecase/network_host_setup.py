"""Route reconciliation: make the OS additional routes of a network match its hosts.

Every call re-derives all state:

1. Load the network
2. (sync) List its hosts, discover the default network's subnet mask and
   router (interface -> service -> info) and resolve each host to IPv4
3. Ask the OS which L2TP VPN is connected
4. Stop unless that VPN is this network
5. In one transaction, stage the rows (delete + insert, sync only) and
   then fire `networksetup -setadditionalroutes`

The OS call has no compare-and-swap. Two concurrent runs for the same
network race and the last route change wins; stored rows and live routes
can briefly disagree. Discovery and DNS of concurrent runs overlap; the
staging and route change of each run take turns on the transaction lock.
Runs for different networks are independent because only the active
network ever changes routes.
"""
import logging
from typing import Optional

from ..command.executor import CommandExecutor
from ..errors import (
    CommandError,
    NetworkInfoUnavailableError,
    StorageBatchError,
    TransactionApplyError,
    VPNServiceNotFoundError,
)
from ..schema import ListNetworkHostFilter, Network, NetworkHostSetup, NetworkInfo
from ..storage.network import NetworkStorage
from ..storage.network_host import NetworkHostStorage
from ..storage.network_host_setup import NetworkHostSetupStorage
from ..storage.transaction import TransactionManager
from ..utils.audit_log import log_route_change
from ..utils.logging_config import timed_section
from .resolver import Resolver, SystemResolver

logger = logging.getLogger(__name__)


async def is_active_network(executor: CommandExecutor, network: Network) -> bool:
    """Whether `network` is the L2TP VPN currently connected.

    No connected VPN at all means no network is active. Any other failure
    to query the OS propagates.
    """
    try:
        current_vpn = await executor.get_current_vpn()
    except VPNServiceNotFoundError:
        logger.info(f"no connected VPN, skipping network {network.name!r}")
        return False

    if current_vpn != network.name:
        logger.info(
            f"network {network.name!r} is not the active VPN ({current_vpn!r}), skipping"
        )
        return False

    return True


def distinct_host_ids(setups: list[NetworkHostSetup]) -> list[int]:
    seen: dict[int, None] = {}
    for setup in setups:
        seen.setdefault(setup.network_host_id, None)
    return list(seen)


class NetworkHostSetupUseCase:
    """Sync and reset the additional routes of one network."""

    def __init__(
        self,
        tx: TransactionManager,
        executor: CommandExecutor,
        network_storage: NetworkStorage,
        network_host_storage: NetworkHostStorage,
        network_host_setup_storage: NetworkHostSetupStorage,
        resolver: Optional[Resolver] = None,
    ):
        self.tx = tx
        self.executor = executor
        self.network_storage = network_storage
        self.network_host_storage = network_host_storage
        self.network_host_setup_storage = network_host_setup_storage
        self.resolver = resolver or SystemResolver()

    async def sync_by_network_id(self, network_id: int) -> None:
        """Rebuild the stored and OS routes of a network from its hosts.

        A no-op when no VPN is connected or another network is active.

        Raises:
            NetworkNotFoundError: Unknown network
            NetworkInfoUnavailableError: Default network discovery failed
            DNSResolutionError: A host has no usable IPv4 address
            TransactionApplyError: Storing or applying routes failed
        """
        network = self.network_storage.get(network_id)

        async with timed_section("sync", subject=network.name):
            setups = await self.list_setups_by_network(network)

            if not await is_active_network(self.executor, network):
                return

            logger.info(f"syncing {len(setups)} routes for network {network.name!r}")
            await self._apply(network, setups, operation="sync", stage=True)

    async def reset_by_network_id(self, network_id: int) -> None:
        """Clear the OS additional routes of a network if it is active.

        Stored rows are left alone; the next sync rebuilds them.
        """
        network = self.network_storage.get(network_id)

        async with timed_section("reset", subject=network.name):
            if not await is_active_network(self.executor, network):
                return

            logger.info(f"resetting routes for network {network.name!r}")
            await self._apply(network, [], operation="reset", stage=False)

    async def list_setups_by_network(self, network: Network) -> list[NetworkHostSetup]:
        """Desired routes: one per resolved IPv4 address of every host.

        All-or-nothing; one unresolvable host fails the whole list.
        """
        hosts = self.network_host_storage.list(ListNetworkHostFilter(network_ids=[network.id]))
        info = await self.get_current_network_info()

        setups: list[NetworkHostSetup] = []
        for host in hosts:
            ips = await self.resolver.resolve_ipv4(host.address)
            for ip in ips:
                setups.append(NetworkHostSetup(
                    network_host_id=host.id,
                    network_host_ip=ip,
                    subnet_mask=info.subnet_mask,
                    router=info.router,
                ))

        return setups

    async def get_current_network_info(self) -> NetworkInfo:
        try:
            interface = await self.executor.get_default_network_interface()
        except (CommandError, NetworkInfoUnavailableError) as e:
            raise NetworkInfoUnavailableError(
                f"failed to get current network info: failed to get default network interface: {e}",
                step="interface",
            ) from e

        try:
            service = await self.executor.get_network_service_by_network_interface(interface)
        except (CommandError, NetworkInfoUnavailableError) as e:
            raise NetworkInfoUnavailableError(
                f"failed to get current network info: "
                f"failed to get network service by network interface {interface}: {e}",
                step="service",
            ) from e

        try:
            return await self.executor.get_network_info_by_network_service(service)
        except (CommandError, NetworkInfoUnavailableError) as e:
            raise NetworkInfoUnavailableError(
                f"failed to get current network info: "
                f"failed to get network info by network service {service}: {e}",
                step="info",
            ) from e

    async def _apply(
        self,
        network: Network,
        setups: list[NetworkHostSetup],
        operation: str,
        stage: bool,
    ) -> None:
        """Two-phase apply inside one unit of work.

        Phase one stages rows in storage, phase two fires the OS route
        change. Commit happens only after both succeed; if the transaction
        manager committed earlier, storage could hold rows the OS never got.
        """
        async def apply() -> None:
            if stage and setups:
                self._stage(setups)
            await self._fire(network, setups, operation)

        await self.tx.do(apply)

    def _stage(self, setups: list[NetworkHostSetup]) -> None:
        try:
            self.network_host_setup_storage.delete_batch_by_network_host_ids(
                distinct_host_ids(setups)
            )
        except StorageBatchError as e:
            raise TransactionApplyError(
                "failed to apply transaction: failed to delete network host setup list "
                f"by network host ids: {e}",
                step="delete",
            ) from e

        try:
            self.network_host_setup_storage.add_batch(setups)
        except StorageBatchError as e:
            raise TransactionApplyError(
                f"failed to apply transaction: failed to add network host setup list: {e}",
                step="insert",
            ) from e

    async def _fire(self, network: Network, setups: list[NetworkHostSetup], operation: str) -> None:
        routes = [setup.route_args() for setup in setups]
        try:
            await self.executor.set_network_additional_routes(network, setups)
        except CommandError as e:
            log_route_change(network.id, network.name, operation, routes, success=False, error=str(e))
            raise TransactionApplyError(
                f"failed to apply transaction: failed to set network additional routes: {e}",
                step="set_routes",
            ) from e

        log_route_change(network.id, network.name, operation, routes, success=True)
