"""SQLite persistence for networks, hosts and resolved routes.

Tables managed:
    networks             # user-defined networks, matched to VPN names
    network_hosts        # hosts per network, cascade-deleted with the network
    network_host_setups  # resolved routes per host, rebuilt on every sync
"""

from .database import Database, Base, NetworkRow, NetworkHostRow, NetworkHostSetupRow
from .network import NetworkStorage
from .network_host import NetworkHostStorage
from .network_host_setup import (
    NetworkHostSetupStorage,
    ADD_BATCH_CHUNK_SIZE,
    DELETE_BATCH_CHUNK_SIZE,
)
from .transaction import TransactionManager

__all__ = [
    "Database",
    "Base",
    "NetworkRow",
    "NetworkHostRow",
    "NetworkHostSetupRow",
    "NetworkStorage",
    "NetworkHostStorage",
    "NetworkHostSetupStorage",
    "ADD_BATCH_CHUNK_SIZE",
    "DELETE_BATCH_CHUNK_SIZE",
    "TransactionManager",
]
