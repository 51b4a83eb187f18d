"""Use cases: route reconciliation and the host/network operations that trigger it."""

from .network import NetworkUseCase
from .network_host import NetworkHostUseCase
from .network_host_setup import NetworkHostSetupUseCase, is_active_network
from .resolver import Resolver, SystemResolver, ipv4_only

__all__ = [
    "NetworkUseCase",
    "NetworkHostUseCase",
    "NetworkHostSetupUseCase",
    "is_active_network",
    "Resolver",
    "SystemResolver",
    "ipv4_only",
]
