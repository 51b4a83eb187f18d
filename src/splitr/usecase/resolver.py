"""DNS resolution of host addresses to IPv4 addresses."""
import asyncio
import ipaddress
import logging
import socket
from abc import ABC, abstractmethod

from ..errors import DNSResolutionError

logger = logging.getLogger(__name__)


def ipv4_only(addresses: list[str]) -> list[str]:
    """Unique IPv4 addresses in input order.

    IPv4-mapped IPv6 addresses (::ffff:a.b.c.d) count as their IPv4 form;
    anything else that is not IPv4 is dropped.
    """
    result: list[str] = []
    for raw in addresses:
        try:
            ip = ipaddress.ip_address(raw.split("%", 1)[0])
        except ValueError:
            continue

        if isinstance(ip, ipaddress.IPv6Address):
            if ip.ipv4_mapped is None:
                continue
            ip = ip.ipv4_mapped

        text = str(ip)
        if text not in result:
            result.append(text)
    return result


class Resolver(ABC):
    """Resolve a hostname or IP literal to its IPv4 addresses."""

    @abstractmethod
    async def resolve_ipv4(self, address: str) -> list[str]:
        """Return at least one IPv4 address.

        Raises:
            DNSResolutionError: On lookup failure or when no IPv4 address exists
        """
        pass


class SystemResolver(Resolver):
    """Resolve through the system resolver via the event loop's getaddrinfo."""

    async def resolve_ipv4(self, address: str) -> list[str]:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(
                address, None, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM
            )
        except (socket.gaierror, UnicodeError) as e:
            raise DNSResolutionError(
                f"failed to lookup IP for address {address}: {e}",
                address=address,
            ) from e

        ips = ipv4_only([info[4][0] for info in infos])
        if not ips:
            raise DNSResolutionError(
                f"no IPv4 addresses found for address {address}",
                address=address,
            )

        logger.debug(f"resolved {address} to {ips}")
        return ips
