"""Domain records shared by storage, command execution and use cases."""
import json
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional

from .errors import InvalidAddressError, ImportPayloadError

# OS-reported identifiers, kept as plain strings
NetworkInterface = str  # e.g. "en0"
NetworkService = str    # e.g. "Wi-Fi"
VPNService = str        # L2TP VPN name from `scutil --nc list`

IP_OR_HOSTNAME_RE = re.compile(
    r"^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
    r"|^(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]*[a-zA-Z0-9])\.)+"
    r"([A-Za-z]{2,7}|[A-Za-z][A-Za-z0-9\-]{2,7})$"
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_address(address: str) -> bool:
    """Check that an address is an IPv4 literal or a dotted hostname."""
    return IP_OR_HOSTNAME_RE.match(address) is not None


@dataclass
class NetworkInfo:
    """Subnet mask and router of the current default network."""
    subnet_mask: str = ""
    router: str = ""

    def __str__(self) -> str:
        return f"Subnet Mask: {self.subnet_mask}, Router: {self.router}"


@dataclass
class Network:
    """User-defined network, active when its name matches the connected VPN."""
    name: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class NetworkWithStatus:
    network: Network
    is_active: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.network.id,
            "name": self.network.name,
            "created_at": self.network.created_at.isoformat() if self.network.created_at else None,
            "is_active": self.is_active,
        }


@dataclass
class NetworkHost:
    """A hostname or IPv4 literal routed through a network's VPN."""
    network_id: int
    address: str
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def new(cls, network_id: int, address: str, description: str = "") -> "NetworkHost":
        """Build a validated host; an empty description is stored as NULL."""
        if not is_valid_address(address):
            raise InvalidAddressError(address)
        return cls(
            network_id=network_id,
            address=address,
            description=description or None,
            created_at=utcnow(),
        )


@dataclass
class NetworkHostSetup:
    """One resolved IPv4 address of a host with the route it should take."""
    network_host_id: int
    network_host_ip: str
    subnet_mask: str
    router: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def route_args(self) -> list[str]:
        """Positional arguments for `networksetup -setadditionalroutes`."""
        return [self.network_host_ip, self.subnet_mask, self.router]


@dataclass
class ListNetworkFilter:
    ids: list[int] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    search: str = ""


@dataclass
class ListNetworkHostFilter:
    ids: list[int] = field(default_factory=list)
    network_ids: list[int] = field(default_factory=list)
    addresses: list[str] = field(default_factory=list)
    search: str = ""


@dataclass
class NetworkHostDTO:
    """A host without internal IDs, as exchanged in import/export documents."""
    address: str
    description: str = ""


@dataclass
class NetworkHostExport:
    """Export document for the hosts of one network.

    The network ID is not part of the document; an export is imported into
    whichever network the user picks.
    """
    export_date: datetime
    hosts: list[NetworkHostDTO] = field(default_factory=list)

    def to_dict(self) -> dict:
        hosts = []
        for host in self.hosts:
            item = {"address": host.address}
            if host.description:
                item["description"] = host.description
            hosts.append(item)
        return {"export_date": self.export_date.isoformat(), "hosts": hosts}

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, data: str) -> "NetworkHostExport":
        try:
            raw = json.loads(data)
        except json.JSONDecodeError as e:
            raise ImportPayloadError(f"failed to decode import data: {e}") from e

        if not isinstance(raw, dict):
            raise ImportPayloadError("import data must be a JSON object")

        export_date = utcnow()
        date_str = raw.get("export_date")
        if date_str:
            try:
                export_date = datetime.fromisoformat(str(date_str).replace("Z", "+00:00"))
            except ValueError as e:
                raise ImportPayloadError(f"invalid export_date: {date_str}") from e

        hosts = []
        for item in raw.get("hosts") or []:
            if not isinstance(item, dict) or "address" not in item:
                raise ImportPayloadError(f"invalid host entry: {item!r}")
            hosts.append(NetworkHostDTO(
                address=str(item["address"]),
                description=str(item.get("description") or ""),
            ))

        return cls(export_date=export_date, hosts=hosts)


def setup_to_dict(setup: NetworkHostSetup) -> dict:
    data = asdict(setup)
    if setup.created_at:
        data["created_at"] = setup.created_at.isoformat()
    return data
