"""Line-oriented extraction of values from macOS networking command output.

Each method matches one fixed pattern against a single line and returns the
first capture group, or an empty string when the line does not match.
Patterns use ASCII semantics so `\\w` and `\\d` never match non-ASCII text.
"""
import re

IP_PART = r"(\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"

VPN_NAME_PATTERN = r'"([^"]+)"'
INTERFACE_NAME_PATTERN = r"Device: (\w+)"
NETWORK_SERVICE_NAME_PATTERN = r"\(\d+\) (.+)"
SUBNET_MASK_PATTERN = r"Subnet mask: " + IP_PART
ROUTER_PATTERN = r"Router: " + IP_PART


class OutputParser:
    """Parse single lines of `scutil` / `networksetup` output."""

    def __init__(self):
        self._vpn_name = re.compile(VPN_NAME_PATTERN, re.ASCII)
        self._interface_name = re.compile(INTERFACE_NAME_PATTERN, re.ASCII)
        self._network_service_name = re.compile(NETWORK_SERVICE_NAME_PATTERN, re.ASCII)
        self._subnet_mask = re.compile(SUBNET_MASK_PATTERN, re.ASCII)
        self._router = re.compile(ROUTER_PATTERN, re.ASCII)

    @staticmethod
    def _first_group(pattern: re.Pattern, line: str) -> str:
        match = pattern.search(line)
        if match is None:
            return ""
        return match.group(1)

    def parse_vpn_name(self, line: str) -> str:
        """Text inside the first pair of double quotes.

        `* (Connected) ... PPP --> L2TP "Office" [PPP:L2TP]` -> "Office"
        """
        return self._first_group(self._vpn_name, line)

    def parse_interface_name(self, line: str) -> str:
        """Interface id after `Device: `.

        Exactly one space is expected after the colon; `Device:  en0`
        does not match.
        """
        return self._first_group(self._interface_name, line)

    def parse_network_service_name(self, line: str) -> str:
        """Service name from a `(N) name` line of -listnetworkserviceorder."""
        return self._first_group(self._network_service_name, line)

    def parse_subnet_mask(self, line: str) -> str:
        # Octets are not range checked: 999.999.999.999 is returned as is
        return self._first_group(self._subnet_mask, line)

    def parse_router(self, line: str) -> str:
        return self._first_group(self._router, line)
