"""Exception taxonomy for route reconciliation.

Every error raised by splitr derives from SplitrError so callers (the CLI,
a UI layer) can catch one type and print its message.
"""
from typing import Optional


class SplitrError(Exception):
    """Base class for all splitr errors."""
    pass


class NetworkNotFoundError(SplitrError):
    """Raised when a network ID does not exist."""

    def __init__(self, network_id: Optional[int] = None):
        self.network_id = network_id
        if network_id is None:
            super().__init__("network not found")
        else:
            super().__init__(f"network {network_id} not found")


class NetworkAlreadyExistsError(SplitrError):
    pass


class NetworkHostNotFoundError(SplitrError):
    pass


class NetworkHostAlreadyExistsError(SplitrError):
    pass


class InvalidAddressError(SplitrError):
    """Raised when a host address is neither an IPv4 literal nor a hostname."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"invalid address: {address!r}")


class VPNServiceNotFoundError(SplitrError):
    """No connected L2TP VPN was reported by the OS.

    This is a sentinel: reconciliation treats it as "nothing is active",
    never as a failure.
    """

    def __init__(self, message: str = "vpn service not found"):
        super().__init__(message)


class CommandError(SplitrError):
    """An OS command could not be launched or exited non-zero."""

    def __init__(
        self,
        message: str,
        command: str = "",
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class NetworkInfoUnavailableError(SplitrError):
    """Default network discovery failed at one of its sub-steps."""

    def __init__(self, message: str, step: str = ""):
        self.step = step
        super().__init__(message)


class DNSResolutionError(SplitrError):
    """A host address could not be resolved to at least one IPv4 address."""

    def __init__(self, message: str, address: str = ""):
        self.address = address
        super().__init__(message)


class ConfigError(SplitrError, ValueError):
    """Settings could not be read or hold an invalid value."""
    pass


class StorageError(SplitrError):
    """A database statement failed."""
    pass


class StorageBatchError(StorageError):
    """A chunked insert or delete of route rows failed."""
    pass


class TransactionApplyError(SplitrError):
    """Raised when a step inside the reconciliation transaction fails.

    Attributes:
        step: Which sub-step failed ("delete", "insert", "set_routes")
    """

    def __init__(self, message: str, step: str = ""):
        self.step = step
        super().__init__(message)


class ImportPayloadError(SplitrError):
    """A host import document could not be decoded."""
    pass
