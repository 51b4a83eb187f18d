"""Logging, audit and retry helpers."""
from .audit_log import (
    RouteChangeRecord,
    get_recent_changes,
    log_route_change,
    setup_audit_logging,
)
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    perf_logger,
)
from .retry import with_retry

__all__ = [
    "RouteChangeRecord",
    "get_recent_changes",
    "log_route_change",
    "setup_audit_logging",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
    "with_retry",
]
