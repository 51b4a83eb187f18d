"""Logging configuration for splitr.

Provides configurable logging with:
- File-based logging with rotation
- Optional console output
- Performance timing decorators for OS commands and reconciliation runs

Environment Variables:
    SPLITR_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    SPLITR_LOG_FILE: Path to log file (default: ~/Library/Logs/splitr/splitr.log)
    SPLITR_LOG_MAX_SIZE: Max log file size in MB (default: 25)
    SPLITR_LOG_BACKUPS: Number of backup files to keep (default: 5)
    SPLITR_LOG_STDERR: Also log to stderr when "1"/"true" (default: off)

Usage:
    from splitr.utils.logging_config import setup_logging, timed

    setup_logging(settings)  # Call once at startup

    @timed("get_current_vpn")
    async def get_current_vpn(self):
        ...

    async with timed_section("sync", subject="Office", hosts=3):
        ...
"""
import asyncio
import functools
import logging
import time
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, Callable, Any, Optional

if TYPE_CHECKING:
    from ..config import Settings

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("splitr.perf")
main_logger = logging.getLogger("splitr")

MAIN_FORMAT = "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s"
PERF_FORMAT = "%(asctime)s.%(msecs)03d | PERF | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_log_level(value: str) -> int:
    """Map a level name to a logging level, falling back to INFO."""
    val = value.strip().lower()
    levels = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "err": logging.ERROR,
    }
    return levels.get(val, logging.INFO)


def setup_logging(settings: "Settings") -> None:
    """Configure logging for the application.

    Sets up:
    - File handler with rotation (DEBUG level - captures everything)
    - Console handler at the configured level when log_stderr is set
    - Performance logger writing to splitr-perf.log next to the main log
    """
    log_level = parse_log_level(settings.log_level)
    log_file = settings.log_file
    max_bytes = settings.log_max_size_mb * 1024 * 1024

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(MAIN_FORMAT, datefmt=DATE_FORMAT)
    perf_format = logging.Formatter(PERF_FORMAT, datefmt=DATE_FORMAT)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=settings.log_backups,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "splitr-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_bytes,
        backupCount=settings.log_backups,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.addHandler(file_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    perf_logger.addHandler(perf_handler)

    if settings.log_stderr:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(main_format)
        main_logger.addHandler(console_handler)

    main_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def _log_timing(operation: str, subject: Optional[str], elapsed: float, error: Optional[BaseException], extra_str: str = "") -> None:
    if error is None:
        msg = f"{operation:22s} | {subject or 'N/A':15s} | {elapsed:8.2f}ms | OK"
    else:
        msg = f"{operation:22s} | {subject or 'N/A':15s} | {elapsed:8.2f}ms | FAIL: {error}"
    if extra_str:
        msg += f" | {extra_str}"
    if error is None:
        perf_logger.info(msg)
    else:
        perf_logger.warning(msg)


def timed(operation: str, subject: Optional[str] = None):
    """Decorator to log execution time of sync/async functions.

    Args:
        operation: Name of the operation (e.g., "get_current_vpn", "sync")
        subject: Optional label (network name, executable) for the log line
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, subject, (time.perf_counter() - start) * 1000, e)
                raise
            _log_timing(operation, subject, (time.perf_counter() - start) * 1000, None)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, subject, (time.perf_counter() - start) * 1000, e)
                raise
            _log_timing(operation, subject, (time.perf_counter() - start) * 1000, None)
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


@asynccontextmanager
async def timed_section(operation: str, subject: Optional[str] = None, **extra):
    """Async context manager for timing code sections.

    Usage:
        async with timed_section("sync", subject="Office", hosts=3):
            ...
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
    except Exception as e:
        _log_timing(operation, subject, (time.perf_counter() - start) * 1000, e, extra_str)
        raise
    _log_timing(operation, subject, (time.perf_counter() - start) * 1000, None, extra_str)
