"""Retry helper for opening local resources such as the SQLite file.

OS discovery commands and route changes are never retried; a failed
reconciliation is re-run by the caller.
"""
import logging
from typing import Callable

from sqlalchemy.exc import OperationalError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# "database is locked" and similar while another process holds the file
RETRYABLE_EXCEPTIONS = (
    OperationalError,
    TimeoutError,
)

DEFAULT_ATTEMPTS = 10


def with_retry(
    max_attempts: int = DEFAULT_ATTEMPTS,
    min_wait: float = 0.1,
    max_wait: float = 1,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable:
    """Retry a sync or async callable with exponential backoff.

    The last exception is re-raised once attempts run out.

    Args:
        max_attempts: Total attempts including the first
        min_wait: First backoff delay in seconds
        max_wait: Upper bound for a single delay in seconds
        exceptions: Exception types that trigger another attempt
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
