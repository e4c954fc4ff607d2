"""
Retry helper for provider adapters.

Adapters translate provider exceptions into EmbeddingFailure /
CompletionFailure first; this helper then retries the ones that
is_retryable() accepts, doubling the delay after every attempt. The
pipelines themselves never retry.
"""

import logging
import time
from typing import Callable, TypeVar

from .exceptions import is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    operation: Callable[[], T],
    max_retries: int = 3,
    retry_delay: float = 1.0,
    description: str = "provider call",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run operation, retrying transient failures with exponential backoff.

    Args:
        operation: Zero-argument callable that raises typed failures.
        max_retries: Maximum number of attempts (at least one is made).
        retry_delay: Initial delay between attempts in seconds.
        description: Used in log messages.
        sleep: Injected for tests.

    Returns:
        Whatever operation returns.

    Raises:
        The last failure once attempts are exhausted, or the first
        non-retryable failure immediately.
    """
    attempts = max(1, max_retries)
    delay = retry_delay

    attempt = 1
    while True:
        try:
            logger.debug(f"{description} attempt {attempt}/{attempts}")
            return operation()
        except Exception as e:
            if not is_retryable(e) or attempt >= attempts:
                raise
            logger.warning(f"{description} failed ({e}), retrying in {delay}s...")
            sleep(delay)
            delay *= 2  # Exponential backoff
            attempt += 1
