"""Retry envelope around external generation calls."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from chefgenius.utils.exceptions import TransientServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 503})


def is_retryable(exc: BaseException) -> bool:
    """
    Tell whether a failure is a rate limit or a temporary unavailability.

    google-genai raises ``errors.APIError`` subclasses carrying the HTTP status in
    ``code``; other clients use ``status`` or ``status_code``.
    """
    if isinstance(exc, TransientServiceError):
        return True

    for attr in ("code", "status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and value in RETRYABLE_STATUS_CODES:
            return True

    return False


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: float = 1.0,
    *,
    timeout: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` with exponential backoff on retryable failures.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        retries: Attempts allowed beyond the first one
        delay: Seconds to wait before the first retry; doubled after each retry
        timeout: Optional bound in seconds on every single attempt
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The operation's result

    Raises:
        The last failure, unchanged, once the budget is spent or when it is not retryable
    """
    remaining = retries
    current_delay = delay

    while True:
        try:
            if timeout is not None:
                return await asyncio.wait_for(operation(), timeout=timeout)
            return await operation()
        except Exception as e:
            if remaining <= 0 or not is_retryable(e):
                raise

            logger.warning(
                "Rate limited. Retrying in %.2fs (%d retries left)",
                current_delay,
                remaining,
                extra={"error": str(e)},
            )
            await sleep(current_delay)
            current_delay *= 2
            remaining -= 1
