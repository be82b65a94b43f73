"""
Bounded retry for contention errors.

Only ``ContentionError`` is retried; business-rule rejections are terminal
for the attempt and propagate immediately.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from config import settings
from utils.exceptions import ContentionError, TransientFailure
from utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def retry_on_contention(
    operation: Callable[[], Awaitable[T]],
    max_attempts: Optional[int] = None,
    delay: Optional[float] = None,
    backoff: Optional[float] = None,
) -> T:
    """
    Run ``operation`` and retry it while it fails with a retryable contention error.

    Args:
        operation: Zero-argument coroutine factory (called once per attempt)
        max_attempts: Total attempts, defaults to settings.contention_max_retries
        delay: Initial delay between attempts in seconds
        backoff: Exponential backoff multiplier

    Returns:
        Whatever ``operation`` returns on its first successful attempt

    Raises:
        TransientFailure: If every attempt hit contention
    """
    attempts = max_attempts or settings.contention_max_retries
    wait = settings.contention_retry_delay if delay is None else delay
    multiplier = settings.contention_retry_backoff if backoff is None else backoff

    last_error: Optional[ContentionError] = None
    for attempt in range(attempts):
        try:
            return await operation()
        except TransientFailure:
            raise
        except ContentionError as e:
            last_error = e
            if attempt < attempts - 1:
                logger.warning(
                    f"Contention (attempt {attempt + 1}/{attempts}): {e.message}. "
                    f"Retrying in {wait}s..."
                )
                await asyncio.sleep(wait)
                wait *= multiplier
            else:
                logger.error(
                    f"Contention persisted after {attempts} attempts: {e.message}"
                )

    raise TransientFailure(
        f"Resource busy after {attempts} attempts, please try again later",
        details={"attempts": attempts, **(last_error.details if last_error else {})},
    ) from last_error
