"""
Retry utilities with exponential backoff.

Provides retry logic for calls to external collaborators (geocoding,
vehicle data APIs) with configurable backoff.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from revvdoc.errors import UpstreamFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhaustedError(UpstreamFailure):
    """Raised when every attempt of a retried operation failed."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


async def with_retry(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    backoff_factor: float = 1.5,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    operation_name: Optional[str] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """
    Retry an async operation with exponential backoff.

    Args:
        func: Zero-argument callable returning an awaitable
        max_retries: Total number of attempts (default: 3)
        backoff_factor: Multiplier for delay between retries (default: 1.5)
        initial_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay between retries in seconds (default: 30.0)
        operation_name: Name for logging purposes
        retry_on: Exception types that trigger another attempt; anything
            else propagates immediately

    Returns:
        Result from the first successful attempt

    Raises:
        RetryExhaustedError: If all attempts failed

    Example:
        >>> coords = await with_retry(
        ...     lambda: lookup(address),
        ...     max_retries=2,
        ...     operation_name="Geocode"
        ... )
    """
    name = operation_name or getattr(func, "__name__", "operation")
    last_exception: Optional[BaseException] = None

    for attempt in range(max_retries):
        try:
            logger.debug(f"Attempt {attempt + 1}/{max_retries}: {name}")
            result = await func()

            if attempt > 0:
                logger.info(f"✅ {name} succeeded on attempt {attempt + 1}/{max_retries}")

            return result

        except retry_on as e:
            last_exception = e

            if attempt < max_retries - 1:
                delay = min(initial_delay * (backoff_factor ** attempt), max_delay)

                logger.warning(
                    f"⚠️  {name} failed (attempt {attempt + 1}/{max_retries}): {str(e)}"
                )
                logger.info(f"Retrying in {delay:.1f}s...")

                await asyncio.sleep(delay)
            else:
                logger.error(f"❌ {name} failed after {max_retries} attempts: {str(e)}")

    raise RetryExhaustedError(
        f"{name} failed after {max_retries} attempts. Last error: {str(last_exception)}",
        attempts=max_retries,
    ) from last_exception
