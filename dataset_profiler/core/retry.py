"""Fixed-delay retry for storage and network calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from dataset_profiler.core.constants import MAX_RETRIES, RETRY_DELAY_SECONDS
from dataset_profiler.core.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    description: str,
    max_retries: int = MAX_RETRIES,
    delay: float = RETRY_DELAY_SECONDS
) -> T:
    """
    Await operation(), retrying on transient StorageError.

    The operation is attempted once plus up to max_retries more times with a
    fixed delay between attempts. Non-transient StorageErrors and any other
    exception propagate immediately.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        description: Operation name used in log messages
        max_retries: Retries after the first attempt
        delay: Seconds to wait between attempts

    Returns:
        The operation's result

    Raises:
        StorageError: The last error once retries are exhausted
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except StorageError as exc:
            if not exc.transient or attempt >= max_retries:
                logger.error(f"{description} failed after {attempt + 1} attempt(s): {exc.message}")
                raise
            attempt += 1
            logger.warning(
                f"{description} failed ({exc.message}), retry {attempt}/{max_retries} in {delay:g}s"
            )
            await asyncio.sleep(delay)
