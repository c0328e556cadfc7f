import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from common.errors.exceptions import AcquireTimeoutError

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_with_timeout(operation: Awaitable[T], timeout_seconds: Optional[float]) -> T:
    """Await ``operation`` for at most ``timeout_seconds``.

    On expiry the pending task is cancelled and ``AcquireTimeoutError`` is
    raised. A missing or non-positive timeout waits indefinitely.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return await operation
    try:
        return await asyncio.wait_for(operation, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        logger.warning("Operation timed out after %.3fs; pending task cancelled", timeout_seconds)
        raise AcquireTimeoutError(timeout_seconds) from exc
