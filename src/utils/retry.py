import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from controllers.config import logger, MODEL_MAX_ATTEMPTS, MODEL_RETRY_BASE_DELAY


T = TypeVar("T")


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = MODEL_MAX_ATTEMPTS,
    base_delay: float = MODEL_RETRY_BASE_DELAY,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    description: str = "call",
) -> T:
    """
    Await fn() up to max_attempts times with exponential backoff.

    Waits base_delay * 2**(attempt - 1) seconds between attempts and re-raises
    the last error once attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await fn()
        except retry_on as e:
            last_error = e
            if attempt == max_attempts:
                break
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                f"{description} attempt {attempt}/{max_attempts} failed: {e}; "
                f"retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)

    logger.error(f"{description} failed after {max_attempts} attempts")
    raise last_error
