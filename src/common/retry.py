import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from src.common.errors import RetryExhaustedError

T = TypeVar('T')

FailureObserver = Callable[[int, int, BaseException], None]


async def with_retry(
    attempt_fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    delay: float = 0.0,
    on_failure: Optional[FailureObserver] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Awaits attempt_fn until it succeeds or max_attempts is reached.

    Args:
        attempt_fn: Zero-argument factory returning a fresh coroutine per attempt.
        max_attempts: Upper bound on the number of attempts (>= 1).
        delay: Seconds to wait between attempts. Never applied after the last one.
        on_failure: Observer called as on_failure(attempt, max_attempts, error)
                    after every failed attempt.
        sleep: Awaitable sleep function, injectable for tests.

    Returns:
        The result of the first successful attempt.

    Raises:
        RetryExhaustedError: If every attempt raised. Carries the last error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await attempt_fn()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            if on_failure is not None:
                on_failure(attempt, max_attempts, e)
            if attempt < max_attempts and delay > 0:
                await sleep(delay)

    raise RetryExhaustedError(max_attempts, last_error)


def log_failed_attempt(logger: logging.Logger, operation: str) -> FailureObserver:
    """Builds an on_failure observer that logs each failed attempt."""
    def observer(attempt: int, max_attempts: int, error: BaseException) -> None:
        if attempt < max_attempts:
            logger.warning(f"{operation} failed (attempt {attempt}/{max_attempts}): {error}. Retrying...")
        else:
            logger.error(f"{operation} failed on final attempt {attempt}/{max_attempts}: {error}")
    return observer
