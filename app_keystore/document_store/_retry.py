"""Retry with exponential backoff for transient backend failures."""

import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar

from app_keystore.logging import get_keystore_logger

logger = get_keystore_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy for backend calls with exponential backoff.

    @public

    Args:
        attempts: Maximum number of attempts (default 3)
        base_delay: Initial delay in seconds (default 0.5)
        max_delay: Maximum delay between retries (default 8.0)
    """

    attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry following the given zero-based attempt."""
        return min(self.base_delay * (2**attempt), self.max_delay)


def retry(
    policy: RetryPolicy,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator retrying func on the given exception types.

    @public

    Exceptions outside retry_on propagate immediately. After the last attempt
    the final exception is re-raised unchanged.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(policy.attempts):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= policy.attempts - 1:
                        logger.error(f"Storage operation failed after {policy.attempts} attempts: {e}")
                        raise
                    delay = policy.delay_for(attempt)
                    logger.warning(f"Storage operation failed: {e}. Retrying in {delay:.1f}s (attempt {attempt + 1}/{policy.attempts})")
                    time.sleep(delay)
            raise RuntimeError("Retry logic error: no attempts configured")

        return wrapper

    return decorator
