"""
Bounded retry with exponential backoff.

`retry_with_backoff` runs an operation once and then retries it up to
`max_retries` more times, sleeping `delay(attempt)` before each retry. Every
attempt re-runs the whole operation; nothing is resumed. It knows nothing
about what it wraps.

Default schedule (base 1s): 1s, 2s, 4s -> 4 attempts in total.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class RetryExhaustedError(Exception):
    """Raised when every attempt failed. Carries the attempt count and the last error."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def backoff_delay(attempt: int, base: float = 1.0) -> float:
    """Delay before retry number `attempt` (0-based): base * 2**attempt."""

    return base * (2 ** attempt)


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: Callable[[int], float] = backoff_delay,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    give_up_on: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    Run `operation`, retrying on failure.

    Exceptions listed in `give_up_on` propagate immediately without a retry.

    Raises:
        RetryExhaustedError: after 1 + max_retries failed attempts
    """

    attempt = 0
    while True:
        try:
            return operation()
        except give_up_on:
            raise
        except Exception as exc:
            attempts_made = attempt + 1
            if attempt >= max_retries:
                logger.error("Giving up after %d attempts", attempts_made, extra={"error": str(exc)})
                raise RetryExhaustedError(attempts_made, exc) from exc

            wait = delay(attempt)
            logger.warning(
                "Attempt %d failed, retrying in %.1fs",
                attempts_made,
                wait,
                extra={"error": str(exc)},
            )
            if on_retry is not None:
                on_retry(attempts_made, exc)
            sleep(wait)
            attempt += 1


__all__ = ["DEFAULT_MAX_RETRIES", "RetryExhaustedError", "backoff_delay", "retry_with_backoff"]
