"""
Retry scheduling for upstream calls.

A RetryPolicy says how many attempts a call gets, how long to wait between
them and which errors are worth another attempt. call_with_retry() applies a
policy to any coroutine factory, so the transport knows nothing about retries.

Rate-limit errors are deliberately NOT retryable: hammering a throttling
upstream only extends the throttle.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from .exceptions import TransientUpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff schedule: base_delay * factor**n, capped at max_delay."""
    max_attempts: int = 3
    base_delay: float = 1.0
    factor: float = 2.0
    max_delay: float = 5.0
    retry_on: Tuple[Type[BaseException], ...] = (UpstreamTimeout, TransientUpstreamError)

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return min(self.base_delay * (self.factor ** (attempt - 1)), self.max_delay)

    def is_retryable(self, exc: BaseException) -> bool:
        return isinstance(exc, self.retry_on)


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "upstream call"
) -> T:
    """
    Await func() until it succeeds, a non-retryable error occurs, or the
    policy's attempts are used up. The last error is re-raised unchanged.
    """
    attempt = 1
    while True:
        try:
            return await func()
        except Exception as exc:
            if not policy.is_retryable(exc) or attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{label}: {type(exc).__name__} ({exc}), "
                f"retry {attempt}/{policy.max_attempts - 1} in {delay:.1f}s"
            )
            await sleep(delay)
            attempt += 1
