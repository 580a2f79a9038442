"""Retry policy for calls to unreliable collaborators."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(base_delay: float) -> Callable[[int], float]:
    """Backoff of base_delay * attempt seconds."""
    return lambda attempt: base_delay * attempt


def exponential_backoff(base_delay: float, max_delay: float = 60.0) -> Callable[[int], float]:
    """Backoff of base_delay * 2^(attempt-1) seconds, capped at max_delay."""
    return lambda attempt: min(base_delay * (2 ** (attempt - 1)), max_delay)


@dataclass
class RetryPolicy(Generic[T]):
    """Run an async callable up to max_attempts times.

    Between failed attempts the policy sleeps for backoff(attempt) seconds.
    When every attempt fails the fallback factory supplies the result; without
    a fallback the last exception is re-raised.
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(1.0))
    fallback: Callable[[], T] | None = None
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    name: str = "operation"

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        last_error: BaseException | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except self.retry_on as e:
                last_error = e
                logger.warning(
                    "%s attempt %s/%s failed: %s", self.name, attempt, self.max_attempts, e
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff(attempt))

        if self.fallback is not None:
            logger.warning("%s: all %s attempts failed, using fallback", self.name, self.max_attempts)
            return self.fallback()

        assert last_error is not None
        raise last_error
