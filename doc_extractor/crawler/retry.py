# doc_extractor/crawler/retry.py
"""
Retry policy: a fixed sequence of delays consumed left to right.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, Tuple, Type, TypeVar

from doc_extractor.logger import LOGGER_NAME

T = TypeVar("T")
SleepFunc = Callable[[float], Awaitable[None]]

logger = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Delays (seconds) between attempts; ``len(delays) + 1`` attempts in total."""

    delays: Tuple[float, ...] = (1.0, 5.0, 15.0)

    @classmethod
    def from_delays(cls, delays: Sequence[float]) -> RetryPolicy:
        return cls(tuple(float(d) for d in delays))

    @property
    def max_attempts(self) -> int:
        return len(self.delays) + 1


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...],
    *,
    sleep: SleepFunc = asyncio.sleep,
    label: str = "operation",
) -> T:
    """
    Await ``operation()`` until it succeeds or *policy* is exhausted.

    Each failure listed in *retry_on* waits the next delay and tries again;
    once every delay has been used the last failure is re-raised without a
    further wait. Other exceptions propagate immediately.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= len(policy.delays):
                logger.debug("Giving up on %s after %d attempts: %s", label, attempt + 1, exc)
                raise
            delay = policy.delays[attempt]
            attempt += 1
            logger.debug(
                "Retry %d/%d for %s after %.2f s: %s",
                attempt, len(policy.delays), label, delay, exc,
            )
            await sleep(delay)
