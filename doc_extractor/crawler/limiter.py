# doc_extractor/crawler/limiter.py
"""
FIFO counting semaphore bounding in-flight fetches.
"""
from __future__ import annotations

import asyncio
from collections import deque
from types import TracebackType
from typing import Deque, Optional, Type


class ConcurrencyLimiter:
    """Counting semaphore with direct hand-off to the longest waiter.

    ``release`` never bumps the counter while someone is waiting: the permit
    goes straight to the head of the queue, so a late ``acquire`` cannot
    overtake earlier waiters. Use it as ``async with limiter:`` so the permit
    is returned on every exit path.
    """

    def __init__(self, permits: int) -> None:
        if permits < 1:
            raise ValueError("permits must be >= 1")
        self._capacity = permits
        self._available = permits
        self._waiters: Deque[asyncio.Future[None]] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> int:
        return self._available

    @property
    def in_use(self) -> int:
        return self._capacity - self._available

    @property
    def waiting(self) -> int:
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> None:
        if self._available > 0 and not self._waiters:
            self._available -= 1
            return
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # permit was already handed to us; pass it on
                self.release()
            elif fut in self._waiters:
                self._waiters.remove(fut)
            raise

    def release(self) -> None:
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        if self._available >= self._capacity:
            raise RuntimeError("ConcurrencyLimiter released too many times")
        self._available += 1

    async def __aenter__(self) -> ConcurrencyLimiter:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()
