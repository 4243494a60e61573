# File: tests/test_limiter.py
from __future__ import annotations

import asyncio

import pytest

from doc_extractor.crawler.limiter import ConcurrencyLimiter


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def test_permits_must_be_positive():
    with pytest.raises(ValueError):
        ConcurrencyLimiter(0)


@pytest.mark.asyncio()
async def test_only_capacity_acquirers_proceed():
    limiter = ConcurrencyLimiter(2)
    acquired: list[int] = []

    async def worker(i: int) -> None:
        await limiter.acquire()
        acquired.append(i)

    tasks = [asyncio.create_task(worker(i)) for i in range(5)]
    await settle()

    assert acquired == [0, 1]
    assert limiter.in_use == 2
    assert limiter.waiting == 3

    limiter.release()
    await settle()
    assert acquired == [0, 1, 2]
    assert limiter.in_use == 2

    for _ in range(3):
        limiter.release()
        await settle()
    await asyncio.gather(*tasks)
    assert acquired == [0, 1, 2, 3, 4]
    assert limiter.available == 1


@pytest.mark.asyncio()
async def test_release_hands_permit_to_longest_waiter():
    limiter = ConcurrencyLimiter(1)
    await limiter.acquire()
    order: list[str] = []

    async def waiter(name: str) -> None:
        async with limiter:
            order.append(name)

    first = asyncio.create_task(waiter("first"))
    await settle()
    second = asyncio.create_task(waiter("second"))
    await settle()

    limiter.release()
    # a newcomer must not overtake the queued waiters
    late = asyncio.create_task(waiter("late"))
    await asyncio.gather(first, second, late)

    assert order == ["first", "second", "late"]
    assert limiter.available == 1


@pytest.mark.asyncio()
async def test_permit_released_when_guarded_block_fails():
    limiter = ConcurrencyLimiter(1)

    with pytest.raises(RuntimeError):
        async with limiter:
            raise RuntimeError("fetch failed")

    assert limiter.available == 1
    await asyncio.wait_for(limiter.acquire(), timeout=1)


@pytest.mark.asyncio()
async def test_cancelled_waiter_does_not_leak_permit():
    limiter = ConcurrencyLimiter(1)
    await limiter.acquire()

    task = asyncio.create_task(limiter.acquire())
    await settle()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    limiter.release()
    assert limiter.available == 1
    assert limiter.waiting == 0


@pytest.mark.asyncio()
async def test_over_release_is_an_error():
    limiter = ConcurrencyLimiter(1)
    with pytest.raises(RuntimeError):
        limiter.release()
