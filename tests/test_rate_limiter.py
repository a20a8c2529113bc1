"""Tests for RateLimiter, including reuse across event loops."""

import asyncio
import time

import pytest

from scrnatools_db.utils.http import RateLimiter


@pytest.mark.asyncio
async def test_rate_limiter_basic() -> None:
    limiter = RateLimiter(calls_per_second=5.0)  # 0.2s interval

    start = time.time()
    await limiter.acquire()
    await limiter.acquire()
    await limiter.acquire()
    elapsed = time.time() - start

    # 3 calls, 2 intervals
    assert elapsed >= 0.4, f"Rate limiting too fast: {elapsed}s"


def test_rate_limiter_across_asyncio_run_calls() -> None:
    """A module-level limiter must survive separate asyncio.run() calls."""
    limiter = RateLimiter(calls_per_second=10.0)

    async def one_pass() -> str:
        await limiter.acquire()
        return "done"

    assert asyncio.run(one_pass()) == "done"
    first_loop = limiter._loop

    assert asyncio.run(one_pass()) == "done"
    assert limiter._lock is not None
    assert limiter._loop is not first_loop


@pytest.mark.asyncio
async def test_rate_limiter_concurrent_access() -> None:
    limiter = RateLimiter(calls_per_second=10.0)  # 0.1s interval
    results: list[int] = []

    async def make_request(task_id: int) -> None:
        await limiter.acquire()
        results.append(task_id)

    start = time.time()
    await asyncio.gather(*(make_request(i) for i in range(5)))
    elapsed = time.time() - start

    assert elapsed >= 0.4, f"Concurrent rate limiting too fast: {elapsed}s"
    assert len(results) == 5
