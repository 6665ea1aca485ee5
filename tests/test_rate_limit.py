from __future__ import annotations

import pytest

from storefront_access.security.rate_limit import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitRecord,
)


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(InMemoryRateLimitStore(), clock=clock)


@pytest.mark.asyncio
async def test_exactly_max_calls_pass_per_window(limiter: RateLimiter, clock) -> None:
    results = [await limiter.check("login:1.2.3.4", 3, 1_000) for _ in range(5)]
    assert results == [True, True, True, False, False]

    clock.advance(1_001)
    assert await limiter.check("login:1.2.3.4", 3, 1_000) is True


@pytest.mark.asyncio
async def test_window_is_fixed_from_first_use(limiter: RateLimiter, clock) -> None:
    assert await limiter.check("k", 1, 1_000)
    clock.advance(1_000)
    # Still inside the window: reset only happens once now > reset_time.
    assert not await limiter.check("k", 1, 1_000)
    clock.advance(1)
    assert await limiter.check("k", 1, 1_000)


@pytest.mark.asyncio
async def test_keys_are_independent(limiter: RateLimiter, clock) -> None:
    assert await limiter.check("a", 1, 1_000)
    assert not await limiter.check("a", 1, 1_000)

    clock.advance(500)
    assert await limiter.check("b", 1, 1_000)

    # "a" resets on its own schedule, "b" keeps its later phase.
    clock.advance(501)
    assert await limiter.check("a", 1, 1_000)
    assert not await limiter.check("b", 1, 1_000)


@pytest.mark.asyncio
async def test_store_records_count_and_reset_time(clock) -> None:
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, clock=clock)
    await limiter.check("k", 10, 60_000)
    await limiter.check("k", 10, 60_000)

    record = await store.get("k")
    assert record == RateLimitRecord(count=2, reset_time=clock.now + 60_000)
    assert await store.get("missing") is None
    assert len(store) == 1


@pytest.mark.asyncio
async def test_store_set_overrides_record(clock) -> None:
    store = InMemoryRateLimitStore()
    limiter = RateLimiter(store, clock=clock)
    await store.set("k", RateLimitRecord(count=5, reset_time=clock.now + 1_000))
    assert not await limiter.check("k", 5, 1_000)

    store.clear()
    assert await limiter.check("k", 5, 1_000)
