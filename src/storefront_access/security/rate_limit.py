"""
storefront_access.security.rate_limit

Fixed-window rate limiting.

Responsibilities:
- Define the counter store contract (get/set/increment with a TTL window).
- Provide the single-process in-memory store.
- Decide allow/deny per key: the `max + 1`-th call inside a window is the
  first one rejected.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(slots=True)
class RateLimitRecord:
    count: int
    reset_time: float  # epoch milliseconds


class RateLimitStore(Protocol):
    async def get(self, key: str) -> RateLimitRecord | None: ...

    async def set(self, key: str, record: RateLimitRecord) -> None: ...

    async def increment(self, key: str, *, window_ms: int, now_ms: float) -> int:
        """
        Atomically start a new window (count=1) when the key is unknown or its
        window has passed, otherwise add one. Returns the post-increment count.
        """
        ...


class InMemoryRateLimitStore:
    """
    Process-local store. Keys are never evicted.

    The lock covers read-modify-write; sync endpoints run in the threadpool.
    """

    def __init__(self) -> None:
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> RateLimitRecord | None:
        with self._lock:
            record = self._records.get(key)
            return None if record is None else RateLimitRecord(record.count, record.reset_time)

    async def set(self, key: str, record: RateLimitRecord) -> None:
        with self._lock:
            self._records[key] = RateLimitRecord(record.count, record.reset_time)

    async def increment(self, key: str, *, window_ms: int, now_ms: float) -> int:
        with self._lock:
            record = self._records.get(key)
            if record is None or now_ms > record.reset_time:
                self._records[key] = RateLimitRecord(count=1, reset_time=now_ms + window_ms)
                return 1
            record.count += 1
            return record.count

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        *,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> RateLimitStore:
        return self._store

    async def check(self, key: str, max_requests: int, window_ms: int) -> bool:
        count = await self._store.increment(key, window_ms=window_ms, now_ms=self._clock())
        return count <= max_requests


# --- Module Notes -----------------------------------------------------------
# Fixed windows let a client spend up to 2x max around a window boundary.
