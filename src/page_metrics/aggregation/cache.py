from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], int]


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value stamped with its production time. Replaced, never mutated."""

    value: T
    timestamp_ms: int
    ttl_ms: int

    def age_ms(self, now: int) -> int:
        return now - self.timestamp_ms

    def is_fresh(self, now: int) -> bool:
        return self.age_ms(now) < self.ttl_ms
