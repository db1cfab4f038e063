from __future__ import annotations

from .cache import CacheEntry, now_ms
from .isolation import IsolatedResults, gather_isolated
from .prices import PriceAggregator
from .tvl import TVLAggregator, TVLCacheState

__all__ = [
    "CacheEntry",
    "IsolatedResults",
    "PriceAggregator",
    "TVLAggregator",
    "TVLCacheState",
    "gather_isolated",
    "now_ms",
]
