"""TVL collection across every network with partial-failure isolation and a TTL cache."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum

from ..adapters.tvl_adapters import BaseTVLAdapter
from ..constants import CACHE_TTL_MS
from ..domain import PriceSnapshot, TVLSnapshot
from ..logger import get_logger
from ..settings import ALL_NETWORKS, Network
from .cache import CacheEntry, Clock, now_ms
from .isolation import gather_isolated

logger = get_logger(__name__)


class TVLCacheState(str, Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"
    STALE_REFRESHING = "stale_refreshing"
    FAILED_PARTIAL = "failed_partial"


class TVLAggregator:
    """Collects TVL for all networks and serves it from cache within the TTL.

    EVM networks are isolated: a failed lookup contributes 0.0 and is listed in
    ``failed_networks``. Osmosis is fetched first and its errors propagate unless
    ``isolate_cosmos_failures`` is set. A propagated error leaves the previous
    cache entry untouched.
    """

    def __init__(
        self,
        adapters: Mapping[Network, BaseTVLAdapter],
        *,
        cache_ttl_ms: int = CACHE_TTL_MS,
        isolate_cosmos_failures: bool = False,
        clock: Clock = now_ms,
    ):
        self._adapters = dict(adapters)
        self._cache_ttl_ms = cache_ttl_ms
        self._isolate_cosmos_failures = isolate_cosmos_failures
        self._clock = clock
        self._entry: CacheEntry[TVLSnapshot] | None = None
        self._lock = asyncio.Lock()
        self._refreshing = False

    @property
    def state(self) -> TVLCacheState:
        entry = self._entry
        if entry is None:
            return TVLCacheState.EMPTY
        if entry.is_fresh(self._clock()):
            if entry.value.failed_networks:
                return TVLCacheState.FAILED_PARTIAL
            return TVLCacheState.FRESH
        if self._refreshing:
            return TVLCacheState.STALE_REFRESHING
        return TVLCacheState.STALE

    @property
    def snapshot(self) -> TVLSnapshot | None:
        """Last published snapshot, fresh or not."""
        return self._entry.value if self._entry is not None else None

    def _fresh_snapshot(self) -> TVLSnapshot | None:
        entry = self._entry
        if entry is None:
            return None
        now = self._clock()
        if not entry.is_fresh(now):
            return None
        logger.debug("TVL cache hit (age %d ms)", entry.age_ms(now))
        return entry.value

    async def fetch_all_tvl(self, prices: PriceSnapshot) -> TVLSnapshot:
        """Return TVL for every network, refreshing the cache if it has expired.

        Args:
            prices: Per-network PAGE/USD prices and the ETH/USD reference.
        """
        cached = self._fresh_snapshot()
        if cached is not None:
            return cached

        async with self._lock:
            cached = self._fresh_snapshot()
            if cached is not None:
                return cached

            self._refreshing = True
            try:
                snapshot = await self._collect(prices)
            finally:
                self._refreshing = False

            self._entry = CacheEntry(
                value=snapshot,
                timestamp_ms=snapshot.timestamp,
                ttl_ms=self._cache_ttl_ms,
            )
            return snapshot

    async def _collect(self, prices: PriceSnapshot) -> TVLSnapshot:
        tvl: dict[Network, float] = {}
        isolated = [n for n in self._adapters if n is not Network.OSMOSIS]

        osmosis = self._adapters.get(Network.OSMOSIS)
        if osmosis is not None:
            if self._isolate_cosmos_failures:
                isolated.append(Network.OSMOSIS)
            else:
                tvl[Network.OSMOSIS] = float(await osmosis.fetch_tvl(prices))

        results = await gather_isolated(
            {n: self._adapters[n].fetch_tvl(prices) for n in isolated},
            default=Decimal(0),
            label="TVL fetch",
        )
        for network, value in results.values.items():
            tvl[network] = float(value)

        if results.failed:
            logger.warning(
                "TVL unavailable for %s; counted as 0",
                ", ".join(sorted(n.value for n in results.failed)),
            )

        snapshot = TVLSnapshot(
            tvl={network: tvl.get(network, 0.0) for network in ALL_NETWORKS},
            timestamp=self._clock(),
            failed_networks=results.failed,
        )
        logger.info("TVL refreshed: total $%.2f", snapshot.total)
        return snapshot

    def invalidate(self) -> None:
        self._entry = None
