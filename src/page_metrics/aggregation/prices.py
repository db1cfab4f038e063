from __future__ import annotations

import asyncio
from collections.abc import Mapping
from decimal import Decimal

from ..adapters.price_adapters import BasePriceAdapter, EthUsdAdapter
from ..constants import CACHE_TTL_MS, CIRCULATING_SUPPLY, TOTAL_SUPPLY
from ..domain import MarketMetrics, PriceSnapshot, WeightMap
from ..errors import PriceUnavailableError
from ..logger import get_logger
from ..processors import compute_weighted_price as blend_weighted_price
from ..settings import Network
from .cache import CacheEntry, Clock, now_ms
from .isolation import gather_isolated

logger = get_logger(__name__)


class PriceAggregator:
    """Fetches per-network PAGE prices and blends them by TVL weight."""

    def __init__(
        self,
        native_adapter: EthUsdAdapter,
        adapters: Mapping[Network, BasePriceAdapter],
        *,
        cache_ttl_ms: int = CACHE_TTL_MS,
        circulating_supply: float = CIRCULATING_SUPPLY,
        total_supply: float = TOTAL_SUPPLY,
        clock: Clock = now_ms,
    ):
        self._native_adapter = native_adapter
        self._adapters = dict(adapters)
        self._cache_ttl_ms = cache_ttl_ms
        self._circulating_supply = circulating_supply
        self._total_supply = total_supply
        self._clock = clock
        self._entry: CacheEntry[PriceSnapshot] | None = None
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> PriceSnapshot | None:
        return self._entry.value if self._entry is not None else None

    def _fresh_snapshot(self) -> PriceSnapshot | None:
        entry = self._entry
        if entry is not None and entry.is_fresh(self._clock()):
            logger.debug("Price cache hit")
            return entry.value
        return None

    async def fetch_prices(self) -> PriceSnapshot:
        """Return the current price snapshot, refreshing it when the cache has expired.

        The ETH/USD reference is fetched first and its failure propagates.
        A failed network price falls back to the previous snapshot's value.

        Raises:
            PriceUnavailableError: A network price failed and no earlier value exists.
        """
        cached = self._fresh_snapshot()
        if cached is not None:
            return cached

        async with self._lock:
            cached = self._fresh_snapshot()
            if cached is not None:
                return cached

            snapshot = await self._collect()
            self._entry = CacheEntry(
                value=snapshot,
                timestamp_ms=snapshot.timestamp,
                ttl_ms=self._cache_ttl_ms,
            )
            return snapshot

    async def _collect(self) -> PriceSnapshot:
        native_price = await self._native_adapter.fetch_native_price()
        logger.info("ETH/USD reference price: %s", native_price)

        results = await gather_isolated(
            {
                network: adapter.fetch_price(native_price)
                for network, adapter in self._adapters.items()
            },
            default=Decimal(0),
            label="price fetch",
        )

        previous = self.snapshot
        prices: dict[Network, float] = {}
        stale: set[Network] = set()
        for network in self._adapters:
            error = results.errors.get(network)
            if error is None:
                prices[network] = float(results.values[network])
                continue
            if previous is not None and network in previous.prices:
                logger.warning(
                    "Using previous %s price %s after fetch error: %s",
                    network.value,
                    previous.prices[network],
                    error,
                )
                prices[network] = previous.prices[network]
                stale.add(network)
            else:
                raise PriceUnavailableError(network, error) from error

        return PriceSnapshot(
            prices=prices,
            native_price=float(native_price),
            timestamp=self._clock(),
            stale_networks=frozenset(stale),
        )

    def compute_weighted_price(
        self, prices: PriceSnapshot, weights: WeightMap
    ) -> MarketMetrics:
        """Weighted price, market cap and FDV using the configured supply figures."""
        return blend_weighted_price(
            prices,
            weights,
            circulating_supply=self._circulating_supply,
            total_supply=self._total_supply,
        )

    def invalidate(self) -> None:
        self._entry = None
