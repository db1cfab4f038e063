"""Domain models shared by the aggregators, processors and report."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from ..settings import Network

WeightMap = Mapping[Network, float]


@dataclass(frozen=True)
class TVLSnapshot:
    """TVL in USD for every network at one point in time.

    Networks whose lookup failed carry 0.0 and are listed in ``failed_networks``.
    """

    tvl: Mapping[Network, float]
    timestamp: int  # epoch ms
    failed_networks: frozenset[Network] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tvl", MappingProxyType(dict(self.tvl)))
        object.__setattr__(self, "failed_networks", frozenset(self.failed_networks))

    @property
    def total(self) -> float:
        return sum(self.tvl.values())


@dataclass(frozen=True)
class PriceSnapshot:
    """Raw PAGE/USD price per network plus the ETH/USD reference price."""

    prices: Mapping[Network, float]
    native_price: float
    timestamp: int  # epoch ms
    # networks whose price was carried over from the previous snapshot
    stale_networks: frozenset[Network] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "prices", MappingProxyType(dict(self.prices)))
        object.__setattr__(self, "stale_networks", frozenset(self.stale_networks))


@dataclass(frozen=True)
class MarketMetrics:
    weighted_price: Decimal
    market_cap: Decimal
    fully_diluted_valuation: Decimal
    circulating_supply: Decimal
    total_supply: Decimal


__all__ = ["MarketMetrics", "PriceSnapshot", "TVLSnapshot", "WeightMap"]
