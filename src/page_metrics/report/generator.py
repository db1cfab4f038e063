from __future__ import annotations

from dataclasses import dataclass, field

from ..aggregation.cache import now_ms
from ..domain import MarketMetrics, PriceSnapshot, TVLSnapshot, WeightMap
from ..settings import ALL_NETWORKS


@dataclass
class TokenMetricsReport:
    """Aggregated PAGE market metrics, ready for publishing."""

    timestamp: int  # epoch ms
    prices: dict[str, float]  # network -> PAGE/USD, plus "weighted"
    eth_price: float
    tvl: dict[str, float]  # network -> USD, plus "total"
    weights: dict[str, float]
    market_cap: float
    fdv: float
    circulating_supply: float
    total_supply: float
    failed_networks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert report to the JSON shape served to dashboards."""
        return {
            "timestamp": self.timestamp,
            "prices": dict(self.prices),
            "ethPrice": self.eth_price,
            "tvl": dict(self.tvl),
            "weights": dict(self.weights),
            "marketCap": self.market_cap,
            "fdv": self.fdv,
            "supply": {
                "circulating": self.circulating_supply,
                "total": self.total_supply,
            },
            "failedNetworks": list(self.failed_networks),
        }


async def generate_report(
    prices: PriceSnapshot,
    tvl: TVLSnapshot,
    weights: WeightMap,
    metrics: MarketMetrics,
    timestamp: int | None = None,
) -> TokenMetricsReport:
    """Generate a metrics report from the aggregated snapshots.

    Args:
        prices: Per-network PAGE/USD prices and the ETH/USD reference
        tvl: Per-network TVL snapshot
        weights: TVL weights used for blending
        metrics: Weighted price, market cap and FDV
        timestamp: Report time in epoch ms; defaults to now

    Returns:
        Complete report ready for publishing
    """
    report_prices = {n.value: prices.prices.get(n, 0.0) for n in ALL_NETWORKS}
    report_prices["weighted"] = float(metrics.weighted_price)

    report_tvl = {n.value: tvl.tvl.get(n, 0.0) for n in ALL_NETWORKS}
    report_tvl["total"] = tvl.total

    return TokenMetricsReport(
        timestamp=now_ms() if timestamp is None else timestamp,
        prices=report_prices,
        eth_price=prices.native_price,
        tvl=report_tvl,
        weights={n.value: weights.get(n, 0.0) for n in ALL_NETWORKS},
        market_cap=float(metrics.market_cap),
        fdv=float(metrics.fully_diluted_valuation),
        circulating_supply=float(metrics.circulating_supply),
        total_supply=float(metrics.total_supply),
        failed_networks=sorted(n.value for n in tvl.failed_networks),
    )
