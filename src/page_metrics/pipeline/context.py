from __future__ import annotations

from dataclasses import dataclass

from ..domain import MarketMetrics, PriceSnapshot, TVLSnapshot, WeightMap
from ..report import TokenMetricsReport
from ..state import AppState


@dataclass
class PipelineContext:
    state: AppState
    prices: PriceSnapshot | None = None
    tvl: TVLSnapshot | None = None
    weights: WeightMap | None = None
    metrics: MarketMetrics | None = None
    report: TokenMetricsReport | None = None

    @property
    def prices_required(self) -> PriceSnapshot:
        if self.prices is None:
            raise RuntimeError(
                "Prices have not been set. Ensure fetch_prices() is called before accessing this property."
            )
        return self.prices

    @property
    def tvl_required(self) -> TVLSnapshot:
        if self.tvl is None:
            raise RuntimeError(
                "TVL has not been set. Ensure collect_tvl() is called before accessing this property."
            )
        return self.tvl

    @property
    def weights_required(self) -> WeightMap:
        if self.weights is None:
            raise RuntimeError(
                "Weights have not been set. Ensure collect_tvl() is called before accessing this property."
            )
        return self.weights

    @property
    def metrics_required(self) -> MarketMetrics:
        if self.metrics is None:
            raise RuntimeError(
                "Market metrics have not been set. Ensure blend_prices() is called before accessing this property."
            )
        return self.metrics

    @property
    def report_required(self) -> TokenMetricsReport:
        if self.report is None:
            raise RuntimeError(
                "Report has not been set. Ensure build_report() is called before accessing this property."
            )
        return self.report
