"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .adapters import (
    build_native_price_adapter,
    build_price_adapters,
    build_tvl_adapters,
)
from .aggregation import PriceAggregator, TVLAggregator
from .connections import ConnectionManager
from .readers import ChainReader, CosmosChainReader, EvmChainReader
from .settings import EVM_NETWORKS, MetricsSettings, Network

if TYPE_CHECKING:
    from .report import TokenMetricsReport


@dataclass
class AppState:
    """Long-lived service object: settings, logger, connections, readers and aggregators.

    Built once per process. Passed through the pipeline to avoid global state
    and enable testing.
    """

    settings: MetricsSettings
    logger: logging.Logger
    connections: ConnectionManager
    price_aggregator: PriceAggregator
    tvl_aggregator: TVLAggregator
    readers: dict[Network, ChainReader] = field(default_factory=dict)

    @classmethod
    def build(
        cls, settings: MetricsSettings, logger: logging.Logger | None = None
    ) -> AppState:
        connections = ConnectionManager.from_settings(settings)

        readers: dict[Network, ChainReader] = {
            network: EvmChainReader(
                network,
                connections,
                max_concurrent_calls=settings.rpc_max_concurrent_calls,
            )
            for network in EVM_NETWORKS
        }
        readers[Network.OSMOSIS] = CosmosChainReader(
            settings.osmosis,
            http_timeout=settings.http_timeout_seconds,
            max_tries=settings.http_max_tries,
        )

        price_aggregator = PriceAggregator(
            build_native_price_adapter(readers),
            build_price_adapters(readers, settings),
            cache_ttl_ms=settings.cache_ttl_ms,
            circulating_supply=settings.supply.circulating_supply,
            total_supply=settings.supply.total_supply,
        )
        tvl_aggregator = TVLAggregator(
            build_tvl_adapters(readers, settings),
            cache_ttl_ms=settings.cache_ttl_ms,
            isolate_cosmos_failures=settings.isolate_cosmos_failures,
        )

        return cls(
            settings=settings,
            logger=logger or logging.getLogger("page_metrics"),
            connections=connections,
            price_aggregator=price_aggregator,
            tvl_aggregator=tvl_aggregator,
            readers=readers,
        )

    def invalidate(self) -> None:
        """Drop cached connections, prices and TVL so the next request refetches."""
        self.connections.invalidate()
        self.price_aggregator.invalidate()
        self.tvl_aggregator.invalidate()

    async def refresh(self) -> TokenMetricsReport:
        """Invalidate every cache and run a full aggregation."""
        from .pipeline.run import run_metrics

        self.invalidate()
        return await run_metrics(self)
