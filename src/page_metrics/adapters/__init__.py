from __future__ import annotations

from collections.abc import Mapping

from ..readers import ChainReader, CosmosChainReader, TokenDeployment
from ..settings import EVM_NETWORKS, MetricsSettings, Network
from .price_adapters import (
    BasePriceAdapter,
    EthUsdAdapter,
    EvmPoolPriceAdapter,
    OsmosisPriceAdapter,
)
from .tvl_adapters import BaseTVLAdapter, EvmPoolTVLAdapter, OsmosisTVLAdapter


def _osmosis_reader(readers: Mapping[Network, ChainReader]) -> CosmosChainReader:
    reader = readers[Network.OSMOSIS]
    if not isinstance(reader, CosmosChainReader):
        raise TypeError("Osmosis requires a CosmosChainReader")
    return reader


def build_price_adapters(
    readers: Mapping[Network, ChainReader], settings: MetricsSettings
) -> dict[Network, BasePriceAdapter]:
    adapters: dict[Network, BasePriceAdapter] = {
        network: EvmPoolPriceAdapter(
            readers[network], TokenDeployment.for_network(network)
        )
        for network in EVM_NETWORKS
    }
    adapters[Network.OSMOSIS] = OsmosisPriceAdapter(
        _osmosis_reader(readers), settings.osmosis
    )
    return adapters


def build_tvl_adapters(
    readers: Mapping[Network, ChainReader], settings: MetricsSettings
) -> dict[Network, BaseTVLAdapter]:
    adapters: dict[Network, BaseTVLAdapter] = {
        network: EvmPoolTVLAdapter(
            readers[network], TokenDeployment.for_network(network)
        )
        for network in EVM_NETWORKS
    }
    adapters[Network.OSMOSIS] = OsmosisTVLAdapter(
        _osmosis_reader(readers), settings.osmosis
    )
    return adapters


def build_native_price_adapter(
    readers: Mapping[Network, ChainReader],
) -> EthUsdAdapter:
    return EthUsdAdapter(readers[Network.BASE])


__all__ = [
    "BasePriceAdapter",
    "BaseTVLAdapter",
    "EthUsdAdapter",
    "build_native_price_adapter",
    "build_price_adapters",
    "build_tvl_adapters",
]
