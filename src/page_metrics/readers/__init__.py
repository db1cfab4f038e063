from .base import (
    ChainReader,
    CosmosPoolState,
    PoolRef,
    PoolState,
    TokenDeployment,
    TokenMetadata,
    V2PoolState,
    V3PoolState,
)
from .cosmos import CosmosChainReader
from .evm import EvmChainReader

__all__ = [
    "ChainReader",
    "CosmosChainReader",
    "CosmosPoolState",
    "EvmChainReader",
    "PoolRef",
    "PoolState",
    "TokenDeployment",
    "TokenMetadata",
    "V2PoolState",
    "V3PoolState",
]
