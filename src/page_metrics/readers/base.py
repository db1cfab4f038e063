from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union

from ..constants import PAGE_DEPLOYMENTS, PoolType
from ..settings import Network


@dataclass(frozen=True)
class TokenMetadata:
    decimals: int
    symbol: str
    total_supply: int


@dataclass(frozen=True)
class PoolRef:
    """Address (EVM) or pool id (Osmosis) of a liquidity pool."""

    address: str
    kind: PoolType | None = None


@dataclass(frozen=True)
class TokenDeployment:
    """PAGE contract on one EVM network and the pool that prices it against WETH."""

    address: str
    decimals: int
    pool: PoolRef

    @classmethod
    def for_network(cls, network: Network) -> TokenDeployment:
        try:
            cfg = PAGE_DEPLOYMENTS[network.value]
        except KeyError:
            raise ValueError(f"No PAGE deployment on {network.value}") from None
        return cls(
            address=cfg["address"],
            decimals=cfg["decimals"],
            pool=PoolRef(address=cfg["pool_address"], kind=cfg["pool_type"]),
        )


@dataclass(frozen=True)
class V2PoolState:
    reserve0: int
    reserve1: int
    block_timestamp_last: int
    token0: str
    token1: str


@dataclass(frozen=True)
class V3PoolState:
    sqrt_price_x96: int
    tick: int
    liquidity: int
    token0: str
    token1: str


@dataclass(frozen=True)
class CosmosPoolState:
    pool_id: str
    assets: dict[str, int] = field(default_factory=dict)  # denom -> raw amount

    def amount(self, denom: str) -> int:
        return self.assets.get(denom, 0)


PoolState = Union[V2PoolState, V3PoolState, CosmosPoolState]


class ChainReader(ABC):
    """Abstract base class for per-network chain readers."""

    def __init__(self, network: Network):
        self.network = network

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Native asset balance of ``address`` in base units."""
        ...

    @abstractmethod
    async def get_token_balance(self, token: str, owner: str) -> int:
        """Balance of ``token`` held by ``owner`` in base units."""
        ...

    @abstractmethod
    async def get_token_metadata(self, token: str) -> TokenMetadata:
        ...

    @abstractmethod
    async def get_pool_state(self, pool: PoolRef) -> PoolState:
        ...

    @abstractmethod
    async def call_raw(self, target: Any, method: Any, args: tuple = ()) -> Any:
        """Escape hatch for reads that have no typed operation."""
        ...
