"""Pool reads shared by the price and TVL adapters."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal

from ..constants import OSMOSIS_NATIVE_DENOM
from ..errors import DataShapeError
from ..processors.liquidity import (
    OsmosisPricing,
    osmosis_prices,
    osmosis_tvl,
    price_from_reserves,
    price_from_sqrt_price_x96,
    v3_token_amounts,
)
from ..readers import (
    ChainReader,
    CosmosChainReader,
    CosmosPoolState,
    PoolRef,
    TokenDeployment,
    TokenMetadata,
    V2PoolState,
    V3PoolState,
)
from ..settings import CosmosSettings
from ..units import from_base_units


@contextmanager
def _pool_math(pool: str) -> Iterator[None]:
    """Report pool arithmetic on degenerate state as a DataShapeError."""
    try:
        yield
    except (ValueError, ArithmeticError) as exc:
        raise DataShapeError(f"Cannot price pool {pool}: {exc}") from exc


@dataclass(frozen=True)
class PairPoolView:
    """A two-token pool with the base token located and decimals resolved.

    Degenerate pool state (empty reserves, zero sqrt price, negative
    liquidity) surfaces as DataShapeError.
    """

    state: V2PoolState | V3PoolState
    base_is_token0: bool
    token0: TokenMetadata
    token1: TokenMetadata

    @property
    def name(self) -> str:
        return f"{self.token0.symbol}/{self.token1.symbol}"

    @property
    def base(self) -> TokenMetadata:
        return self.token0 if self.base_is_token0 else self.token1

    def amounts(self) -> tuple[Decimal, Decimal]:
        """Human-unit amounts of (token0, token1) held by the pool."""
        if isinstance(self.state, V2PoolState):
            return (
                from_base_units(self.state.reserve0, self.token0.decimals),
                from_base_units(self.state.reserve1, self.token1.decimals),
            )
        with _pool_math(self.name):
            return v3_token_amounts(
                self.state.sqrt_price_x96,
                self.state.liquidity,
                self.token0.decimals,
                self.token1.decimals,
            )

    def base_and_quote_amounts(self) -> tuple[Decimal, Decimal]:
        amount0, amount1 = self.amounts()
        return (amount0, amount1) if self.base_is_token0 else (amount1, amount0)

    def quote_per_base(self) -> Decimal:
        """Price of one base token in the paired asset."""
        if isinstance(self.state, V2PoolState):
            base_amount, quote_amount = self.base_and_quote_amounts()
            with _pool_math(self.name):
                return price_from_reserves(base_amount, quote_amount, Decimal(1))
        with _pool_math(self.name):
            token1_per_token0 = price_from_sqrt_price_x96(
                self.state.sqrt_price_x96, self.token0.decimals, self.token1.decimals
            )
            if self.base_is_token0:
                return token1_per_token0
            return 1 / token1_per_token0


async def read_pair_pool(
    reader: ChainReader, pool: PoolRef, base_token: str
) -> PairPoolView:
    """Read pool state and both tokens' metadata; ``base_token`` marks the priced side."""
    state = await reader.get_pool_state(pool)
    if not isinstance(state, (V2PoolState, V3PoolState)):
        raise DataShapeError(f"Expected an EVM pool state for {pool.address}")

    base = base_token.lower()
    if state.token0.lower() == base:
        base_is_token0 = True
    elif state.token1.lower() == base:
        base_is_token0 = False
    else:
        raise DataShapeError(
            f"Token {base_token} is not part of pool {pool.address} "
            f"({state.token0}, {state.token1})"
        )

    token0, token1 = await asyncio.gather(
        reader.get_token_metadata(state.token0),
        reader.get_token_metadata(state.token1),
    )
    return PairPoolView(
        state=state, base_is_token0=base_is_token0, token0=token0, token1=token1
    )


async def read_page_pool(
    reader: ChainReader, deployment: TokenDeployment
) -> PairPoolView:
    """Read the PAGE/WETH pool, checking PAGE decimals against the deployment."""
    view = await read_pair_pool(reader, deployment.pool, deployment.address)
    if view.base.decimals != deployment.decimals:
        raise DataShapeError(
            f"PAGE at {deployment.address} reports {view.base.decimals} decimals, "
            f"expected {deployment.decimals}"
        )
    return view


@dataclass(frozen=True)
class OsmosisPoolView:
    page_amount: Decimal
    osmo_amount: Decimal
    quote_osmo_amount: Decimal
    usdc_amount: Decimal

    @property
    def pricing(self) -> OsmosisPricing:
        with _pool_math("PAGE/OSMO via OSMO/USDC"):
            return osmosis_prices(
                self.page_amount,
                self.osmo_amount,
                self.quote_osmo_amount,
                self.usdc_amount,
            )

    @property
    def tvl(self) -> Decimal:
        pricing = self.pricing
        return osmosis_tvl(
            self.page_amount, self.osmo_amount, pricing.page_usd, pricing.osmo_usd
        )


def _pool_amount(
    reader: CosmosChainReader, pool: CosmosPoolState, denom: str
) -> Decimal:
    if denom not in pool.assets:
        raise DataShapeError(f"Could not find {denom} in Osmosis pool {pool.pool_id}")
    return from_base_units(pool.assets[denom], reader.get_decimals(denom))


async def read_osmosis_pools(
    reader: CosmosChainReader, config: CosmosSettings
) -> OsmosisPoolView:
    """Read the PAGE/OSMO pool and the OSMO/USDC reference pool."""
    page_pool, quote_pool = await asyncio.gather(
        reader.get_pool_state(PoolRef(config.pool_id)),
        reader.get_pool_state(PoolRef(config.quote_pool_id)),
    )
    return OsmosisPoolView(
        page_amount=_pool_amount(reader, page_pool, config.denom),
        osmo_amount=_pool_amount(reader, page_pool, OSMOSIS_NATIVE_DENOM),
        quote_osmo_amount=_pool_amount(reader, quote_pool, OSMOSIS_NATIVE_DENOM),
        usdc_amount=_pool_amount(reader, quote_pool, config.usdc_denom),
    )
