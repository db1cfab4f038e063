"""Pool arithmetic for constant-product, concentrated-liquidity and Osmosis pools.

All amounts and prices are Decimals in human units (already scaled by token decimals).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..units import from_base_units

Q96 = 2**96
Q192 = 2**192


def price_from_sqrt_price_x96(
    sqrt_price_x96: int, token0_decimals: int, token1_decimals: int
) -> Decimal:
    """Price of one token0 expressed in token1, from a V3 ``slot0`` sqrt price.

    ``sqrtPriceX96 ** 2 / 2 ** 192`` is token1 per token0 in base units; the
    ``10 ** (decimals0 - decimals1)`` factor converts it to human units.
    """
    if sqrt_price_x96 <= 0:
        raise ValueError(f"sqrtPriceX96 must be positive, got {sqrt_price_x96}")
    raw = Decimal(sqrt_price_x96 * sqrt_price_x96) / Decimal(Q192)
    return raw.scaleb(token0_decimals - token1_decimals)


def v3_token_amounts(
    sqrt_price_x96: int,
    liquidity: int,
    token0_decimals: int,
    token1_decimals: int,
) -> tuple[Decimal, Decimal]:
    """Approximate token amounts backing the in-range liquidity of a V3 pool.

    Treats all liquidity as concentrated at the current price:
    ``amount0 = L * Q96 / sqrtP`` and ``amount1 = L * sqrtP / Q96``.
    """
    if sqrt_price_x96 <= 0:
        raise ValueError(f"sqrtPriceX96 must be positive, got {sqrt_price_x96}")
    if liquidity < 0:
        raise ValueError(f"liquidity must be non-negative, got {liquidity}")
    amount0 = (liquidity * Q96) // sqrt_price_x96
    amount1 = (liquidity * sqrt_price_x96) // Q96
    return (
        from_base_units(amount0, token0_decimals),
        from_base_units(amount1, token1_decimals),
    )


def pool_tvl(
    amount0: Decimal, price0: Decimal, amount1: Decimal, price1: Decimal
) -> Decimal:
    return amount0 * price0 + amount1 * price1


def price_from_reserves(
    base_amount: Decimal, quote_amount: Decimal, quote_price: Decimal
) -> Decimal:
    """USD price of the base token given pool reserves and the quote token's USD price."""
    if base_amount <= 0:
        raise ValueError("Base token reserve is empty; price is undefined")
    return quote_amount * quote_price / base_amount


@dataclass(frozen=True)
class OsmosisPricing:
    osmo_usd: Decimal
    page_usd: Decimal


def osmosis_prices(
    page_amount: Decimal,
    osmo_amount: Decimal,
    quote_osmo_amount: Decimal,
    usdc_amount: Decimal,
) -> OsmosisPricing:
    """Derive OSMO/USD from the OSMO/USDC pool, then PAGE/USD from the PAGE/OSMO pool.

    Args:
        page_amount: PAGE held by the PAGE/OSMO pool.
        osmo_amount: OSMO held by the PAGE/OSMO pool.
        quote_osmo_amount: OSMO held by the OSMO/USDC pool.
        usdc_amount: USDC held by the OSMO/USDC pool.
    """
    osmo_usd = price_from_reserves(quote_osmo_amount, usdc_amount, Decimal(1))
    page_usd = price_from_reserves(page_amount, osmo_amount, osmo_usd)
    return OsmosisPricing(osmo_usd=osmo_usd, page_usd=page_usd)


def osmosis_tvl(
    page_amount: Decimal,
    osmo_amount: Decimal,
    page_usd: Decimal,
    osmo_usd: Decimal,
) -> Decimal:
    return pool_tvl(osmo_amount, osmo_usd, page_amount, page_usd)
