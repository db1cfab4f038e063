from __future__ import annotations

from .liquidity import (
    OsmosisPricing,
    osmosis_prices,
    osmosis_tvl,
    pool_tvl,
    price_from_reserves,
    price_from_sqrt_price_x96,
    v3_token_amounts,
)
from .weighted_price import compute_weighted_price
from .weights import EQUAL_WEIGHTS, calculate_tvl_weights

__all__ = [
    "EQUAL_WEIGHTS",
    "OsmosisPricing",
    "calculate_tvl_weights",
    "compute_weighted_price",
    "osmosis_prices",
    "osmosis_tvl",
    "pool_tvl",
    "price_from_reserves",
    "price_from_sqrt_price_x96",
    "v3_token_amounts",
]
