from __future__ import annotations

from decimal import Decimal

from ..constants import CIRCULATING_SUPPLY, TOTAL_SUPPLY
from ..domain import MarketMetrics, PriceSnapshot, WeightMap
from ..settings import ALL_NETWORKS
from ..units import to_decimal


def compute_weighted_price(
    prices: PriceSnapshot,
    weights: WeightMap,
    circulating_supply: float | Decimal = CIRCULATING_SUPPLY,
    total_supply: float | Decimal = TOTAL_SUPPLY,
) -> MarketMetrics:
    """Blend per-network prices by weight and derive market cap and FDV.

    The weighted price is ``sum(price[n] * weight[n])`` without renormalizing;
    a network missing from either map contributes nothing. Floats are lifted
    through their decimal repr, so ``10 * 0.4 + 11 * 0.3 + 9 * 0.2 + 10 * 0.1``
    gives exactly ``10.1``.
    """
    weighted_price = sum(
        (
            to_decimal(prices.prices.get(network, 0.0))
            * to_decimal(weights.get(network, 0.0))
            for network in ALL_NETWORKS
        ),
        Decimal(0),
    )
    circulating = to_decimal(circulating_supply)
    total = to_decimal(total_supply)
    return MarketMetrics(
        weighted_price=weighted_price,
        market_cap=weighted_price * circulating,
        fully_diluted_valuation=weighted_price * total,
        circulating_supply=circulating,
        total_supply=total,
    )
