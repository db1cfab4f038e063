from __future__ import annotations

import math
from collections.abc import Mapping
from types import MappingProxyType

from ..domain import TVLSnapshot, WeightMap
from ..errors import WeightComputationError
from ..logger import get_logger
from ..settings import ALL_NETWORKS, Network

logger = get_logger(__name__)

EQUAL_WEIGHTS: WeightMap = MappingProxyType(
    {network: 1 / len(ALL_NETWORKS) for network in ALL_NETWORKS}
)


def _check_tvl(tvl: Mapping[Network, float]) -> None:
    for network, value in tvl.items():
        if not math.isfinite(value) or value < 0:
            raise WeightComputationError(
                f"Invalid TVL for {network.value}: {value!r}"
            )


def calculate_tvl_weights(snapshot: TVLSnapshot | Mapping[Network, float]) -> WeightMap:
    """Turn per-network TVL into blending weights that sum to 1.

    Falls back to equal weights when there is no liquidity anywhere or when a
    TVL value is negative or not finite. Never raises.
    """
    tvl = snapshot.tvl if isinstance(snapshot, TVLSnapshot) else snapshot
    try:
        _check_tvl(tvl)
        total = sum(tvl.get(network, 0.0) for network in ALL_NETWORKS)
        if total <= 0:
            logger.warning("Total TVL is %s, using equal weights", total)
            return EQUAL_WEIGHTS
        return MappingProxyType(
            {network: tvl.get(network, 0.0) / total for network in ALL_NETWORKS}
        )
    except WeightComputationError as exc:
        logger.error("Cannot weight by TVL, using equal weights: %s", exc)
        return EQUAL_WEIGHTS
