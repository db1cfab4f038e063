from __future__ import annotations

from ..processors import calculate_tvl_weights
from .context import PipelineContext


async def collect_tvl(ctx: PipelineContext) -> None:
    """Collect TVL for every network and derive the blending weights."""
    log = ctx.state.logger

    log.info("Collecting TVL...")
    snapshot = await ctx.state.tvl_aggregator.fetch_all_tvl(ctx.prices_required)
    ctx.tvl = snapshot
    ctx.weights = calculate_tvl_weights(snapshot)
    log.debug("TVL: %s, weights: %s", dict(snapshot.tvl), dict(ctx.weights))
