from __future__ import annotations

from .context import PipelineContext


async def fetch_prices(ctx: PipelineContext) -> None:
    """Fetch the ETH/USD reference and every network's PAGE/USD price."""
    log = ctx.state.logger

    log.info("Fetching prices...")
    prices = await ctx.state.price_aggregator.fetch_prices()
    if prices.stale_networks:
        log.warning(
            "Prices carried over from the previous snapshot: %s",
            ", ".join(sorted(n.value for n in prices.stale_networks)),
        )
    log.debug("Prices: %s", dict(prices.prices))
    ctx.prices = prices


async def blend_prices(ctx: PipelineContext) -> None:
    """Compute the TVL-weighted price, market cap and FDV."""
    log = ctx.state.logger

    metrics = ctx.state.price_aggregator.compute_weighted_price(
        ctx.prices_required, ctx.weights_required
    )
    log.info(
        "Weighted price $%s (market cap $%s, FDV $%s)",
        metrics.weighted_price,
        metrics.market_cap,
        metrics.fully_diluted_valuation,
    )
    ctx.metrics = metrics
