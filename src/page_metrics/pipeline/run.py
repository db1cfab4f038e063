"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio

from ..report import TokenMetricsReport
from ..state import AppState
from .context import PipelineContext
from .pricing import blend_prices, fetch_prices
from .report import build_report, publish_report
from .tvl import collect_tvl


async def run_metrics(state: AppState) -> TokenMetricsReport:
    """Run one aggregation request under the global deadline.

    This is a thin orchestrator that sequences the pipeline steps:
    1. Prices (ETH/USD reference, then every network)
    2. TVL and weights
    3. Weighted price, market cap and FDV
    4. Report generation

    Args:
        state: Application state containing settings, logger and aggregators

    Raises:
        asyncio.TimeoutError: If the request exceeds ``global_timeout_seconds``.
    """
    log = state.logger
    timeout_s = state.settings.global_timeout_seconds

    ctx = PipelineContext(state=state)

    async def _run_pipeline() -> None:
        await fetch_prices(ctx)
        await collect_tvl(ctx)
        await blend_prices(ctx)
        await build_report(ctx)

    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_pipeline()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_pipeline()
    except asyncio.TimeoutError as exc:
        log.error(
            "Metrics pipeline timed out",
            extra={"timeout_seconds": timeout_s},
        )
        raise asyncio.TimeoutError(
            f"Metrics request exceeded global timeout {timeout_s}s\n"
            " N.B. This can be changed via `global_timeout_seconds` "
            "or CLI flag `--global-timeout-seconds`."
        ) from exc

    log.info("Metrics completed")
    return ctx.report_required


async def run_and_publish(state: AppState) -> TokenMetricsReport:
    """Run the pipeline, then publish the report to stdout."""
    report = await run_metrics(state)
    ctx = PipelineContext(state=state, report=report)
    await publish_report(ctx)
    return report
