"""Report generation."""

from __future__ import annotations

from ..report import generate_report
from ..report import publish_report as publish_report_impl
from .context import PipelineContext


async def build_report(ctx: PipelineContext) -> None:
    """Assemble the metrics report from the collected snapshots.

    Sets the report in the context.
    """
    ctx.state.logger.info("Generating report...")
    ctx.report = await generate_report(
        ctx.prices_required,
        ctx.tvl_required,
        ctx.weights_required,
        ctx.metrics_required,
    )


async def publish_report(ctx: PipelineContext) -> None:
    """Publish the report in the configured output format."""
    s = ctx.state.settings
    await publish_report_impl(ctx.report_required, s.output_format)
