from __future__ import annotations

import json
import logging

from ..settings import OutputFormat
from .formatter import format_report_table
from .generator import TokenMetricsReport

logger = logging.getLogger(__name__)


async def publish_report(
    report: TokenMetricsReport,
    output_format: OutputFormat = OutputFormat.TABLE,
) -> None:
    """Publish report to stdout.

    Args:
        report: The metrics report to publish
        output_format: TABLE for the rich dashboard, JSON for the raw payload
    """
    logger.debug("Publishing report as %s", output_format.value)
    if output_format == OutputFormat.JSON:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        format_report_table(report)
