from __future__ import annotations

from .formatter import format_report_table
from .generator import TokenMetricsReport, generate_report
from .publisher import publish_report

__all__ = [
    "TokenMetricsReport",
    "format_report_table",
    "generate_report",
    "publish_report",
]
