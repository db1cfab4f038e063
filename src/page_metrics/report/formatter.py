"""Rich console formatter for metrics reports."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..settings import ALL_NETWORKS
from .generator import TokenMetricsReport


def _format_usd(value: float) -> str:
    return f"${value:,.2f}"


def _format_price(value: float) -> str:
    """PAGE trades well below a dollar, so keep more precision than _format_usd."""
    return f"${value:,.6f}"


def _format_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S UTC"
    )


def format_report_table(
    report: TokenMetricsReport, console: Console | None = None
) -> None:
    """Print a two-panel summary plus a per-network breakdown to stdout.

    Args:
        report: The metrics report to format
        console: Console to render to; a fresh stdout console by default
    """
    console = console or Console()

    market_table = Table(show_header=False, box=None, padding=(0, 1))
    market_table.add_column("Key", style="dim")
    market_table.add_column("Value", style="green")
    market_table.add_row("Weighted Price", _format_price(report.prices["weighted"]))
    market_table.add_row("Market Cap", _format_usd(report.market_cap))
    market_table.add_row("FDV", _format_usd(report.fdv))
    market_table.add_row("ETH/USD", _format_usd(report.eth_price))

    market_panel = Panel(market_table, title="[bold]Market[/]", border_style="green")

    supply_table = Table(show_header=False, box=None, padding=(0, 1))
    supply_table.add_column("Key", style="dim")
    supply_table.add_column("Value", style="cyan")
    supply_table.add_row("Circulating", f"{report.circulating_supply:,.0f}")
    supply_table.add_row("Total", f"{report.total_supply:,.0f}")
    supply_table.add_row("Total TVL", _format_usd(report.tvl["total"]))
    supply_table.add_row("Updated", _format_timestamp(report.timestamp))

    supply_panel = Panel(supply_table, title="[bold]Supply[/]", border_style="blue")

    top_row = Columns([market_panel, supply_panel], equal=True, expand=True)

    network_table = Table(title=None, expand=True, show_lines=False)
    network_table.add_column("Network", style="cyan", no_wrap=True)
    network_table.add_column("Price", justify="right", style="yellow")
    network_table.add_column("TVL", justify="right", style="green")
    network_table.add_column("Weight", justify="right")
    network_table.add_column("Status", justify="center")

    failed = set(report.failed_networks)
    for network in ALL_NETWORKS:
        name = network.value
        status = "[red]failed[/]" if name in failed else "[green]ok[/]"
        network_table.add_row(
            name,
            _format_price(report.prices.get(name, 0.0)),
            _format_usd(report.tvl.get(name, 0.0)),
            f"{report.weights.get(name, 0.0) * 100:.2f}%",
            status,
        )

    network_panel = Panel(
        network_table, title="[bold]Networks[/]", border_style="magenta"
    )

    console.print(Group(top_row, network_panel))
