"""CLI entrypoint for page-metrics."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from .errors import PageMetricsError
from .logger import setup_logging
from .settings import MetricsSettings, OutputFormat
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="PAGE token price, TVL and market metrics across Ethereum, Optimism, Base and Osmosis.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("page_metrics")


@app.callback(invoke_without_command=True)
def metrics(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [page_metrics] table).",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: rich table or raw JSON.",
        ),
    ] = None,
    cache_ttl_ms: Annotated[
        int | None,
        typer.Option(
            "--cache-ttl-ms",
            help="How long price and TVL snapshots stay fresh, in milliseconds.",
        ),
    ] = None,
    global_timeout_seconds: Annotated[
        float | None,
        typer.Option(
            "--global-timeout-seconds",
            help="Deadline for the whole request; 0 disables it.",
        ),
    ] = None,
    isolate_cosmos_failures: Annotated[
        bool | None,
        typer.Option(
            "--isolate-cosmos-failures/--propagate-cosmos-failures",
            help="Count a failed Osmosis TVL lookup as 0 instead of failing the request.",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Aggregate PAGE prices and TVL and print the market metrics report.

    This is the default command that loads configuration, builds the
    aggregation service and runs one metrics request.
    """
    if config_path:
        os.environ["PAGE_METRICS_CONFIG"] = str(config_path)

    init_kwargs: dict[str, OutputFormat | bool | int | float | str] = {}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    if output_format is not None:
        init_kwargs["output_format"] = output_format
    if cache_ttl_ms is not None:
        init_kwargs["cache_ttl_ms"] = cache_ttl_ms
    if global_timeout_seconds is not None:
        init_kwargs["global_timeout_seconds"] = global_timeout_seconds
    if isolate_cosmos_failures is not None:
        init_kwargs["isolate_cosmos_failures"] = isolate_cosmos_failures

    try:
        settings = MetricsSettings(**init_kwargs)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    setup_logging(settings.log_level)
    logger = _build_logger()
    state = AppState.build(settings, logger)

    from .pipeline.run import run_and_publish

    try:
        asyncio.run(run_and_publish(state))
    except (PageMetricsError, asyncio.TimeoutError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
