# Copyright (c) Syntropy Systems
"""ssebench run command."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from ssebench.client import StorageClient
from ssebench.config import load_config, load_storage_settings
from ssebench.errors import ConfigurationError, SseBenchError
from ssebench.log import configure_logging
from ssebench.orchestrator import Orchestrator, run_info
from ssebench.report import render_header, render_report, report_to_json

if TYPE_CHECKING:
    from ssebench.config import BenchConfig, StorageSettings
    from ssebench.models.samples import BenchReport

console = Console()
err_console = Console(stderr=True)


async def execute_run(settings: StorageSettings, config: BenchConfig) -> BenchReport:
    """Open the connection pool, run the benchmark and close the pool."""
    async with StorageClient.from_settings(settings, config) as client:
        return await Orchestrator(client, config, settings).run()


def run(  # noqa: PLR0913
    size_mb: Optional[float] = typer.Option(
        None, "--size-mb", "-s", help="Payload size in MB (default 8)"
    ),
    iterations: Optional[int] = typer.Option(
        None, "--iterations", "-n", help="Number of baseline/SSE pairs (default 5)"
    ),
    download: Optional[bool] = typer.Option(
        None, "--download/--no-download", help="Also time GET of both objects"
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", "-p", help="Key prefix for test objects (default sse-overhead)"
    ),
    verbose: Optional[bool] = typer.Option(
        None, "--verbose/--quiet", "-v/-q", help="Show progress and retry logs"
    ),
    retries: Optional[int] = typer.Option(
        None, "--retries", "-r", help="Max automatic retries per request (default 5)"
    ),
    base_delay_ms: Optional[float] = typer.Option(
        None, "--base-delay-ms", help="Base backoff step in ms (default 150)"
    ),
    pause_ms: Optional[float] = typer.Option(
        None, "--pause-ms", help="Pause after each iteration in ms (default 50)"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with benchmark settings"
    ),
    env_file: Optional[Path] = typer.Option(
        None, "--env-file", help="dotenv file with B2_* credentials (default .env)"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the report as JSON instead of tables"
    ),
) -> None:
    """
    Measure the latency added by SSE AES256 on PUT and GET.

    Credentials come from B2_ACCESS_KEY_ID, B2_SECRET_ACCESS_KEY and B2_BUCKET
    (optionally B2_ENDPOINT, B2_REGION, TEST_KEY), read from the environment
    or a .env file.

    Examples:

        ssebench run

        ssebench run --size-mb 32 --iterations 20 --no-download

        ssebench run --json > result.json
    """
    try:
        config = load_config(config_file)
        overrides = {
            "size_mb": size_mb,
            "iterations": iterations,
            "download": download,
            "prefix": prefix,
            "verbose": verbose,
            "max_retries": retries,
            "base_delay_ms": base_delay_ms,
            "pause_ms": pause_ms,
        }
        for name, value in overrides.items():
            if value is not None:
                setattr(config, name, value)
        config.validate()

        settings = load_storage_settings(env_file)
        settings.validate()
    except ConfigurationError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1) from e

    configure_logging(config.verbose, err_console)

    if not json_output:
        render_header(run_info(settings, config), console)

    try:
        report = asyncio.run(execute_run(settings, config))
    except (SseBenchError, httpx.HTTPError) as e:
        err_console.print(
            f"[red]Fatal:[/red] {escape(str(e))}", highlight=False, soft_wrap=True
        )
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(report_to_json(report))
    else:
        render_report(report, console)

