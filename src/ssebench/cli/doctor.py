# Copyright (c) Syntropy Systems
"""ssebench doctor command."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from ssebench.client import StorageClient
from ssebench.config import find_config_file, load_config, load_storage_settings
from ssebench.errors import ConfigurationError, SseBenchError
from ssebench.orchestrator import Orchestrator

if TYPE_CHECKING:
    from ssebench.config import BenchConfig, StorageSettings

console = Console()


async def check_bucket(settings: StorageSettings, config: BenchConfig) -> None:
    """Run the connectivity ping used at the start of every benchmark."""
    async with StorageClient.from_settings(settings, config) as client:
        await Orchestrator(client, config, settings).ping()


def doctor(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with benchmark settings"
    ),
    env_file: Optional[Path] = typer.Option(
        None, "--env-file", help="dotenv file with B2_* credentials (default .env)"
    ),
) -> None:
    """Check ssebench setup and diagnose issues.

    Verifies:
    - benchmark settings are valid
    - credentials and bucket are configured
    - the bucket answers a signed ListObjectsV2 request
    """
    issues: list[str] = []

    # Benchmark settings
    found = config_file or find_config_file()
    try:
        config = load_config(config_file)
        config.validate()
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] Settings: {escape(str(e))}")
        raise typer.Exit(1) from e
    if found is not None:
        console.print(f"[green]✓[/green] Settings file: {found}")
    else:
        console.print("[dim]-[/dim] Settings file: none, using defaults")

    # Credentials
    settings = load_storage_settings(env_file)
    try:
        settings.validate()
    except ConfigurationError as e:
        for problem in e.problems:
            console.print(f"[red]✗[/red] {problem}")
        console.print("  Set them in the environment or a .env file")
        raise typer.Exit(1) from e

    console.print(f"[green]✓[/green] Endpoint: {settings.endpoint}")
    console.print(f"[green]✓[/green] Region: {settings.region}")
    console.print(f"[green]✓[/green] Bucket: {settings.bucket}")

    # Connectivity
    try:
        asyncio.run(check_bucket(settings, config))
    except (SseBenchError, httpx.HTTPError) as e:
        console.print(
            f"[red]✗[/red] Bucket check failed: {escape(str(e))}", soft_wrap=True
        )
        issues.append("Bucket unreachable")
    else:
        console.print("[green]✓[/green] Bucket reachable (ListObjectsV2)")

    console.print()
    if issues:
        console.print(f"[red]{len(issues)} issue(s) found[/red]")
        raise typer.Exit(1)
    console.print("[green]All checks passed[/green]")
