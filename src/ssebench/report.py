# Copyright (c) Syntropy Systems
"""Render benchmark reports as rich tables or JSON."""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

from ssebench.models.samples import round_ms

if TYPE_CHECKING:
    from rich.console import Console

    from ssebench.models.samples import BenchReport, RunInfo


def _ms(value: float) -> str:
    return str(round_ms(value))


def render_header(info: RunInfo, console: Console) -> None:
    """Print what is being measured."""
    console.print(f"[dim]Endpoint[/dim] {info.endpoint}")
    console.print(f"[dim]Bucket  [/dim] {info.bucket}")
    console.print(f"[dim]Key base[/dim] {info.base_key}")
    console.print(
        f"[dim]Size    [/dim] {info.size_mb:g} MB  "
        f"[dim]Iterations[/dim] {info.iterations}  "
        f"[dim]Download[/dim] {str(info.download).lower()}\n"
    )


def summary_table(report: BenchReport) -> Table:
    """Mean and percentiles per labelled sample set."""
    table = Table(title="Results ms", title_justify="left")
    table.add_column("name")
    for column in ("count", "meanMs", "p50Ms", "p95Ms", "p99Ms"):
        table.add_column(column, justify="right")

    for stat in report.summaries:
        table.add_row(
            stat.label,
            str(stat.count),
            _ms(stat.mean_ms),
            _ms(stat.p50_ms),
            _ms(stat.p95_ms),
            _ms(stat.p99_ms),
        )
    return table


def overhead_table(report: BenchReport) -> Table:
    """Headline overhead per operation."""
    table = Table(
        title="Estimated mean overhead added by SSE AES256", title_justify="left"
    )
    table.add_column("operation")
    table.add_column("meanAddedMs", justify="right")
    for estimate in report.overhead:
        table.add_row(estimate.operation_kind, str(estimate.mean_added_ms))
    return table


def paired_table(report: BenchReport) -> Table:
    """Paired treatment-minus-baseline intervals per operation."""
    table = Table(
        title="Paired delta SSE minus no-SSE (ms) with 95% CI", title_justify="left"
    )
    table.add_column("operation")
    for column in ("n", "meanMs", "ciLowMs", "ciHighMs"):
        table.add_column(column, justify="right")

    for delta in report.paired:
        mean = _ms(delta.mean_ms)
        if delta.significant:
            mean = f"[yellow]{mean}[/yellow]"
        table.add_row(
            delta.operation_kind,
            str(delta.n),
            mean,
            _ms(delta.ci_low_ms),
            _ms(delta.ci_high_ms),
        )
    return table


def render_report(report: BenchReport, console: Console) -> None:
    """Print the three result tables."""
    console.print()
    console.print(summary_table(report))
    console.print()
    console.print(overhead_table(report))
    console.print()
    console.print(paired_table(report))


def report_to_json(report: BenchReport, *, rounded: bool = True) -> str:
    """Serialize ``report``; timings are rounded to whole milliseconds by default."""
    if rounded:
        report = report.model_copy(
            update={
                "summaries": [s.rounded() for s in report.summaries],
                "paired": [p.rounded() for p in report.paired],
            }
        )
    return report.model_dump_json(indent=2)
