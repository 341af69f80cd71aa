from __future__ import annotations

import json
import statistics
from typing import Any, Dict, List, Mapping, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from perfmock.client import CrawlSummary


def _cell(value: Any, width: int = 40) -> str:
    if value is None:
        return "[dim]-[/dim]"
    text = value if isinstance(value, str) else json.dumps(value)
    return text if len(text) <= width else text[: width - 1] + "…"


def print_records(records: Sequence[Mapping[str, Any]], offset: int = 0) -> None:
    """
    Render a page of generated records as a rich table.

    Columns follow the field order of the first record; null values (a field
    whose default is null) render as a dash.
    """
    console = Console()

    if not records:
        console.print("[yellow]No records to display.[/yellow]")
        return

    columns: List[str] = list(records[0].keys())
    for record in records[1:]:
        columns.extend(key for key in record if key not in columns)

    table = Table(
        title=f"Generated Records ({offset}..{offset + len(records) - 1})",
        box=box.ROUNDED,
    )
    table.add_column("#", justify="right", style="magenta")
    for column in columns:
        style = "cyan" if column == "id" else None
        table.add_column(column, style=style, no_wrap=column == "id")

    for position, record in enumerate(records):
        table.add_row(str(offset + position), *(_cell(record.get(column)) for column in columns))

    console.print(table)


def _percentile(sorted_values: Sequence[float], fraction: float) -> float:
    index = min(int(fraction * len(sorted_values)), len(sorted_values) - 1)
    return sorted_values[index]


def summarize_samples(samples: Sequence[float]) -> Dict[str, float]:
    """min/mean/p50/p95/max of a sample set."""
    if not samples:
        return {"min": 0.0, "mean": 0.0, "p50": 0.0, "p95": 0.0, "max": 0.0}
    ordered = sorted(samples)
    return {
        "min": ordered[0],
        "mean": statistics.fmean(ordered),
        "p50": _percentile(ordered, 0.50),
        "p95": _percentile(ordered, 0.95),
        "max": ordered[-1],
    }


def print_latency_summary(results: Mapping[str, Sequence[float]], min_ms: float, max_ms: float) -> None:
    """
    Render one row per latency distribution with its sample statistics (ms).
    """
    console = Console()

    table = Table(
        title=f"Latency Distributions\n[dim]Range: {min_ms:g}-{max_ms:g} ms[/dim]",
        box=box.ROUNDED,
    )
    table.add_column("Distribution", style="cyan", no_wrap=True)
    table.add_column("Samples", justify="right", style="magenta")
    table.add_column("Min", justify="right", style="green")
    table.add_column("Mean", justify="right", style="bold green")
    table.add_column("P50", justify="right", style="yellow")
    table.add_column("P95", justify="right", style="yellow")
    table.add_column("Max", justify="right", style="red")

    for name, samples in results.items():
        stats = summarize_samples(samples)
        table.add_row(
            name,
            f"{len(samples):,}",
            f"{stats['min']:.1f}",
            f"{stats['mean']:.1f}",
            f"{stats['p50']:.1f}",
            f"{stats['p95']:.1f}",
            f"{stats['max']:.1f}",
        )

    console.print(table)


def print_crawl_summary(summary: CrawlSummary) -> None:
    console = Console()

    status = "[bold green]complete[/bold green]" if summary.complete else "[bold red]incomplete[/bold red]"
    table = Table(title=f"Crawl Summary ({status})", box=box.ROUNDED)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    table.add_row("Total count", f"{summary.total_count:,}")
    table.add_row("Records fetched", f"{summary.records:,}")
    table.add_row("Unique ids", f"{summary.unique_ids:,}")
    table.add_row("Duplicates", f"{summary.duplicates:,}")
    table.add_row("Pages", f"{summary.pages:,}")
    table.add_row("Retries", f"{summary.retries:,}")

    console.print(table)


__all__ = [
    "print_crawl_summary",
    "print_latency_summary",
    "print_records",
    "summarize_samples",
]
