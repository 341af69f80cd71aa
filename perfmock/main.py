from __future__ import annotations

import random
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

import typer
import uvicorn

from perfmock.client import PerfMockClient, PerfMockClientError
from perfmock.config import check_startup_config, default_schema, get_settings
from perfmock.domain.models import LatencyConfig
from perfmock.export import export_records
from perfmock.generation.engine import DataGenerator
from perfmock.injection.latency import LatencySampler, available_distributions
from perfmock.reporter import print_crawl_summary, print_latency_summary, print_records
from perfmock.utils.logging import configure_logging

app = typer.Typer(help="perfmock: mock API server with deterministic paginated data.")


def _generator(total: Optional[int], seed: Optional[int]) -> DataGenerator:
    settings = get_settings()
    return DataGenerator(
        total_records=total if total is not None else settings.default_total_records,
        schema=default_schema(),
        seed=seed if seed is not None else settings.default_seed,
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from settings)."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes (development)."),
) -> None:
    """
    Run the mock API server with uvicorn.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    bind_host = host or settings.host
    bind_port = port if port is not None else settings.port

    # uvicorn builds the app itself and swallows factory errors, so check first.
    check = check_startup_config(settings.model_copy(update={"port": bind_port}))
    for warning in check.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    if not check.valid:
        for error in check.errors:
            typer.echo(f"Configuration error: {error}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Starting perfmock on {bind_host}:{bind_port} (env={settings.app_env}).")
    uvicorn.run(
        "perfmock.server.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_config=None,
    )


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"server={settings.host}:{settings.port} env={settings.app_env} | "
        f"records={settings.default_total_records} seed={settings.default_seed} "
        f"page={settings.default_page_size}/{settings.max_page_size} | "
        f"auth={settings.auth_enabled} latency={settings.latency_enabled} "
        f"({settings.latency_min_ms:g}-{settings.latency_max_ms:g}ms {settings.latency_distribution}) "
        f"errors={settings.error_injection_enabled} (rate={settings.error_rate:g})"
    )


@app.command()
def preview(
    offset: int = typer.Option(0, "--offset", "-o", help="First record index."),
    limit: int = typer.Option(10, "--limit", "-l", help="Number of records to show."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Stream seed (default from settings)."),
    total: Optional[int] = typer.Option(None, "--total", "-t", help="Total records (default from settings)."),
) -> None:
    """
    Print a page of generated records using the built-in schema.
    """
    batch = _generator(total, seed).generate_batch(offset, limit)
    print_records(batch["records"], offset=max(offset, 0))


@app.command()
def export(
    output: Path = typer.Argument(..., help="Destination file."),
    rows: Optional[int] = typer.Option(None, "--rows", "-r", help="Records to export (default from settings)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Stream seed (default from settings)."),
    batch_size: int = typer.Option(1_000, "--batch-size", "-b", help="Records per page and write."),
    fmt: str = typer.Option("csv", "--format", "-f", help="Output format: csv or jsonl."),
) -> None:
    """
    Write the generated record stream to a CSV or JSON Lines file.
    """
    if fmt not in ("csv", "jsonl"):
        typer.echo(f"Unsupported format '{fmt}'. Available: csv, jsonl", err=True)
        raise typer.Exit(code=2)

    generator = _generator(rows, seed)
    state = generator.get_state()
    typer.echo(
        f"Exporting {state.total_records:,} records -> {output} "
        f"(format={fmt}, batch={batch_size}, seed={state.seed})"
    )
    start = time.perf_counter()
    written = export_records(generator, output, fmt=fmt, batch_size=batch_size)  # type: ignore[arg-type]
    duration = max(time.perf_counter() - start, 1e-9)
    typer.echo(f"Wrote {written:,} records in {duration:.2f}s ({written / duration:,.0f} records/s)")


@app.command()
def latency(
    min_ms: float = typer.Option(100.0, "--min-ms", help="Lower latency bound (ms)."),
    max_ms: float = typer.Option(500.0, "--max-ms", help="Upper latency bound (ms)."),
    samples: int = typer.Option(10_000, "--samples", "-n", help="Samples per distribution."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible samples."),
) -> None:
    """
    Sample each latency distribution and summarise the results.
    """
    if min_ms > max_ms:
        typer.echo("--min-ms cannot be greater than --max-ms", err=True)
        raise typer.Exit(code=2)

    sampler = LatencySampler(random.Random(seed))
    results: Dict[str, List[float]] = {}
    for name in available_distributions():
        config = LatencyConfig(enabled=True, min_ms=min_ms, max_ms=max_ms, distribution=name)
        results[name] = [sampler.sample(config) for _ in range(samples)]
    print_latency_summary(results, min_ms=min_ms, max_ms=max_ms)


@app.command()
def crawl(
    base_url: str = typer.Argument(..., help="Server root, e.g. http://localhost:3000."),
    limit: int = typer.Option(100, "--limit", "-l", help="Page size."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Value for the X-API-Key header."),
    max_attempts: int = typer.Option(5, "--max-attempts", help="Attempts per request."),
) -> None:
    """
    Page through a running server and report whether every record was seen once.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        with PerfMockClient(base_url, api_key=api_key, max_attempts=max_attempts) as client:
            summary = client.crawl(limit=limit)
    except PerfMockClientError as exc:
        typer.echo(f"Crawl failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    print_crawl_summary(summary)
    if not summary.complete:
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
