"""
File export for generated records.

Walks the generator page by page (the same pagination the HTTP API serves)
and writes CSV or JSON Lines, buffering `batch_size` rows per write.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterator, List, Literal

from perfmock.domain.models import Record
from perfmock.generation.engine import DataGenerator

ExportFormat = Literal["csv", "jsonl"]


def iter_batches(generator: DataGenerator, batch_size: int) -> Iterator[List[Record]]:
    offset = 0
    while True:
        batch = generator.generate_batch(offset, batch_size)
        if batch["records"]:
            yield batch["records"]
        if not batch["has_more"]:
            return
        offset = batch["next_offset"]


def _csv_columns(generator: DataGenerator) -> List[str]:
    names = generator.get_state().schema.keys()
    return ["id", *(name for name in names if name != "id")]


def _csv_cell(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def export_records(
    generator: DataGenerator,
    path: Path,
    fmt: ExportFormat = "csv",
    batch_size: int = 1_000,
) -> int:
    """
    Write every record of `generator` to `path`; returns the number written.

    Null values become empty CSV cells and `null` in JSON Lines.
    """
    if fmt not in ("csv", "jsonl"):
        raise ValueError(f"Unsupported export format '{fmt}'. Available: csv, jsonl")
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0

    with path.open("w", newline="", encoding="utf-8") as f:
        if fmt == "csv":
            columns = _csv_columns(generator)
            writer = csv.writer(f)
            writer.writerow(columns)
            for records in iter_batches(generator, batch_size):
                writer.writerows(
                    [[_csv_cell(record.get(column)) for column in columns] for record in records]
                )
                written += len(records)
        else:
            for records in iter_batches(generator, batch_size):
                f.writelines(json.dumps(record) + "\n" for record in records)
                written += len(records)

    return written


__all__ = ["ExportFormat", "export_records", "iter_batches"]
