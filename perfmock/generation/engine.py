"""
Generation engine: the stateful wrapper around the pure record synthesizer.

`DataGenerator` owns the current schema, total record count, seed and
timestamp anchor. Those four values live in one immutable `_Snapshot` that
`generate_batch` reads once per call; `reset`/`update_schema` build a new
snapshot and swap it in under a lock. An in-flight batch therefore always sees
a consistent (seed, schema) pair even if a reset lands mid-request.

`current_offset` and `generated_count` are metrics only. Nothing generated
depends on them.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from perfmock.domain.models import BatchResult, GeneratorState, Record, ValidationResult
from perfmock.generation.schema import CompiledSchema, compile_schema, validate_schema
from perfmock.generation.synthesizer import synthesize_record
from perfmock.utils.logging import get_logger

log = get_logger(__name__)


def default_anchor() -> datetime:
    """UTC midnight of the current day; upper bound for unconstrained timestamps."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class _Snapshot:
    total_records: int
    seed: int
    schema: CompiledSchema
    anchor: datetime


class DataGenerator:
    """
    Deterministic, paginated record stream.

    Parameters
    ----------
    total_records : int
        Size of the virtual record sequence.
    schema : Mapping[str, Any]
        Field definitions (wire dicts or `FieldDefinition`s).
    seed : int | None
        Stream seed; defaults to the current time in milliseconds.
    anchor : datetime | None
        Reference "now" for timestamp fields without explicit bounds.

    Raises
    ------
    SchemaValidationError
        If `schema` does not validate.
    """

    def __init__(
        self,
        total_records: int,
        schema: Mapping[str, Any],
        seed: Optional[int] = None,
        anchor: Optional[datetime] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._snapshot = _Snapshot(
            total_records=max(int(total_records), 0),
            seed=int(seed) if seed is not None else int(time.time() * 1000),
            schema=compile_schema(schema),
            anchor=anchor or default_anchor(),
        )
        self._current_offset = 0
        self._generated_count = 0

    @staticmethod
    def validate_schema(schema: Any) -> ValidationResult:
        """Validate without touching any engine state; never raises."""
        return validate_schema(schema)

    def generate_record(self, index: int) -> Record:
        snapshot = self._snapshot
        return synthesize_record(snapshot.schema, snapshot.seed, index, snapshot.anchor)

    def generate_batch(self, offset: int, limit: int) -> BatchResult:
        """
        Return records `[offset, min(offset + limit, total))`.

        Negative offsets clamp to 0 and non-positive limits yield no records.
        `next_offset` is only set when more records follow.
        """
        snapshot = self._snapshot
        start = min(max(int(offset), 0), snapshot.total_records)
        end = min(start + max(int(limit), 0), snapshot.total_records)

        records: List[Record] = [
            synthesize_record(snapshot.schema, snapshot.seed, index, snapshot.anchor)
            for index in range(start, end)
        ]

        with self._lock:
            self._current_offset = end
            self._generated_count += len(records)

        has_more = end < snapshot.total_records
        result = BatchResult(records=records, has_more=has_more, total_count=snapshot.total_records)
        if has_more:
            result["next_offset"] = end
        return result

    def reset(
        self,
        total_records: Optional[int] = None,
        schema: Optional[Mapping[str, Any]] = None,
        seed: Optional[int] = None,
        anchor: Optional[datetime] = None,
    ) -> GeneratorState:
        """
        Replace whichever of total/schema/seed/anchor are given; zero the counters.

        The schema is compiled before anything is swapped, so an invalid schema
        leaves the engine untouched.
        """
        compiled = compile_schema(schema) if schema is not None else None
        with self._lock:
            current = self._snapshot
            self._snapshot = _Snapshot(
                total_records=(
                    max(int(total_records), 0)
                    if total_records is not None
                    else current.total_records
                ),
                seed=int(seed) if seed is not None else current.seed,
                schema=compiled if compiled is not None else current.schema,
                anchor=anchor or current.anchor,
            )
            self._current_offset = 0
            self._generated_count = 0
        log.info(
            "Data generator reset",
            extra={
                "total_records": self._snapshot.total_records,
                "seed": self._snapshot.seed,
                "schema_fields": len(self._snapshot.schema),
            },
        )
        return self.get_state()

    def update_schema(self, schema: Mapping[str, Any]) -> None:
        """Swap the schema; total and seed are kept, the counters go back to zero."""
        compiled = compile_schema(schema)
        with self._lock:
            self._snapshot = replace(self._snapshot, schema=compiled)
            self._current_offset = 0
            self._generated_count = 0
        log.info("Data generator schema updated", extra={"schema_fields": len(compiled)})

    @property
    def anchor(self) -> datetime:
        return self._snapshot.anchor

    def get_state(self) -> GeneratorState:
        snapshot = self._snapshot
        return GeneratorState(
            total_records=snapshot.total_records,
            seed=snapshot.seed,
            schema=dict(snapshot.schema.definitions),
            current_offset=self._current_offset,
            generated_count=self._generated_count,
        )

    def get_metrics(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        return {
            "totalRecords": snapshot.total_records,
            "generatedCount": self._generated_count,
            "currentOffset": self._current_offset,
            "seed": snapshot.seed,
            "schemaFields": len(snapshot.schema),
        }


__all__ = ["DataGenerator", "default_anchor"]
