"""
Log-entry view over the record stream.

`/api/v1/logs` pages through the same records as `/api/records` but
addresses them by time. There is no real timestamp index: record `i` is
simply stamped `LOG_EPOCH + i minutes`, and `since`/`until` map back to
offsets with the same one-record-per-minute rule. Treat the timestamps as an
approximation, not as temporal truth.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from perfmock.domain.models import Record
from perfmock.generation.prng import SeededRandom, record_seed
from perfmock.generation.synthesizer import format_timestamp

LOG_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
LOG_INTERVAL = timedelta(minutes=1)
LOG_LEVELS = ("info", "warn", "error", "debug")


def offset_for_timestamp(value: datetime) -> int:
    """Minutes elapsed since `LOG_EPOCH`, floored at 0."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return max(0, int((value - LOG_EPOCH) // LOG_INTERVAL))


def window_for(
    since: Optional[datetime], until: Optional[datetime], limit: int
) -> Tuple[int, int]:
    """
    Translate a `since`/`until` window into `(offset, limit)`.

    `until` caps the limit so the page never runs past the window end.
    """
    offset = offset_for_timestamp(since) if since is not None else 0
    effective_limit = limit
    if until is not None:
        effective_limit = min(limit, max(0, offset_for_timestamp(until) - offset))
    return offset, effective_limit


def decorate_log_entries(records: List[Record], offset: int, seed: int) -> List[Record]:
    """
    Stamp each record with `timestamp`, `logLevel` and `message`.

    The level is drawn from a stream keyed on the record index (mixed with a
    fixed salt), so the same entry always carries the same level.
    """
    entries: List[Record] = []
    for position, record in enumerate(records):
        index = offset + position
        level_rng = SeededRandom(record_seed(seed, index) ^ 0x5EED_106)
        entries.append(
            {
                **record,
                "timestamp": format_timestamp(LOG_EPOCH + index * LOG_INTERVAL),
                "logLevel": level_rng.choice(LOG_LEVELS),
                "message": f"Log entry {record['id']}",
            }
        )
    return entries


__all__ = [
    "LOG_EPOCH",
    "LOG_LEVELS",
    "decorate_log_entries",
    "offset_for_timestamp",
    "window_for",
]
