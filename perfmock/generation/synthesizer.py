"""
Field and record synthesis.

Everything here is a pure function of its inputs: the compiled field, the
per-record `SeededRandom`, `(seed, index)` and the timestamp anchor. No
module state is read or written, so records can be produced in any order or
in parallel.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from perfmock.domain.models import Record
from perfmock.generation.prng import SeededRandom, derive_id, record_seed
from perfmock.generation.schema import (
    CompiledSchema,
    EnumConstraints,
    FieldSpec,
    NumberConstraints,
    StringConstraints,
    TimestampConstraints,
)

# Chance that a required field with a default is emitted as that default.
# Kept for parity with the service this mock stands in for, where required
# fields are sometimes populated explicitly; likely unintended upstream.
DEFAULT_SUBSTITUTION_RATE = 0.1

DEFAULT_STRING_LENGTH = 10
EMAIL_LOCAL_PART_LENGTH = 8
EMAIL_DOMAINS = ("example.com", "test.org", "demo.net")
ALPHANUMERIC = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
DEFAULT_TIMESTAMP_WINDOW = timedelta(days=365)


def format_timestamp(value: datetime) -> str:
    """Render as `YYYY-MM-DDTHH:MM:SS.mmmZ`."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _random_string(rng: SeededRandom, length: int) -> str:
    return "".join(rng.choice(ALPHANUMERIC) for _ in range(max(length, 0)))


def _email(rng: SeededRandom) -> str:
    domain = rng.choice(EMAIL_DOMAINS)
    return f"{_random_string(rng, EMAIL_LOCAL_PART_LENGTH)}@{domain}"


def _phone(rng: SeededRandom) -> str:
    area = 100 + rng.randrange(900)
    exchange = 100 + rng.randrange(900)
    line = 1000 + rng.randrange(9000)
    return f"+1{area}{exchange}{line}"


def _string(constraints: StringConstraints, rng: SeededRandom) -> str:
    if constraints.length is not None:
        length = constraints.length
    elif constraints.min_length is not None and constraints.max_length is not None:
        span = constraints.max_length - constraints.min_length
        length = math.floor(rng.random() * span + constraints.min_length)
    else:
        length = DEFAULT_STRING_LENGTH

    if constraints.pattern == "email":
        return _email(rng)
    if constraints.pattern == "phone":
        return _phone(rng)
    return _random_string(rng, length)


def _number(constraints: NumberConstraints, rng: SeededRandom) -> float | int:
    draw = rng.random()
    if constraints.integer:
        low = math.ceil(constraints.min)
        high = math.floor(constraints.max)
        return low + math.floor(draw * (high - low + 1))
    return constraints.min + draw * (constraints.max - constraints.min)


def _timestamp_bounds(
    constraints: TimestampConstraints, anchor: datetime
) -> tuple[datetime, datetime]:
    """
    Declared bounds, with a missing one defaulted from the anchor.

    A lone declared bound on the far side of the anchor window moves the
    default to one window past it, so the range never inverts.
    """
    low, high = constraints.min, constraints.max
    if low is None:
        low = anchor - DEFAULT_TIMESTAMP_WINDOW
        if high is not None and low > high:
            low = high - DEFAULT_TIMESTAMP_WINDOW
    if high is None:
        high = anchor
        if high < low:
            high = low + DEFAULT_TIMESTAMP_WINDOW
    return low, high


def _timestamp(constraints: TimestampConstraints, rng: SeededRandom, anchor: datetime) -> str:
    low, high = _timestamp_bounds(constraints, anchor)
    span_ms = (high - low) / timedelta(milliseconds=1)
    offset = timedelta(milliseconds=math.floor(rng.random() * span_ms))
    return format_timestamp(low + offset)


def _enum(constraints: EnumConstraints, rng: SeededRandom) -> Any:
    return rng.choice(constraints.values)


def synthesize_field(
    spec: FieldSpec,
    rng: SeededRandom,
    seed: int,
    index: int,
    anchor: datetime,
) -> Any:
    """
    Produce one value for `spec`.

    A default is returned verbatim for optional fields, and for required
    fields when a draw falls under `DEFAULT_SUBSTITUTION_RATE`. Only required
    fields with a default consume that extra draw.
    """
    if spec.has_default and (not spec.required or rng.random() < DEFAULT_SUBSTITUTION_RATE):
        return spec.default

    constraints = spec.constraints
    if spec.type == "uuid":
        return derive_id(seed, index)
    if spec.type == "boolean":
        return rng.random() < 0.5
    if isinstance(constraints, NumberConstraints):
        return _number(constraints, rng)
    if isinstance(constraints, StringConstraints):
        return _string(constraints, rng)
    if isinstance(constraints, TimestampConstraints):
        return _timestamp(constraints, rng, anchor)
    if isinstance(constraints, EnumConstraints):
        return _enum(constraints, rng)
    raise TypeError(f"Unsupported field type: {spec.type}")


def synthesize_record(
    schema: CompiledSchema, seed: int, index: int, anchor: datetime
) -> Record:
    """
    Build the record at position `index` of the stream for `seed`.

    The record's PRNG is seeded from `record_seed(seed, index)`, so the result
    never depends on which other records were generated before it.
    """
    rng = SeededRandom(record_seed(seed, index))
    record: Record = {"id": derive_id(seed, index)}
    for spec in schema.fields:
        record[spec.name] = synthesize_field(spec, rng, seed, index, anchor)
    return record


__all__ = [
    "DEFAULT_SUBSTITUTION_RATE",
    "EMAIL_DOMAINS",
    "format_timestamp",
    "synthesize_field",
    "synthesize_record",
]
