from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from perfmock.config import default_schema
from perfmock.generation.prng import SeededRandom, derive_id
from perfmock.generation.schema import compile_schema
from perfmock.generation.synthesizer import (
    EMAIL_DOMAINS,
    format_timestamp,
    synthesize_field,
    synthesize_record,
)

SEED = 42
SAMPLE_COUNT = 1_000
ANCHOR = datetime(2025, 6, 1, tzinfo=timezone.utc)
TIMESTAMP_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _records(schema, count: int = SAMPLE_COUNT, seed: int = SEED):
    compiled = compile_schema(schema)
    return [synthesize_record(compiled, seed, index, ANCHOR) for index in range(count)]


def test_record_is_pure_function_of_seed_and_index() -> None:
    compiled = compile_schema(default_schema())
    assert synthesize_record(compiled, SEED, 7, ANCHOR) == synthesize_record(
        compiled, SEED, 7, ANCHOR
    )
    assert synthesize_record(compiled, SEED, 7, ANCHOR) != synthesize_record(
        compiled, SEED, 8, ANCHOR
    )


def test_record_id_comes_first_and_is_derived() -> None:
    record = _records(default_schema(), count=4)[3]
    assert next(iter(record)) == "id"
    assert record["id"] == derive_id(SEED, 3)
    assert record["userId"] == record["id"]


def test_enum_values_are_members() -> None:
    values = ["red", "green", "blue"]
    records = _records({"color": {"type": "enum", "constraints": {"enum": values}}})
    assert {record["color"] for record in records} == set(values)


def test_number_bounds_hold() -> None:
    records = _records({"n": {"type": "number", "constraints": {"min": -5, "max": 5}}})
    assert all(-5 <= record["n"] <= 5 for record in records)


def test_number_with_equal_bounds_is_constant() -> None:
    records = _records({"n": {"type": "number", "constraints": {"min": 3, "max": 3}}})
    assert {record["n"] for record in records} == {3}


def test_integer_numbers_are_ints_within_inclusive_bounds() -> None:
    records = _records(
        {"age": {"type": "number", "constraints": {"min": 18, "max": 20, "format": "integer"}}}
    )
    values = [record["age"] for record in records]
    assert all(isinstance(value, int) for value in values)
    assert set(values) == {18, 19, 20}


def test_integer_bounds_round_inwards() -> None:
    records = _records(
        {"n": {"type": "number", "constraints": {"min": 1.5, "max": 3.5, "format": "integer"}}}
    )
    assert {record["n"] for record in records} == {2, 3}


def test_unconstrained_number_uses_default_range() -> None:
    records = _records({"n": {"type": "number"}})
    assert all(0 <= record["n"] <= 1000 for record in records)


def test_string_lengths() -> None:
    records = _records(
        {
            "fixed": {"type": "string", "constraints": {"length": 12}},
            "ranged": {"type": "string", "constraints": {"min": 2, "max": 6}},
            "plain": {"type": "string"},
        }
    )
    assert all(len(record["fixed"]) == 12 for record in records)
    assert all(2 <= len(record["ranged"]) <= 6 for record in records)
    assert all(len(record["plain"]) == 10 for record in records)
    assert all(record["plain"].isalnum() for record in records)


def test_email_and_phone_patterns() -> None:
    records = _records(
        {
            "email": {"type": "string", "constraints": {"pattern": "email"}},
            "phone": {"type": "string", "constraints": {"pattern": "phone"}},
        },
        count=200,
    )
    for record in records:
        local, domain = record["email"].split("@")
        assert len(local) == 8
        assert domain in EMAIL_DOMAINS
        assert re.fullmatch(r"\+1[1-9]\d{2}[1-9]\d{2}[1-9]\d{3}", record["phone"])


def test_timestamps_respect_bounds() -> None:
    records = _records(
        {
            "when": {
                "type": "iso8601",
                "constraints": {"min": "2024-01-01T00:00:00Z", "max": "2024-01-02T00:00:00Z"},
            }
        }
    )
    low = "2024-01-01T00:00:00.000Z"
    high = "2024-01-02T00:00:00.000Z"
    for record in records:
        assert TIMESTAMP_SHAPE.match(record["when"])
        assert low <= record["when"] <= high


def test_unbounded_timestamps_fall_in_year_before_anchor() -> None:
    records = _records({"when": {"type": "iso8601"}})
    low = format_timestamp(ANCHOR - timedelta(days=365))
    high = format_timestamp(ANCHOR)
    assert all(low <= record["when"] <= high for record in records)


def test_lone_min_after_anchor_is_honoured() -> None:
    records = _records({"when": {"type": "iso8601", "constraints": {"min": "2030-01-01T00:00:00Z"}}})
    low = "2030-01-01T00:00:00.000Z"
    high = format_timestamp(datetime(2030, 1, 1, tzinfo=timezone.utc) + timedelta(days=365))
    assert all(low <= record["when"] <= high for record in records)


def test_lone_max_before_default_window_is_honoured() -> None:
    records = _records({"when": {"type": "iso8601", "constraints": {"max": "2020-01-01T00:00:00Z"}}})
    low = format_timestamp(datetime(2020, 1, 1, tzinfo=timezone.utc) - timedelta(days=365))
    high = "2020-01-01T00:00:00.000Z"
    assert all(low <= record["when"] <= high for record in records)


def test_booleans_take_both_values() -> None:
    records = _records({"flag": {"type": "boolean"}})
    assert {record["flag"] for record in records} == {True, False}


def test_optional_field_with_default_always_uses_default() -> None:
    records = _records({"note": {"type": "string", "required": False, "default": "n/a"}})
    assert {record["note"] for record in records} == {"n/a"}


def test_required_field_with_default_substitutes_occasionally() -> None:
    records = _records(
        {"n": {"type": "number", "default": -1, "constraints": {"min": 0, "max": 10}}},
        count=5_000,
    )
    substituted = sum(1 for record in records if record["n"] == -1)
    assert 0.07 < substituted / len(records) < 0.13


def test_required_field_without_default_is_never_substituted() -> None:
    records = _records({"n": {"type": "number", "constraints": {"min": 0, "max": 10}}})
    assert all(0 <= record["n"] <= 10 for record in records)


def test_synthesize_field_for_uuid_ignores_rng() -> None:
    spec = compile_schema({"ref": {"type": "uuid"}}).fields[0]
    rng = SeededRandom(1)
    assert synthesize_field(spec, rng, SEED, 5, ANCHOR) == derive_id(SEED, 5)


def test_format_timestamp_normalises_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))
    assert format_timestamp(datetime(2024, 1, 1, 2, 0, tzinfo=plus_two)) == "2024-01-01T00:00:00.000Z"


def test_optional_fields_are_always_emitted() -> None:
    schema = {
        "nickname": {"type": "string", "required": False},
        "score": {"type": "number", "required": False},
    }
    records = _records(schema, count=200)
    assert all(set(record) == {"id", "nickname", "score"} for record in records)
    assert all(record["nickname"] is not None for record in records)
