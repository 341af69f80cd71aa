from __future__ import annotations

import re
import uuid

from perfmock.generation.prng import SeededRandom, derive_id, record_seed

SAMPLE_COUNT = 10_000
UUID_SHAPE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def test_same_seed_yields_same_stream() -> None:
    first = SeededRandom(12345)
    second = SeededRandom(12345)
    assert [first.random() for _ in range(100)] == [second.random() for _ in range(100)]


def test_different_seeds_diverge() -> None:
    assert [SeededRandom(1).random() for _ in range(5)] != [
        SeededRandom(2).random() for _ in range(5)
    ]


def test_floats_stay_in_unit_interval() -> None:
    rng = SeededRandom(7)
    values = [rng.random() for _ in range(SAMPLE_COUNT)]
    assert all(0.0 <= value < 1.0 for value in values)
    # Roughly uniform: mean near 0.5.
    assert abs(sum(values) / SAMPLE_COUNT - 0.5) < 0.02


def test_adjacent_seeds_do_not_start_alike() -> None:
    firsts = [SeededRandom(seed).random() for seed in range(100, 110)]
    assert len(set(firsts)) == len(firsts)
    assert max(firsts) - min(firsts) > 0.1


def test_negative_and_huge_seeds_are_accepted() -> None:
    assert 0.0 <= SeededRandom(-1).random() < 1.0
    assert 0.0 <= SeededRandom(2**80 + 3).random() < 1.0


def test_randrange_and_choice_stay_in_bounds() -> None:
    rng = SeededRandom(99)
    assert all(0 <= rng.randrange(7) < 7 for _ in range(1000))
    values = ("a", "b", "c")
    assert {rng.choice(values) for _ in range(1000)} == set(values)


def test_record_seed_is_seed_plus_index() -> None:
    assert record_seed(42, 0) == 42
    assert record_seed(42, 17) == 59


def test_derive_id_is_pure_and_uuid_shaped() -> None:
    value = derive_id(42, 3)
    assert value == derive_id(42, 3)
    assert UUID_SHAPE.match(value)
    assert str(uuid.UUID(value)) == value


def test_derive_id_is_unique_across_indices_and_seeds() -> None:
    ids = {derive_id(42, index) for index in range(SAMPLE_COUNT)}
    assert len(ids) == SAMPLE_COUNT
    assert derive_id(42, 0) != derive_id(43, 0)
    # seed + index collisions in the record stream do not collide ids.
    assert derive_id(42, 1) != derive_id(43, 0)
