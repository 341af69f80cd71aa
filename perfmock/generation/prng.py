"""
Seeded pseudo-random source and deterministic identifiers.

`SeededRandom` is a 64-bit linear congruential generator. It never touches the
wall clock or OS entropy, so two instances built from the same seed yield the
same stream of floats. Each record gets its own instance (see
`record_seed`), which is what makes arbitrary-offset access to the record
stream safe.

Draws happen in field-declaration order. Reordering schema fields therefore
changes the values of every field after the first moved one; this is a known
property of the generator, not a defect.
"""

from __future__ import annotations

import hashlib
import uuid

_MASK64 = (1 << 64) - 1

# Knuth's MMIX constants: full period modulo 2**64.
LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1442695040888963407
LCG_MODULUS = 1 << 64

_FLOAT_SCALE = float(1 << 53)


def _splitmix64(value: int) -> int:
    """Scramble a seed so adjacent seeds start from unrelated LCG states."""
    z = (value + 0x9E3779B97F4A7C15) & _MASK64
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
    return z ^ (z >> 31)


class SeededRandom:
    """
    Reproducible float stream in [0, 1).

    state = (state * A + C) mod 2**64; the output uses the top 53 bits so it
    maps exactly onto a double and never rounds up to 1.0.
    """

    __slots__ = ("seed", "_state")

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._state = _splitmix64(seed & _MASK64)

    def random(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return (self._state >> 11) / _FLOAT_SCALE

    def randrange(self, n: int) -> int:
        """Uniform integer in [0, n) from a single draw."""
        return int(self.random() * n)

    def choice(self, values):
        return values[self.randrange(len(values))]


def record_seed(seed: int, index: int) -> int:
    """Seed for the per-record stream: `seed + index`."""
    return seed + index


def derive_id(seed: int, index: int) -> str:
    """
    UUID-shaped identifier computed purely from (seed, index).

    BLAKE2b-128 over the pair, rendered 8-4-4-4-12. RFC-4122 version and
    variant bits are not set. Consumes no PRNG state.
    """
    digest = hashlib.blake2b(f"{seed}:{index}".encode("ascii"), digest_size=16).digest()
    return str(uuid.UUID(bytes=digest))


__all__ = ["SeededRandom", "derive_id", "record_seed"]
