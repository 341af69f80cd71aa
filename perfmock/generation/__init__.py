"""
Generation package for perfmock.

Deterministic record synthesis: the seeded PRNG, schema compilation, the pure
field/record synthesizers and the stateful `DataGenerator` wrapper.
"""

from perfmock.generation.engine import DataGenerator
from perfmock.generation.prng import SeededRandom, derive_id, record_seed
from perfmock.generation.schema import CompiledSchema, FieldSpec, compile_schema, validate_schema
from perfmock.generation.synthesizer import synthesize_field, synthesize_record

__all__ = [
    "CompiledSchema",
    "DataGenerator",
    "FieldSpec",
    "SeededRandom",
    "compile_schema",
    "derive_id",
    "record_seed",
    "synthesize_field",
    "synthesize_record",
    "validate_schema",
]
