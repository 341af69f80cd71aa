"""
perfmock: mock HTTP server with deterministic synthetic data.

Serves paginated records synthesized from a seeded PRNG so any page can be
re-fetched byte-for-byte, with optional latency, error and auth simulation
for exercising clients under degraded conditions.
"""

__version__ = "1.0.0"

from perfmock.errors import ConfigurationError, PerfMockError, SchemaValidationError
from perfmock.generation import DataGenerator, synthesize_record, validate_schema

__all__ = [
    "ConfigurationError",
    "DataGenerator",
    "PerfMockError",
    "SchemaValidationError",
    "__version__",
    "synthesize_record",
    "validate_schema",
]
