"""
Domain package for perfmock.

Exports the wire-level schema models and runtime middleware configuration
snapshots used across the generation engine, injection layer and server.
Keep this package focused on data definitions and validation concerns.
"""

from perfmock.domain.models import (
    AuthConfig,
    BatchResult,
    ErrorInjectionConfig,
    ErrorType,
    FieldConstraints,
    FieldDefinition,
    GeneratorState,
    LatencyConfig,
    MiddlewareConfig,
    Record,
    Schema,
    SchemaIssue,
    ValidationResult,
)

__all__ = [
    "AuthConfig",
    "BatchResult",
    "ErrorInjectionConfig",
    "ErrorType",
    "FieldConstraints",
    "FieldDefinition",
    "GeneratorState",
    "LatencyConfig",
    "MiddlewareConfig",
    "Record",
    "Schema",
    "SchemaIssue",
    "ValidationResult",
]
