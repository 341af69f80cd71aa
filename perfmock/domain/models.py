"""
Domain models for perfmock.

Two families live here:

- Wire-level schema models (`FieldDefinition`, `FieldConstraints`) exactly as
  clients send them in `/api/seed` and as `/api/schema` returns them.
- Runtime middleware configuration (`LatencyConfig`, `ErrorInjectionConfig`,
  `AuthConfig`, `MiddlewareConfig`). These are frozen; an update always
  produces a new snapshot via `model_copy`/`model_validate`.

All models accept both camelCase (wire) and snake_case (Python) names.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, TypedDict, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

FIELD_TYPES = ("uuid", "string", "number", "boolean", "iso8601", "enum")
DISTRIBUTIONS = ("uniform", "normal", "exponential")

# Routes never subject to latency or error injection.
ALWAYS_EXCLUDED_ROUTES = ("/api/health", "/api/metrics", "/api/ready", "/api/live")

Record = Dict[str, Any]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class FieldConstraints(_WireModel):
    """
    Untyped constraint bag as it appears on the wire.

    `min`/`max` are numbers for `number` and `string` fields and ISO-8601
    strings for `iso8601` fields; they are narrowed when the schema is compiled.
    """

    min: Optional[Union[float, str]] = None
    max: Optional[Union[float, str]] = None
    length: Optional[int] = None
    pattern: Optional[str] = None
    enum: Optional[List[Any]] = None
    format: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class FieldDefinition(_WireModel):
    """
    Declaration of one schema field.

    `type` is kept as a plain string so that unknown types surface as
    validation issues instead of model errors.
    """

    type: str = Field(..., description="One of uuid|string|number|boolean|iso8601|enum.")
    required: bool = Field(True, description="Whether the field is always synthesized.")
    default: Any = Field(None, description="Value used in lieu of synthesis.")
    constraints: Optional[FieldConstraints] = Field(None, description="Type-specific bounds.")

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "required": self.required}
        if self.has_default:
            payload["default"] = self.default
        if self.constraints is not None:
            payload["constraints"] = self.constraints.model_dump(by_alias=True, exclude_none=True)
        return payload


Schema = Dict[str, FieldDefinition]


class SchemaIssue(_WireModel):
    """One actionable validation problem: which field, which rule, what happened."""

    field: str
    rule: str
    message: str


class ValidationResult(_WireModel):
    valid: bool
    errors: List[SchemaIssue] = Field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [issue.message for issue in self.errors]


class BatchResult(TypedDict, total=False):
    """
    Slice of the virtual record stream plus pagination metadata.

    `next_offset` is only present when `has_more` is true.
    """

    records: List[Record]
    has_more: bool
    next_offset: int
    total_count: int


@dataclass(frozen=True)
class GeneratorState:
    """
    Read-only snapshot of the generation engine.

    `current_offset` and `generated_count` are advisory metrics; generated
    output never depends on them.
    """

    total_records: int
    seed: int
    schema: Schema
    current_offset: int = 0
    generated_count: int = 0

    def to_wire(self) -> Dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "seed": self.seed,
            "schema": {name: field.to_wire() for name, field in self.schema.items()},
            "currentOffset": self.current_offset,
            "generatedCount": self.generated_count,
        }


def _route_matches(path: str, routes: List[str]) -> bool:
    return any(path.startswith(route) for route in routes)


def is_probe_route(path: str) -> bool:
    """Health, readiness, liveness and metrics routes."""
    return _route_matches(path, list(ALWAYS_EXCLUDED_ROUTES))


class _RouteScopedConfig(_WireModel):
    apply_to_routes: List[str] = Field(default_factory=list)
    exclude_routes: List[str] = Field(default_factory=list)

    def applies_to(self, path: str) -> bool:
        """
        Decide whether injection applies to a request path.

        Health/metrics routes are always skipped. An explicit allow-list wins
        over the exclusion list; with neither, every route is eligible.
        """
        if is_probe_route(path):
            return False
        if self.apply_to_routes:
            return _route_matches(path, self.apply_to_routes)
        if self.exclude_routes:
            return not _route_matches(path, self.exclude_routes)
        return True


class LatencyConfig(_RouteScopedConfig):
    enabled: bool = False
    min_ms: float = Field(100.0, ge=0)
    max_ms: float = Field(500.0, ge=0)
    distribution: Literal["uniform", "normal", "exponential"] = "uniform"

    @model_validator(mode="after")
    def _check_bounds(self) -> "LatencyConfig":
        if self.min_ms > self.max_ms:
            raise ValueError("latency minMs cannot be greater than maxMs")
        return self


class ErrorType(_WireModel):
    type: Literal["timeout", "server_error", "bad_request", "unauthorized", "rate_limit"]
    status_code: int = Field(..., ge=100, le=599)
    message: str
    probability: float = Field(..., ge=0)


def default_error_types() -> List[ErrorType]:
    return [
        ErrorType(
            type="server_error",
            status_code=500,
            message="Internal server error occurred",
            probability=0.4,
        ),
        ErrorType(type="timeout", status_code=504, message="Request timeout", probability=0.2),
        ErrorType(
            type="bad_request", status_code=400, message="Bad request parameters", probability=0.2
        ),
        ErrorType(
            type="rate_limit", status_code=429, message="Rate limit exceeded", probability=0.1
        ),
        ErrorType(
            type="unauthorized", status_code=401, message="Unauthorized access", probability=0.1
        ),
    ]


class ErrorInjectionConfig(_RouteScopedConfig):
    enabled: bool = False
    error_rate: float = Field(0.1, ge=0.0, le=1.0)
    error_types: List[ErrorType] = Field(default_factory=default_error_types)


class AuthConfig(_WireModel):
    enabled: bool = False
    api_key: Optional[str] = None
    header_name: str = "X-API-Key"


class MiddlewareConfig(_WireModel):
    """Immutable snapshot of every runtime-tunable middleware setting."""

    auth: AuthConfig = Field(default_factory=AuthConfig)
    latency: LatencyConfig = Field(default_factory=LatencyConfig)
    errors: ErrorInjectionConfig = Field(default_factory=ErrorInjectionConfig)


__all__ = [
    "ALWAYS_EXCLUDED_ROUTES",
    "AuthConfig",
    "BatchResult",
    "DISTRIBUTIONS",
    "ErrorInjectionConfig",
    "ErrorType",
    "FIELD_TYPES",
    "FieldConstraints",
    "FieldDefinition",
    "GeneratorState",
    "LatencyConfig",
    "MiddlewareConfig",
    "Record",
    "Schema",
    "SchemaIssue",
    "ValidationResult",
    "default_error_types",
    "is_probe_route",
]
