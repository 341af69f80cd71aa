"""
Schema validation and compilation.

Clients describe records with a loose constraint bag per field
(`FieldConstraints`). Before anything is synthesized the schema is:

1. validated by `validate_schema`, which never raises and reports every
   problem as a `SchemaIssue(field, rule, message)`;
2. compiled by `compile_schema` into `FieldSpec`s whose `constraints` are a
   tagged variant per field type, so synthesis never probes optional keys.

Validation rules:
    definition  field definition is not an object or is malformed
    type        missing or unknown field type
    enum        enum field without a non-empty `enum` list
    range       declared min greater than max (numbers and timestamps)
    length      negative string length
    timestamp   unparseable iso8601 bound
    integer     integer format with no integer between min and max
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from perfmock.domain.models import (
    FIELD_TYPES,
    FieldConstraints,
    FieldDefinition,
    Schema,
    SchemaIssue,
    ValidationResult,
)
from perfmock.errors import SchemaValidationError

DEFAULT_NUMBER_MIN = 0.0
DEFAULT_NUMBER_MAX = 1000.0


@dataclass(frozen=True)
class NumberConstraints:
    min: float = DEFAULT_NUMBER_MIN
    max: float = DEFAULT_NUMBER_MAX
    integer: bool = False


@dataclass(frozen=True)
class StringConstraints:
    length: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None


@dataclass(frozen=True)
class TimestampConstraints:
    min: Optional[datetime] = None
    max: Optional[datetime] = None


@dataclass(frozen=True)
class EnumConstraints:
    values: Tuple[Any, ...]


Constraints = Union[NumberConstraints, StringConstraints, TimestampConstraints, EnumConstraints]


@dataclass(frozen=True)
class FieldSpec:
    """A validated field, ready for synthesis."""

    name: str
    type: str
    required: bool = True
    has_default: bool = False
    default: Any = None
    constraints: Optional[Constraints] = None


@dataclass(frozen=True)
class CompiledSchema:
    """
    Compiled fields in declaration order plus the wire definitions they came from.
    """

    fields: Tuple[FieldSpec, ...]
    definitions: Schema

    def __len__(self) -> int:
        return len(self.fields)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_definition(
    name: str, raw: Any, issues: List[SchemaIssue]
) -> Optional[FieldDefinition]:
    if isinstance(raw, FieldDefinition):
        return raw
    if not isinstance(raw, Mapping):
        issues.append(
            SchemaIssue(
                field=name,
                rule="definition",
                message=f"Field '{name}' definition must be an object",
            )
        )
        return None
    if raw.get("type") is None:
        issues.append(SchemaIssue(field=name, rule="type", message=f"Field '{name}' missing type"))
        return None
    try:
        return FieldDefinition.model_validate(raw)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        issues.append(
            SchemaIssue(
                field=name,
                rule="definition",
                message=f"Field '{name}' is malformed ({details})",
            )
        )
        return None


def _check_timestamp_bounds(
    name: str, constraints: FieldConstraints, issues: List[SchemaIssue]
) -> None:
    bounds: Dict[str, datetime] = {}
    for label in ("min", "max"):
        value = getattr(constraints, label)
        if value is None:
            continue
        if not isinstance(value, str):
            issues.append(
                SchemaIssue(
                    field=name,
                    rule="timestamp",
                    message=f"Field '{name}' {label} constraint must be an ISO-8601 string",
                )
            )
            continue
        try:
            bounds[label] = parse_timestamp(value)
        except ValueError:
            issues.append(
                SchemaIssue(
                    field=name,
                    rule="timestamp",
                    message=f"Field '{name}' {label} constraint '{value}' is not a valid ISO-8601 timestamp",
                )
            )
    if "min" in bounds and "max" in bounds and bounds["min"] > bounds["max"]:
        issues.append(
            SchemaIssue(
                field=name,
                rule="range",
                message=f"Field '{name}' min constraint cannot be greater than max",
            )
        )


def _check_numeric_bounds(
    name: str, definition: FieldDefinition, issues: List[SchemaIssue]
) -> None:
    constraints = definition.constraints
    if constraints is None:
        return
    declared_min, declared_max = constraints.min, constraints.max
    for label, value in (("min", declared_min), ("max", declared_max)):
        if value is not None and not _is_number(value):
            issues.append(
                SchemaIssue(
                    field=name,
                    rule="range",
                    message=f"Field '{name}' {label} constraint must be numeric for type '{definition.type}'",
                )
            )
            return

    if definition.type == "number":
        low = DEFAULT_NUMBER_MIN if declared_min is None else float(declared_min)
        high = DEFAULT_NUMBER_MAX if declared_max is None else float(declared_max)
    elif declared_min is not None and declared_max is not None:
        low, high = float(declared_min), float(declared_max)
    else:
        return

    if low > high:
        issues.append(
            SchemaIssue(
                field=name,
                rule="range",
                message=f"Field '{name}' min constraint cannot be greater than max",
            )
        )
        return

    if definition.type == "number" and constraints.format == "integer":
        if math.ceil(low) > math.floor(high):
            issues.append(
                SchemaIssue(
                    field=name,
                    rule="integer",
                    message=f"Field '{name}' has no integer between min {low:g} and max {high:g}",
                )
            )


def _check_field(name: str, definition: FieldDefinition, issues: List[SchemaIssue]) -> None:
    if definition.type not in FIELD_TYPES:
        issues.append(
            SchemaIssue(
                field=name,
                rule="type",
                message=f"Field '{name}' has invalid type '{definition.type}'",
            )
        )
        return

    constraints = definition.constraints
    if definition.type == "enum" and (constraints is None or not constraints.enum):
        issues.append(
            SchemaIssue(
                field=name,
                rule="enum",
                message=f"Field '{name}' of type 'enum' must have enum constraint with values",
            )
        )

    if constraints is None:
        return

    if constraints.length is not None and constraints.length < 0:
        issues.append(
            SchemaIssue(
                field=name,
                rule="length",
                message=f"Field '{name}' length constraint cannot be negative",
            )
        )

    if definition.type == "iso8601":
        _check_timestamp_bounds(name, constraints, issues)
    elif definition.type in ("number", "string"):
        _check_numeric_bounds(name, definition, issues)


def validate_schema(schema: Any) -> ValidationResult:
    """
    Validate a schema without raising.

    Accepts wire dicts or `FieldDefinition` values; anything else is reported
    as an issue.
    """
    issues: List[SchemaIssue] = []
    if not isinstance(schema, Mapping):
        issues.append(
            SchemaIssue(field="", rule="definition", message="Schema must be an object of fields")
        )
        return ValidationResult(valid=False, errors=issues)

    for name, raw in schema.items():
        definition = _coerce_definition(str(name), raw, issues)
        if definition is not None:
            _check_field(str(name), definition, issues)

    return ValidationResult(valid=not issues, errors=issues)


def _compile_constraints(definition: FieldDefinition) -> Optional[Constraints]:
    bag = definition.constraints or FieldConstraints()
    if definition.type == "number":
        return NumberConstraints(
            min=DEFAULT_NUMBER_MIN if bag.min is None else float(bag.min),
            max=DEFAULT_NUMBER_MAX if bag.max is None else float(bag.max),
            integer=bag.format == "integer",
        )
    if definition.type == "string":
        return StringConstraints(
            length=bag.length,
            min_length=None if bag.min is None else int(bag.min),
            max_length=None if bag.max is None else int(bag.max),
            pattern=bag.pattern,
        )
    if definition.type == "iso8601":
        return TimestampConstraints(
            min=None if bag.min is None else parse_timestamp(str(bag.min)),
            max=None if bag.max is None else parse_timestamp(str(bag.max)),
        )
    if definition.type == "enum":
        return EnumConstraints(values=tuple(bag.enum or ()))
    return None


def compile_schema(schema: Mapping[str, Any]) -> CompiledSchema:
    """
    Validate and compile a schema.

    Raises
    ------
    SchemaValidationError
        If `validate_schema` reports any issue.
    """
    result = validate_schema(schema)
    if not result.valid:
        raise SchemaValidationError(result.errors)

    definitions: Schema = {}
    fields: List[FieldSpec] = []
    for name, raw in schema.items():
        definition = raw if isinstance(raw, FieldDefinition) else FieldDefinition.model_validate(raw)
        definitions[name] = definition
        fields.append(
            FieldSpec(
                name=name,
                type=definition.type,
                required=definition.required,
                has_default=definition.has_default,
                default=definition.default,
                constraints=_compile_constraints(definition),
            )
        )
    return CompiledSchema(fields=tuple(fields), definitions=definitions)


__all__ = [
    "CompiledSchema",
    "Constraints",
    "EnumConstraints",
    "FieldSpec",
    "NumberConstraints",
    "StringConstraints",
    "TimestampConstraints",
    "compile_schema",
    "parse_timestamp",
    "validate_schema",
]
