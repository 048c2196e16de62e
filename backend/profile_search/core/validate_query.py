"""Schema Validator — checks untrusted query parameters against a declared FieldSchema.

Invariants:
    - Pure function: no IO, no async, no side effects
    - Never raises for malformed input — returns Invalid(reason) instead
    - Never partially valid: the first violation rejects the whole mapping
    - LENIENT drops undeclared fields; STRICT rejects them at any nesting level
    - Required fields missing from the mapping reject in both modes
    - Required text fields must be non-blank; optional ones may be empty
    - Numbers outside the descriptor bounds (range, integral) and text longer than
      max_length reject, so every Valid value fits the store columns

Design Decisions:
    - Valid carries the cleaned mapping (declared fields only), so the compiler
      never sees keys it has no descriptor for
    - Numbers accepted as numeric strings (URL query) or JSON numbers (request body);
      booleans are rejected even though bool subclasses int
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

from profile_search.core.domain_types import (
    FieldKind, QueryParameters, ValidationMode,
)
from profile_search.core.field_schema import FieldDescriptor, FieldSchema

_NUMERIC_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")


@dataclass(frozen=True)
class Valid:
    parameters: dict[str, Any]


@dataclass(frozen=True)
class Invalid:
    reason: str


ValidationOutcome = Valid | Invalid


def parse_number(value: Any) -> int | float | None:
    """Convert an external number representation, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        stripped = value.strip()
        if not _NUMERIC_RE.match(stripped):
            return None
        if "." in stripped:
            return float(stripped)
        return int(stripped)
    return None


def coerce_number(value: Any, descriptor: FieldDescriptor) -> int | float | None:
    """Number within the descriptor's bounds (int when integral), or None."""
    number = parse_number(value)
    if number is None:
        return None
    if descriptor.integral:
        if number != int(number):
            return None
        number = int(number)
    if descriptor.minimum is not None and number < descriptor.minimum:
        return None
    if descriptor.maximum is not None and number > descriptor.maximum:
        return None
    return number


def validate(
    parameters: Any, schema: FieldSchema, mode: ValidationMode,
) -> ValidationOutcome:
    """Validate a raw parameter mapping against schema in the given mode."""
    if not isinstance(parameters, Mapping):
        return Invalid("query parameters must be a mapping of field names to values")
    result = _validate_level(parameters, schema, mode, prefix="")
    if isinstance(result, Invalid):
        return result
    return Valid(result)


def _validate_level(
    parameters: QueryParameters,
    schema: FieldSchema,
    mode: ValidationMode,
    prefix: str,
) -> dict[str, Any] | Invalid:
    if mode is ValidationMode.STRICT:
        unexpected = [key for key in parameters if key not in schema]
        if unexpected:
            names = ", ".join(f"'{prefix}{key}'" for key in unexpected)
            return Invalid(f"unexpected field(s): {names}")

    for name in schema.required_fields():
        if name not in parameters:
            return Invalid(f"missing required field '{prefix}{name}'")

    cleaned: dict[str, Any] = {}
    for name, descriptor in schema.items():
        if name not in parameters:
            continue
        value = parameters[name]
        path = f"{prefix}{name}"

        if descriptor.kind is FieldKind.NESTED:
            if not isinstance(value, Mapping):
                return Invalid(f"field '{path}' must be an object")
            inner = _validate_level(value, descriptor.fields, mode, prefix=f"{path}.")
            if isinstance(inner, Invalid):
                return inner
            cleaned[name] = inner
        elif descriptor.kind is FieldKind.NUMBER:
            if coerce_number(value, descriptor) is None:
                return Invalid(
                    f"field '{path}' must be {descriptor.describe_number()}",
                )
            cleaned[name] = value
        else:
            if not isinstance(value, str):
                return Invalid(f"field '{path}' must be a string")
            if descriptor.required and not value.strip():
                return Invalid(f"field '{path}' must not be empty")
            if descriptor.max_length is not None and len(value) > descriptor.max_length:
                return Invalid(
                    f"field '{path}' must be at most {descriptor.max_length} characters",
                )
            cleaned[name] = value
    return cleaned
