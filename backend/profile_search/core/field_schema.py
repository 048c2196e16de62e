"""Field Schemas — immutable declarations of the fields each query type accepts.

Invariants:
    - FieldSchema is immutable after construction (MappingProxyType over a copy)
    - Field names unique within a schema; insertion order preserved
    - NESTED descriptors always carry child fields; other kinds never do
    - Bounds (max_length, minimum/maximum, integral) only on the kinds they apply to
    - Declared schemas are module constants, read-only for the process lifetime

Design Decisions:
    - target is a dotted record path: query field names ("first") may differ from
      record layout ("name.first")
    - QueryType bundles schema + validation mode so each endpoint picks one
      declaration instead of re-implementing strictness
    - Bounds mirror the profiles columns, so out-of-range input is rejected as a
      client error before it can reach the store
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

from profile_search.core.domain_types import (
    EXERCISE_MAX_LENGTH, INT4_MAX, NAME_MAX_LENGTH,
    FieldKind, MatchStyle, RecordPath, ValidationMode,
)


@dataclass(frozen=True)
class FieldDescriptor:
    """Declared shape of one query field."""
    kind: FieldKind
    required: bool = False
    match: MatchStyle = MatchStyle.PREFIX
    target: str | None = None
    fields: "FieldSchema | None" = None
    max_length: int | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    integral: bool = False

    def __post_init__(self):
        if self.kind is FieldKind.NESTED and self.fields is None:
            raise ValueError("nested field requires child fields")
        if self.kind is not FieldKind.NESTED and self.fields is not None:
            raise ValueError(f"{self.kind.value} field cannot declare child fields")
        if self.kind is not FieldKind.TEXT and self.max_length is not None:
            raise ValueError("max_length applies to text fields only")
        if self.kind is not FieldKind.NUMBER and (
            self.minimum is not None or self.maximum is not None or self.integral
        ):
            raise ValueError("numeric bounds apply to number fields only")

    def describe_number(self) -> str:
        """Human-readable constraint for number fields, used in rejection reasons."""
        noun = "a whole number" if self.integral else "a number"
        if self.minimum is not None and self.maximum is not None:
            return f"{noun} between {self.minimum} and {self.maximum}"
        if self.minimum is not None:
            return f"{noun} of at least {self.minimum}"
        if self.maximum is not None:
            return f"{noun} of at most {self.maximum}"
        return noun


class FieldSchema(Mapping[str, FieldDescriptor]):
    """Ordered, read-only mapping of field name to descriptor."""

    def __init__(self, fields: Mapping[str, FieldDescriptor]):
        self._fields = MappingProxyType(dict(fields))

    def __getitem__(self, name: str) -> FieldDescriptor:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldSchema({list(self._fields)})"

    def required_fields(self) -> list[str]:
        return [name for name, d in self._fields.items() if d.required]


def text(
    required: bool = False,
    match: MatchStyle = MatchStyle.PREFIX,
    target: str | None = None,
    max_length: int | None = None,
) -> FieldDescriptor:
    return FieldDescriptor(
        FieldKind.TEXT, required, match, target, max_length=max_length,
    )


def number(
    required: bool = False,
    target: str | None = None,
    minimum: int | float | None = None,
    maximum: int | float | None = None,
    integral: bool = False,
) -> FieldDescriptor:
    return FieldDescriptor(
        FieldKind.NUMBER, required, MatchStyle.EXACT, target,
        minimum=minimum, maximum=maximum, integral=integral,
    )


def nested(
    fields: Mapping[str, FieldDescriptor],
    required: bool = False,
    target: str | None = None,
) -> FieldDescriptor:
    return FieldDescriptor(
        FieldKind.NESTED, required, MatchStyle.EXACT, target, FieldSchema(fields),
    )


def resolve_path(
    name: str, descriptor: FieldDescriptor, parent: RecordPath = (),
) -> RecordPath:
    """Record path addressed by a field. Explicit targets are absolute."""
    if descriptor.target:
        return tuple(descriptor.target.split("."))
    return (*parent, name)


@dataclass(frozen=True)
class QueryType:
    """A named query declaration: which fields, which strictness."""
    name: str
    schema: FieldSchema
    mode: ValidationMode = field(default=ValidationMode.LENIENT)


# ─── Declared schemas ────────────────────────────────────────────

_AGE = number(minimum=0, maximum=INT4_MAX, integral=True)

_NAME_PARTS = {
    "first": text(),
    "last": text(),
}

FIND_BY_NAME = QueryType(
    "find_by_name",
    FieldSchema({
        "first": text(target="name.first"),
        "last": text(target="name.last"),
    }),
    ValidationMode.STRICT,
)

FIND_BY_COUNTRY = QueryType(
    "find_by_country",
    FieldSchema({"country": text(required=True)}),
    ValidationMode.LENIENT,
)

FIND_BY_QUERY = QueryType(
    "find_by_query",
    FieldSchema({
        "favoriteExercise": text(
            match=MatchStyle.SUBSTRING, target="favorite_exercise",
        ),
        "country": text(),
        "usrName": text(),
        "name": nested(_NAME_PARTS),
        "age": _AGE,
    }),
    ValidationMode.STRICT,
)

REGISTER = QueryType(
    "register",
    FieldSchema({
        "usrName": text(
            required=True, match=MatchStyle.EXACT, max_length=NAME_MAX_LENGTH,
        ),
        "name": nested(
            {
                "first": text(required=True, max_length=NAME_MAX_LENGTH),
                "last": text(required=True, max_length=NAME_MAX_LENGTH),
            },
            required=True,
        ),
        "country": text(max_length=NAME_MAX_LENGTH),
        "favorite_exercise": text(
            match=MatchStyle.SUBSTRING, max_length=EXERCISE_MAX_LENGTH,
        ),
        "age": _AGE,
    }),
    ValidationMode.STRICT,
)

UNIQUE_IDENTITY = QueryType(
    "unique_identity",
    FieldSchema({"usrName": text(required=True, match=MatchStyle.EXACT)}),
    ValidationMode.LENIENT,
)
