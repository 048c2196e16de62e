"""Fuzzy Predicate Compiler — turns validated query parameters into a composite match predicate.

Invariants:
    - Pure function: no IO, no async, no DB
    - Empty parameters are rejected ("empty query"); an unconstrained predicate is
      never built by omission — listing everything is a separate operation
    - Client text is always escaped before it becomes a pattern
    - Absent/empty text field -> MatchAnyRule (matches any value, including missing)
    - Absent number field -> no rule at all
    - Number rules carry values already bounded by the descriptor (int when integral)
    - All rules are AND-ed; matching is binary, there is no ranking

Design Decisions:
    - Rules keep the literal value next to the compiled regex: the in-memory
      matcher uses the regex, the SQL store re-escapes the literal for LIKE
    - PREFIX anchors at the start (name/identifier lookups typed progressively);
      SUBSTRING is unanchored (free-text fields); EXACT compiles to ExactRule
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping

from profile_search.core.domain_types import (
    FieldKind, MatchStyle, Record, RecordPath,
)
from profile_search.core.field_schema import FieldSchema, resolve_path
from profile_search.core.outcomes import Rejected
from profile_search.core.validate_query import coerce_number

_LIKE_SPECIALS = ("\\", "%", "_")


def lookup(record: Record, path: RecordPath) -> Any:
    """Value at path inside a record, or None when any segment is missing."""
    current: Any = record
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE metacharacters so the value matches literally."""
    for char in _LIKE_SPECIALS:
        value = value.replace(char, escape + char)
    return value


# ─── Rules ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextPartialRule:
    """Case-insensitive prefix or substring match on a text field."""
    path: RecordPath
    value: str
    style: MatchStyle
    pattern: re.Pattern

    def matches(self, record: Record) -> bool:
        candidate = lookup(record, self.path)
        if candidate is None:
            return False
        return self.pattern.search(str(candidate)) is not None


@dataclass(frozen=True)
class MatchAnyRule:
    """Unconstrained text field — matches whatever the record holds."""
    path: RecordPath

    def matches(self, record: Record) -> bool:
        return True


@dataclass(frozen=True)
class ExactRule:
    """Equality on a numeric, enum or identity field."""
    path: RecordPath
    value: int | float | str

    def matches(self, record: Record) -> bool:
        candidate = lookup(record, self.path)
        if isinstance(candidate, bool):
            return False
        return candidate == self.value


MatchRule = TextPartialRule | MatchAnyRule | ExactRule


@dataclass(frozen=True)
class MatchPredicate:
    """Conjunction of per-field rules."""
    rules: tuple[MatchRule, ...]

    def matches(self, record: Record) -> bool:
        return all(rule.matches(record) for rule in self.rules)


# ─── Compiler ────────────────────────────────────────────────────

def build_pattern(value: str, style: MatchStyle) -> re.Pattern:
    """Case-insensitive regex for literal client text."""
    escaped = re.escape(value)
    if style is MatchStyle.PREFIX:
        escaped = "^" + escaped
    return re.compile(escaped, re.IGNORECASE)


def compile_predicate(
    parameters: Mapping[str, Any], schema: FieldSchema,
) -> MatchPredicate | Rejected:
    """Compile validated parameters into a MatchPredicate, or Rejected."""
    if not isinstance(parameters, Mapping):
        return Rejected("query parameters must be a mapping")
    if not parameters:
        return Rejected.empty_query()
    rules: list[MatchRule] = []
    error = _compile_level(parameters, schema, (), rules)
    if error:
        return error
    return MatchPredicate(tuple(rules))


def _compile_level(
    parameters: Mapping[str, Any],
    schema: FieldSchema,
    parent: RecordPath,
    rules: list[MatchRule],
) -> Rejected | None:
    for name, descriptor in schema.items():
        path = resolve_path(name, descriptor, parent)
        value = parameters.get(name)

        if descriptor.kind is FieldKind.NESTED:
            if value is None:
                value = {}
            if not isinstance(value, Mapping):
                return Rejected(f"field '{'.'.join(path)}' must be an object")
            error = _compile_level(value, descriptor.fields, path, rules)
            if error:
                return error

        elif descriptor.kind is FieldKind.NUMBER:
            if value is None:
                continue
            converted = coerce_number(value, descriptor)
            if converted is None:
                return Rejected(
                    f"field '{'.'.join(path)}' must be {descriptor.describe_number()}",
                )
            rules.append(ExactRule(path, converted))

        else:
            rules.append(_text_rule(path, value, descriptor.match))
    return None


def _text_rule(path: RecordPath, value: Any, style: MatchStyle) -> MatchRule:
    if value is None or value == "":
        return MatchAnyRule(path)
    value = str(value)
    if style is MatchStyle.EXACT:
        return ExactRule(path, value)
    return TextPartialRule(path, value, style, build_pattern(value, style))
