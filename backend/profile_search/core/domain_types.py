"""Domain Types — enums and aliases shared by the validator, compiler and store.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - Record is a plain mapping shaped like the public profile JSON
      (usrName, name.first, name.last, country, favorite_exercise, age)
    - RecordPath is a tuple of keys into a Record (("name", "first"))

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - NewType for RecordId: zero runtime cost, full type-checker support
"""

from enum import Enum
from typing import Any, Mapping, NewType


# ─── Identity Types ──────────────────────────────────────────────

RecordId = NewType("RecordId", str)


# ─── Value Types ─────────────────────────────────────────────────

Record = Mapping[str, Any]
RecordPath = tuple[str, ...]
QueryParameters = Mapping[str, Any]


# ─── Enums ───────────────────────────────────────────────────────

class FieldKind(str, Enum):
    """Structural kind of a declared field."""
    TEXT = "text"
    NUMBER = "number"
    NESTED = "nested"


class MatchStyle(str, Enum):
    """How a text field is matched against stored values."""
    PREFIX = "prefix"          # leading match, search-as-you-type
    SUBSTRING = "substring"    # unanchored free text
    EXACT = "exact"            # case-sensitive equality (identity / enum)


class ValidationMode(str, Enum):
    """Validator strictness — strict rejects undeclared fields."""
    STRICT = "strict"
    LENIENT = "lenient"


class StoreOperation(str, Enum):
    """Record store operations, used to annotate store failures."""
    FIND = "find"
    FIND_BY_ID = "find_by_id"
    FIND_ALL = "find_all"
    EXISTS_WHERE = "exists_where"
    INSERT = "insert"


# ─── Constants ───────────────────────────────────────────────────

EMPTY_QUERY_REASON = "empty query"
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0

# Column limits of the profiles table; values beyond them are client errors
NAME_MAX_LENGTH = 100
EXERCISE_MAX_LENGTH = 200
INT4_MAX = 2**31 - 1
