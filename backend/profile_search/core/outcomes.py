"""Search Outcomes — the canonical result shape every search and lookup reduces to.

Invariants:
    - SearchOutcome is exactly one of Found | NotFound | Rejected | StoreFailure
    - Found always holds at least one record, except for the explicit list-all operation
    - Status codes: Found 200, NotFound 404, Rejected 400, StoreFailure 500
    - Envelope "error" is None exactly when the outcome is Found

Design Decisions:
    - Non-Found outcomes convert to their ProfileSearchError (to_error) so the
      status code and error body live in one place (core/errors.py)
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

from profile_search.core.domain_types import EMPTY_QUERY_REASON, Record
from profile_search.core.errors import (
    EmptyQueryRejectedError,
    ProfileSearchError,
    RecordNotFoundError,
    StoreUnavailableError,
    ValidationRejectedError,
)


@dataclass(frozen=True)
class Found:
    records: list[Record] = field(default_factory=list)
    kind = "found"


@dataclass(frozen=True)
class NotFound:
    message: str = "no profiles found"
    kind = "not_found"

    def to_error(self) -> ProfileSearchError:
        return RecordNotFoundError(self.message)


@dataclass(frozen=True)
class Rejected:
    reason: str
    code: str = "VALIDATION_REJECTED"
    kind = "rejected"

    @classmethod
    def empty_query(cls) -> "Rejected":
        return cls(EMPTY_QUERY_REASON, "EMPTY_QUERY")

    def to_error(self) -> ProfileSearchError:
        if self.code == "EMPTY_QUERY":
            return EmptyQueryRejectedError()
        return ValidationRejectedError(self.reason)


@dataclass(frozen=True)
class StoreFailure:
    reason: str
    operation: str
    timed_out: bool = False
    kind = "store_failure"

    @classmethod
    def from_error(cls, exc: StoreUnavailableError) -> "StoreFailure":
        return cls(exc.detail, exc.operation, exc.timed_out)

    def to_error(self) -> ProfileSearchError:
        return StoreUnavailableError(self.reason, self.operation, self.timed_out)


SearchOutcome = Found | NotFound | Rejected | StoreFailure


def classify_records(records: Sequence[Record]) -> Found | NotFound:
    """Empty result sets are NotFound, never an error and never Found."""
    if not records:
        return NotFound()
    return Found(list(records))


def render_envelope(
    outcome: SearchOutcome, single: bool = False,
) -> tuple[int, dict[str, Any]]:
    """Status code and response body for an outcome.

    single=True renders the ID-lookup shape ({"result": ...}) instead of
    the search shape ({"results": [...]}).
    """
    if isinstance(outcome, Found):
        if single:
            return 200, {
                "error": None,
                "result": outcome.records[0] if outcome.records else None,
            }
        return 200, {"error": None, "results": list(outcome.records)}

    error = outcome.to_error()
    body = error.to_response()
    if single:
        body["result"] = None
    else:
        body["results"] = []
    return error.http_status, body
