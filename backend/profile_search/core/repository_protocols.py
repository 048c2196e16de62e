"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: store methods are async because implementations do IO,
      but the validator and compiler that feed them are never async themselves —
      the service orchestrates the async calls around the pure logic
"""

from typing import Any, Protocol

from profile_search.core.compile_predicate import MatchPredicate
from profile_search.core.domain_types import Record, RecordId


class ProfileStore(Protocol):
    """Contract for profile persistence — implemented by shell.

    find/find_by_id/find_all/exists_where raise StoreUnavailableError on
    connectivity failure or timeout; insert additionally raises
    UniquenessViolationError when a unique constraint is broken.
    """
    async def find(self, predicate: MatchPredicate) -> list[Record]: ...
    async def find_by_id(self, record_id: RecordId) -> Record | None: ...
    async def find_all(self) -> list[Record]: ...
    async def exists_where(self, predicate: MatchPredicate) -> bool: ...
    async def insert(self, record: Record) -> Record: ...


class QueryObserver(Protocol):
    """Composable hook around each service operation."""
    def before(self, operation: str, parameters: Any) -> None: ...
    def after(self, operation: str, outcome: Any) -> None: ...
