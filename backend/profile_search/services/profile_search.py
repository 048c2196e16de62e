"""Profile Search Service — orchestrates validate -> compile -> store -> classify.

Invariants:
    - Validation and compilation run before the store is touched; rejections never reach it
    - Empty parameter mappings are rejected as "empty query" for every query type
    - Store failures on reads become StoreFailure outcomes; nothing is retried here
    - register() relies on the unique index as the source of truth for duplicates:
      the exists_where pre-check only gives an early answer, it is not a lock
    - Observers see every operation before and after it runs

Design Decisions:
    - Reads return SearchOutcome values; register raises ProfileSearchError subclasses
      (the global handler renders both into the same envelope)
    - Store injected as ProfileStore Protocol: routes build SqlProfileStore,
      tests may pass any structural equivalent
"""

import logging
from typing import Any, Mapping, Sequence

from profile_search.core.compile_predicate import MatchPredicate, compile_predicate
from profile_search.core.domain_types import Record, RecordId
from profile_search.core.errors import (
    ProfileSearchError,
    StoreUnavailableError,
    UniquenessViolationError,
    ValidationRejectedError,
)
from profile_search.core.field_schema import QueryType, REGISTER, UNIQUE_IDENTITY
from profile_search.core.outcomes import (
    Found, NotFound, Rejected, SearchOutcome, StoreFailure, classify_records,
)
from profile_search.core.repository_protocols import ProfileStore, QueryObserver
from profile_search.core.validate_query import Invalid, coerce_number, validate

logger = logging.getLogger(__name__)


class ProfileSearchService:
    """Search, lookup and registration over a ProfileStore."""

    def __init__(
        self, store: ProfileStore, observers: Sequence[QueryObserver] = (),
    ):
        self.store = store
        self.observers = list(observers)

    # ─── Reads ──────────────────────────────────────────────────

    async def search(self, parameters: Any, query: QueryType) -> SearchOutcome:
        """Run a declared query type against the store."""
        self._before(query.name, parameters)
        outcome = await self._search(parameters, query)
        self._after(query.name, outcome)
        return outcome

    async def _search(self, parameters: Any, query: QueryType) -> SearchOutcome:
        if isinstance(parameters, Mapping) and not parameters:
            return Rejected.empty_query()

        validation = validate(parameters, query.schema, query.mode)
        if isinstance(validation, Invalid):
            return Rejected(validation.reason)

        predicate = compile_predicate(validation.parameters, query.schema)
        if isinstance(predicate, Rejected):
            return predicate

        try:
            records = await self.store.find(predicate)
        except StoreUnavailableError as e:
            return StoreFailure.from_error(e)
        return classify_records(records)

    async def find_by_id(self, record_id: RecordId) -> SearchOutcome:
        self._before("find_by_id", {"id": record_id})
        try:
            record = await self.store.find_by_id(record_id)
        except StoreUnavailableError as e:
            outcome: SearchOutcome = StoreFailure.from_error(e)
        else:
            if record is None:
                outcome = NotFound(f"profile '{record_id}' not found")
            else:
                outcome = Found([record])
        self._after("find_by_id", outcome)
        return outcome

    async def list_all(self) -> SearchOutcome:
        """Explicit list-all; an empty store is still Found([])."""
        self._before("list_all", None)
        try:
            outcome: SearchOutcome = Found(await self.store.find_all())
        except StoreUnavailableError as e:
            outcome = StoreFailure.from_error(e)
        self._after("list_all", outcome)
        return outcome

    # ─── Writes ─────────────────────────────────────────────────

    async def register(self, body: Any) -> Record:
        """Create a profile from a strictly validated body.

        Raises ValidationRejectedError, UniquenessViolationError or
        StoreUnavailableError.
        """
        self._before(REGISTER.name, body)
        try:
            created = await self._register(body)
        except ProfileSearchError as e:
            e.context.query_type = REGISTER.name
            self._after(REGISTER.name, e)
            raise
        logger.info(
            f"Registered profile {created['usrName']!r}",
            extra={"operation": REGISTER.name},
        )
        self._after(REGISTER.name, Found([created]))
        return created

    async def _register(self, body: Any) -> Record:
        validation = validate(body, REGISTER.schema, REGISTER.mode)
        if isinstance(validation, Invalid):
            raise ValidationRejectedError(validation.reason)

        record = build_profile_record(validation.parameters)

        identity = compile_predicate(
            {"usrName": record["usrName"]}, UNIQUE_IDENTITY.schema,
        )
        if isinstance(identity, MatchPredicate) and await self.store.exists_where(identity):
            raise UniquenessViolationError("usrName", record["usrName"])

        return await self.store.insert(record)

    # ─── Observers ──────────────────────────────────────────────

    def _before(self, operation: str, parameters: Any) -> None:
        for observer in self.observers:
            observer.before(operation, parameters)

    def _after(self, operation: str, outcome: Any) -> None:
        for observer in self.observers:
            observer.after(operation, outcome)


def build_profile_record(parameters: Mapping[str, Any]) -> dict[str, Any]:
    """Profile record from validated REGISTER parameters."""
    record: dict[str, Any] = {
        "usrName": parameters["usrName"].strip(),
        "name": {
            "first": parameters["name"]["first"].strip(),
            "last": parameters["name"]["last"].strip(),
        },
        "country": parameters.get("country"),
        "favorite_exercise": parameters.get("favorite_exercise"),
        "age": None,
    }
    if "age" in parameters:
        record["age"] = coerce_number(parameters["age"], REGISTER.schema["age"])
    return record
