"""Profile Search Service — verifies orchestration order, outcomes and registration rules.

Invariants:
    - Rejected queries (empty, undeclared field, bad number) never touch the store
    - Zero matches → NotFound; store failure → StoreFailure; nothing is retried
    - Observers see before/after for every operation, including failures
    - Duplicate usrName is rejected even when the pre-check races (unique index wins)

Design Decisions:
    - In-memory FakeStore applies MatchPredicate.matches, so these tests exercise
      the service without a database; the SQL store has its own tests
"""

import pytest

from profile_search.core.errors import (
    StoreUnavailableError,
    UniquenessViolationError,
    ValidationRejectedError,
)
from profile_search.core.field_schema import (
    FIND_BY_COUNTRY, FIND_BY_NAME, FIND_BY_QUERY,
)
from profile_search.core.outcomes import Found, NotFound, Rejected, StoreFailure
from profile_search.services.profile_search import (
    ProfileSearchService, build_profile_record,
)


def _record(usr, first, last, country=None, exercise=None, age=None) -> dict:
    return {
        "id": f"id-{usr}",
        "usrName": usr,
        "name": {"first": first, "last": last},
        "country": country,
        "favorite_exercise": exercise,
        "age": age,
    }


ANNA = _record("anna_s", "Anna", "Smith", "Spain", "Push ups", 30)
ANNETTE = _record("annette_l", "Annette", "Lee", "Sweden", "Squats", 25)
BOB = _record("bob_a", "Bob", "Ann", "Spain", "Deadlift", 31)


class FakeStore:
    """In-memory ProfileStore that records every call."""

    def __init__(self, records=()):
        self.records = [dict(r) for r in records]
        self.calls: list[str] = []

    async def find(self, predicate):
        self.calls.append("find")
        return [r for r in self.records if predicate.matches(r)]

    async def find_by_id(self, record_id):
        self.calls.append("find_by_id")
        return next((r for r in self.records if r["id"] == record_id), None)

    async def find_all(self):
        self.calls.append("find_all")
        return list(self.records)

    async def exists_where(self, predicate):
        self.calls.append("exists_where")
        return any(predicate.matches(r) for r in self.records)

    async def insert(self, record):
        self.calls.append("insert")
        if any(r["usrName"] == record["usrName"] for r in self.records):
            raise UniquenessViolationError("usrName", record["usrName"])
        created = {"id": f"id-{record['usrName']}", **record}
        self.records.append(created)
        return created


class FailingStore(FakeStore):
    async def find(self, predicate):
        raise StoreUnavailableError("timed out after 5.0s", "find", timed_out=True)

    async def find_all(self):
        raise StoreUnavailableError("connection or driver error", "find_all")

    async def find_by_id(self, record_id):
        raise StoreUnavailableError("connection or driver error", "find_by_id")


class RacingStore(FakeStore):
    """Pre-check never sees the competing insert; only insert enforces uniqueness."""

    async def exists_where(self, predicate):
        self.calls.append("exists_where")
        return False


class RecordingObserver:
    def __init__(self):
        self.events: list[tuple] = []

    def before(self, operation, parameters):
        self.events.append(("before", operation))

    def after(self, operation, outcome):
        self.events.append(("after", operation, outcome))


@pytest.fixture
def store():
    return FakeStore([ANNA, ANNETTE, BOB])


@pytest.fixture
def service(store):
    return ProfileSearchService(store)


# --- search: rejections -------------------------------------------------------

@pytest.mark.parametrize("query", [FIND_BY_NAME, FIND_BY_COUNTRY, FIND_BY_QUERY])
async def test_empty_query_rejected_for_every_query_type(service, store, query):
    outcome = await service.search({}, query)

    assert outcome == Rejected.empty_query()
    assert store.calls == []


async def test_strict_query_rejects_undeclared_field_before_store(service, store):
    outcome = await service.search({"first": "ann", "zzz": "x"}, FIND_BY_NAME)

    assert isinstance(outcome, Rejected)
    assert "zzz" in outcome.reason
    assert store.calls == []


async def test_lenient_query_ignores_undeclared_field(service):
    outcome = await service.search({"country": "sw", "zzz": "x"}, FIND_BY_COUNTRY)
    assert outcome == Found([ANNETTE])


async def test_missing_required_country_rejected(service, store):
    outcome = await service.search({"zzz": "x"}, FIND_BY_COUNTRY)
    assert isinstance(outcome, Rejected)
    assert store.calls == []


async def test_non_numeric_age_rejected(service, store):
    outcome = await service.search({"age": "thirty"}, FIND_BY_QUERY)
    assert isinstance(outcome, Rejected)
    assert store.calls == []


# --- search: results ----------------------------------------------------------

async def test_first_name_search_matches_prefix_only(service):
    outcome = await service.search({"first": "ann"}, FIND_BY_NAME)
    assert outcome == Found([ANNA, ANNETTE])


async def test_nested_custom_query(service):
    outcome = await service.search(
        {"name": {"last": "an"}, "country": "SP"}, FIND_BY_QUERY,
    )
    assert outcome == Found([BOB])


async def test_zero_matches_is_not_found(service):
    outcome = await service.search({"first": "zed"}, FIND_BY_NAME)
    assert isinstance(outcome, NotFound)


async def test_store_failure_becomes_outcome():
    service = ProfileSearchService(FailingStore())

    outcome = await service.search({"first": "ann"}, FIND_BY_NAME)

    assert isinstance(outcome, StoreFailure)
    assert outcome.timed_out is True
    assert outcome.operation == "find"


# --- find_by_id / list_all ----------------------------------------------------

async def test_find_by_id(service):
    assert await service.find_by_id("id-bob_a") == Found([BOB])
    outcome = await service.find_by_id("missing")
    assert isinstance(outcome, NotFound)
    assert "missing" in outcome.message


async def test_list_all_empty_store_is_found():
    service = ProfileSearchService(FakeStore())
    assert await service.list_all() == Found([])


async def test_read_store_failures_become_outcomes():
    service = ProfileSearchService(FailingStore())
    assert isinstance(await service.list_all(), StoreFailure)
    assert isinstance(await service.find_by_id("x"), StoreFailure)


# --- Observers ----------------------------------------------------------------

async def test_observer_sees_before_and_after(store):
    observer = RecordingObserver()
    service = ProfileSearchService(store, observers=[observer])

    await service.search({"first": "ann"}, FIND_BY_NAME)

    assert observer.events[0] == ("before", "find_by_name")
    assert observer.events[1][:2] == ("after", "find_by_name")
    assert isinstance(observer.events[1][2], Found)


async def test_observer_sees_registration_failure(store):
    observer = RecordingObserver()
    service = ProfileSearchService(store, observers=[observer])

    with pytest.raises(ValidationRejectedError):
        await service.register({"usrName": "x"})

    assert observer.events[-1][:2] == ("after", "register")
    assert isinstance(observer.events[-1][2], ValidationRejectedError)
    assert observer.events[-1][2].context.query_type == "register"


# --- register -----------------------------------------------------------------

NEW_PROFILE = {
    "usrName": " carla_m ",
    "name": {"first": "Carla", "last": "Mora"},
    "country": "Chile",
    "age": "28",
}


async def test_register_creates_profile(service, store):
    created = await service.register(NEW_PROFILE)

    assert created["usrName"] == "carla_m"
    assert created["age"] == 28
    assert store.calls == ["exists_where", "insert"]


async def test_register_rejects_undeclared_field(service, store):
    with pytest.raises(ValidationRejectedError) as exc_info:
        await service.register({**NEW_PROFILE, "isAdmin": True})

    assert "isAdmin" in exc_info.value.reason
    assert store.calls == []


@pytest.mark.parametrize("age", ["-1", "2.5", "old", "99999999999999999999", 1e300])
async def test_register_rejects_invalid_age(service, store, age):
    with pytest.raises(ValidationRejectedError):
        await service.register({**NEW_PROFILE, "age": age})
    assert "insert" not in store.calls


async def test_register_duplicate_rejected_by_pre_check(service, store):
    with pytest.raises(UniquenessViolationError):
        await service.register({**NEW_PROFILE, "usrName": "anna_s"})
    assert "insert" not in store.calls


async def test_register_duplicate_rejected_when_pre_check_races():
    store = RacingStore()
    service = ProfileSearchService(store)

    await service.register(NEW_PROFILE)
    with pytest.raises(UniquenessViolationError):
        await service.register(NEW_PROFILE)

    assert len(store.records) == 1


async def test_register_malformed_body_rejected(service):
    with pytest.raises(ValidationRejectedError):
        await service.register(["not", "an", "object"])


# --- build_profile_record -----------------------------------------------------

def test_build_profile_record_strips_names_and_fills_optionals():
    record = build_profile_record({
        "usrName": "u1", "name": {"first": " Ann ", "last": "Lee "},
    })
    assert record == {
        "usrName": "u1",
        "name": {"first": "Ann", "last": "Lee"},
        "country": None,
        "favorite_exercise": None,
        "age": None,
    }


def test_build_profile_record_converts_age_to_int():
    record = build_profile_record({
        "usrName": "u1", "name": {"first": "A", "last": "B"}, "age": "28.0",
    })
    assert record["age"] == 28
    assert isinstance(record["age"], int)


async def test_register_rejects_text_longer_than_column(service, store):
    with pytest.raises(ValidationRejectedError) as exc_info:
        await service.register({**NEW_PROFILE, "usrName": "u" * 101})

    assert "usrName" in exc_info.value.reason
    assert store.calls == []


async def test_search_rejects_age_outside_column_range(service, store):
    outcome = await service.search({"age": "99999999999999999999"}, FIND_BY_QUERY)

    assert isinstance(outcome, Rejected)
    assert store.calls == []
