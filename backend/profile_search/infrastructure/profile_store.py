"""SQL Profile Store — ProfileStore implementation over an async SQLAlchemy session.

Invariants:
    - Every call is bounded by timeout_seconds; a timeout is a StoreUnavailableError
    - Operational/driver failures -> StoreUnavailableError annotated with the operation
    - Unique index violations on insert -> UniquenessViolationError (session rolled back)
    - Client text reaches SQL only through bound LIKE parameters with escaped metacharacters
    - MatchAnyRule contributes no clause; ExactRule is plain equality, except that a
      fractional value against an integer column is a constant false clause

Design Decisions:
    - Record paths mapped to columns explicitly: a rule addressing an unknown path is a
      programming error and raises ValueError instead of silently matching
    - ILIKE for case-insensitive matching: native on PostgreSQL, lower() LIKE lower() on SQLite
"""

import asyncio
import logging
import uuid
from typing import Awaitable, TypeVar

from sqlalchemy import Integer, false, select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from profile_search.core.compile_predicate import (
    ExactRule, MatchAnyRule, MatchPredicate, MatchRule, escape_like,
)
from profile_search.core.domain_types import (
    DEFAULT_STORE_TIMEOUT_SECONDS, MatchStyle, Record, RecordId, RecordPath,
    StoreOperation,
)
from profile_search.core.errors import StoreUnavailableError, UniquenessViolationError
from profile_search.models.profile import Profile

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LIKE_ESCAPE = "\\"

_COLUMNS = {
    ("usrName",): Profile.usr_name,
    ("name", "first"): Profile.first_name,
    ("name", "last"): Profile.last_name,
    ("country",): Profile.country,
    ("favorite_exercise",): Profile.favorite_exercise,
    ("age",): Profile.age,
}


def column_for(path: RecordPath):
    try:
        return _COLUMNS[path]
    except KeyError:
        raise ValueError(f"no column for record path {'.'.join(path)!r}") from None


def rule_to_clause(rule: MatchRule):
    """SQL clause for one rule, or None when the rule does not constrain."""
    if isinstance(rule, MatchAnyRule):
        return None
    column = column_for(rule.path)
    if isinstance(rule, ExactRule):
        return _exact_clause(column, rule.value)
    pattern = escape_like(rule.value, _LIKE_ESCAPE)
    if rule.style is MatchStyle.PREFIX:
        pattern = f"{pattern}%"
    else:
        pattern = f"%{pattern}%"
    return column.ilike(pattern, escape=_LIKE_ESCAPE)


def _exact_clause(column, value):
    # Integer binds truncate floats (2.5 -> 2), so a fraction can never match
    if isinstance(column.expression.type, Integer) and isinstance(value, float):
        if not value.is_integer():
            return false()
        value = int(value)
    return column == value


def predicate_to_clauses(predicate: MatchPredicate) -> list:
    clauses = (rule_to_clause(rule) for rule in predicate.rules)
    return [c for c in clauses if c is not None]


class SqlProfileStore:
    """Profile persistence backed by the profiles table."""

    def __init__(
        self,
        session: AsyncSession,
        timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def find(self, predicate: MatchPredicate) -> list[Record]:
        query = (
            select(Profile)
            .where(*predicate_to_clauses(predicate))
            .order_by(Profile.usr_name)
        )
        result = await self._run(StoreOperation.FIND, self.session.execute(query))
        return [p.to_record() for p in result.scalars().all()]

    async def find_all(self) -> list[Record]:
        query = select(Profile).order_by(Profile.usr_name)
        result = await self._run(StoreOperation.FIND_ALL, self.session.execute(query))
        return [p.to_record() for p in result.scalars().all()]

    async def find_by_id(self, record_id: RecordId) -> Record | None:
        try:
            key = uuid.UUID(str(record_id))
        except ValueError:
            return None
        profile = await self._run(
            StoreOperation.FIND_BY_ID, self.session.get(Profile, key),
        )
        return profile.to_record() if profile else None

    async def exists_where(self, predicate: MatchPredicate) -> bool:
        query = (
            select(Profile.id)
            .where(*predicate_to_clauses(predicate))
            .limit(1)
        )
        result = await self._run(
            StoreOperation.EXISTS_WHERE, self.session.execute(query),
        )
        return result.scalar_one_or_none() is not None

    async def insert(self, record: Record) -> Record:
        name = record.get("name") or {}
        profile = Profile(
            usr_name=record["usrName"],
            first_name=name["first"],
            last_name=name["last"],
            country=record.get("country"),
            favorite_exercise=record.get("favorite_exercise"),
            age=record.get("age"),
        )
        self.session.add(profile)
        try:
            await self._run(StoreOperation.INSERT, self.session.commit())
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                f"Unique constraint rejected profile {profile.usr_name!r}: {e.orig}",
                extra={"operation": StoreOperation.INSERT.value},
            )
            raise UniquenessViolationError("usrName", profile.usr_name) from e
        return profile.to_record()

    async def _run(self, operation: StoreOperation, awaitable: Awaitable[T]) -> T:
        """Await a store call under the timeout, mapping failures to StoreUnavailableError."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(
                f"Store {operation.value} timed out after {self.timeout_seconds}s",
                extra={"operation": operation.value},
            )
            raise StoreUnavailableError(
                f"timed out after {self.timeout_seconds}s", operation.value, timed_out=True,
            ) from e
        except IntegrityError:
            raise
        except (OperationalError, DBAPIError) as e:
            logger.error(
                f"Store {operation.value} failed: {e}",
                extra={"operation": operation.value},
            )
            raise StoreUnavailableError(
                "connection or driver error", operation.value,
            ) from e
