"""Service test fixtures — async DB + FastAPI test client + seeded profiles.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched for the readiness check, which bypasses get_db
    - seeded_profiles inserts the same three profiles for every test that asks

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL ILIKE is rendered as lower() LIKE lower() on SQLite)
    - Seed rows inserted through the ORM, not the API: store/route tests
      should not depend on registration working
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from profile_search.db.base import Base
from profile_search.infrastructure.database import get_db, DatabaseSessionManager
from profile_search.models.profile import Profile
import profile_search.infrastructure.database as db_module
from profile_search.main import app

SEED_PROFILES = [
    {"usr_name": "anna_s", "first_name": "Anna", "last_name": "Smith",
     "country": "Spain", "favorite_exercise": "Push ups", "age": 30},
    {"usr_name": "annette_l", "first_name": "Annette", "last_name": "Lee",
     "country": "Sweden", "favorite_exercise": "Squats", "age": 25},
    {"usr_name": "bob_a", "first_name": "Bob", "last_name": "Ann",
     "country": "Spain", "favorite_exercise": "Deadlift", "age": 31},
]


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def seeded_profiles(test_db):
    """Insert Anna Smith, Annette Lee and Bob Ann; returns the ORM rows."""
    profiles = [Profile(**row) for row in SEED_PROFILES]
    test_db.add_all(profiles)
    await test_db.commit()
    return profiles


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    # Override get_db for route-level dependency injection
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Patch db_manager for the readiness check that uses it directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
