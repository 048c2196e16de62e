"""Alembic environment — migrates the profiles schema with the application's own settings.

The database URL comes from profile_search.config (DATABASE_URL / .env), so
migrations and the API always target the same database.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from profile_search.config import get_settings
import profile_search.models  # noqa: F401  (registers Profile on Base.metadata)
from profile_search.db.base import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _configure(**kwargs) -> None:
    context.configure(target_metadata=Base.metadata, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(get_settings().database_url, poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(lambda conn: _configure(connection=conn))
    await engine.dispose()


if context.is_offline_mode():
    _configure(url=get_settings().database_url, literal_binds=True)
else:
    asyncio.run(_migrate_online())
