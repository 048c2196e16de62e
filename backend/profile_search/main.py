"""Profile Search API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ProfileSearchError → envelope responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan
    - Every request passes through RequestLoggingMiddleware

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Schema managed by alembic migrations, not create_all at startup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import profile_search.infrastructure.database as database
from profile_search.api.error_handlers import register_error_handlers
from profile_search.api.routes import health, users
from profile_search.config import get_settings
from profile_search.infrastructure.observability import (
    RequestLoggingMiddleware, setup_logging,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Profile Search API started")
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("Profile Search API shutting down")


app = FastAPI(
    title="Profile Search API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(health.router)
app.include_router(users.router)

register_error_handlers(app)
