"""Health Checks — liveness and record-store readiness.

Invariants:
    - /health/ answers 200 whenever the process serves requests
    - /health/ready answers 503 until the profiles database accepts a query
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

import profile_search.infrastructure.database as database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness():
    return {"status": "healthy", "service": "profile-search-api"}


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready"}
