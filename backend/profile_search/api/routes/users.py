"""User Profile Routes — lookup, search-as-you-type queries and registration.

Invariants:
    - Query strings are parsed by parse_query_pairs (nested keys, repeated keys) before
      any validation; routes never read individual query parameters themselves
    - Every read returns the envelope produced by render_envelope
    - Routes contain no business logic (delegate to ProfileSearchService)
    - The catch-all route is registered last so it never shadows a real endpoint

Design Decisions:
    - Registration body read as raw JSON (not a Pydantic model): the strict validator must
      see undeclared keys to reject them, which a model would silently drop
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from profile_search.config import get_settings
from profile_search.core.domain_types import RecordId
from profile_search.core.field_schema import (
    FIND_BY_COUNTRY, FIND_BY_NAME, FIND_BY_QUERY, QueryType,
)
from profile_search.core.outcomes import render_envelope
from profile_search.core.query_params import parse_query_pairs
from profile_search.infrastructure.database import get_db
from profile_search.infrastructure.observability import LoggingQueryObserver
from profile_search.infrastructure.profile_store import SqlProfileStore
from profile_search.schemas.profile import ProfileEnvelope, ProfileListEnvelope
from profile_search.services.profile_search import ProfileSearchService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def get_profile_service(
    db: AsyncSession = Depends(get_db),
) -> ProfileSearchService:
    """FastAPI dependency: service over the request's DB session."""
    store = SqlProfileStore(db, timeout_seconds=get_settings().store_timeout_seconds)
    return ProfileSearchService(store, observers=[LoggingQueryObserver()])


async def _run_query(
    request: Request, service: ProfileSearchService, query: QueryType,
) -> JSONResponse:
    parameters = parse_query_pairs(request.query_params.multi_items())
    outcome = await service.search(parameters, query)
    status_code, body = render_envelope(outcome)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/", response_model=ProfileListEnvelope)
async def list_profiles(
    service: ProfileSearchService = Depends(get_profile_service),
):
    """List every registered profile."""
    status_code, body = render_envelope(await service.list_all())
    return JSONResponse(status_code=status_code, content=body)


@router.get("/findByID/{record_id}", response_model=ProfileEnvelope)
async def find_by_id(
    record_id: str,
    service: ProfileSearchService = Depends(get_profile_service),
):
    """Return a single profile by its ID."""
    outcome = await service.find_by_id(RecordId(record_id))
    status_code, body = render_envelope(outcome, single=True)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/findByName", response_model=ProfileListEnvelope)
async def find_by_name(
    request: Request,
    service: ProfileSearchService = Depends(get_profile_service),
):
    """Profiles whose first/last name start with ?first= / ?last= (case-insensitive)."""
    return await _run_query(request, service, FIND_BY_NAME)


@router.get("/findByCountry", response_model=ProfileListEnvelope)
async def find_by_country(
    request: Request,
    service: ProfileSearchService = Depends(get_profile_service),
):
    """Profiles whose country starts with ?country= (case-insensitive)."""
    return await _run_query(request, service, FIND_BY_COUNTRY)


@router.get("/findByQuery", response_model=ProfileListEnvelope)
async def find_by_query(
    request: Request,
    service: ProfileSearchService = Depends(get_profile_service),
):
    """Custom query over any combination of profile fields.

    Nested name parts use bracket or dot notation: ?name[first]=ann or ?name.first=ann.
    """
    return await _run_query(request, service, FIND_BY_QUERY)


@router.post(
    "/register", response_model=ProfileEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def register_profile(
    body: Any = Body(...),
    service: ProfileSearchService = Depends(get_profile_service),
):
    """Create a profile. Undeclared fields and duplicate usrName are rejected."""
    created = await service.register(body)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"error": None, "result": created},
    )


@router.api_route(
    "/{unknown_path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def endpoint_not_available(unknown_path: str):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "endpoint not available",
            "code": "ENDPOINT_NOT_AVAILABLE",
            "path": unknown_path,
        },
    )
