"""Profile Schemas — Pydantic models describing the public profile and response envelopes.

Invariants:
    - Field names match the record shape produced by Profile.to_record()
    - Envelopes: error is None on success; results for searches, result for single lookups

Design Decisions:
    - Used as response_model for OpenAPI only; routes return render_envelope() bodies
      directly because status codes vary per outcome
"""

from pydantic import BaseModel, Field


class ProfileName(BaseModel):
    first: str
    last: str


class ProfileOut(BaseModel):
    """A profile as returned by every endpoint."""
    id: str
    usrName: str = Field(max_length=100)
    name: ProfileName
    country: str | None = None
    favorite_exercise: str | None = None
    age: int | None = Field(None, ge=0)


class ProfileListEnvelope(BaseModel):
    error: str | None = None
    code: str | None = None
    results: list[ProfileOut] = Field(default_factory=list)


class ProfileEnvelope(BaseModel):
    error: str | None = None
    code: str | None = None
    result: ProfileOut | None = None
