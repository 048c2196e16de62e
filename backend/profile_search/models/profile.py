"""Profile ORM — persists user profiles searched by the query engine.

Invariants:
    - id is UUID primary key (client-side default)
    - usr_name is unique at the database level (ix_profiles_usr_name);
      that index, not a prior lookup, decides whether a profile already exists
    - first_name and last_name are non-nullable; every other attribute is optional

Design Decisions:
    - name stored flat (first_name/last_name) and re-nested by to_record():
      LIKE queries stay simple column expressions
    - to_record() produces the public JSON shape consumed by MatchPredicate.matches
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from profile_search.core.domain_types import EXERCISE_MAX_LENGTH, NAME_MAX_LENGTH
from profile_search.db.base import Base


class Profile(Base):
    """A registered user profile."""
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    usr_name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH), nullable=False, unique=True, index=True,
    )
    first_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    last_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    country: Mapped[str | None] = mapped_column(String(NAME_MAX_LENGTH), nullable=True)
    favorite_exercise: Mapped[str | None] = mapped_column(
        String(EXERCISE_MAX_LENGTH), nullable=True,
    )
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_record(self) -> dict:
        return {
            "id": str(self.id),
            "usrName": self.usr_name,
            "name": {"first": self.first_name, "last": self.last_name},
            "country": self.country,
            "favorite_exercise": self.favorite_exercise,
            "age": self.age,
        }
