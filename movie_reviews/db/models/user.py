from __future__ import annotations

"""
👤 MovieReviews · User (review authors)
======================================

Read-side projection of the identity service's accounts. Reviews reference
`users.id`; listing endpoints join this table to populate the author as
`{id, username, fullName}`. Accounts are created and managed elsewhere.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from movie_reviews.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Author record: just enough to render a populated review."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    email = Column(String(320), nullable=False, unique=True)
    username = Column(String(64), nullable=True, unique=True)
    full_name = Column(String(255), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} username={self.username}>"
