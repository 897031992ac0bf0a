from __future__ import annotations

"""
⭐ MovieReviews · Review & ReviewLike
====================================

A user's rating and free-text opinion of a movie, plus the set of users who
liked it.

Highlights
----------
• `movie_id` is a weak reference (slug or UUID string); the movie catalogue
  lives in another service.
• `user_id` is a weak reference too: authors come from the token, and a
  missing `users` row only blanks the populated author fields.
• `updated_at` stays NULL until the first edit.
• `version` is an optimistic-lock counter (`version_id_col`): a stale UPDATE
  raises `StaleDataError` instead of silently overwriting.
• Likes are rows in `review_likes` with PK `(review_id, user_id)`, so a user
  can like a review at most once. They cascade with the review.

No ORM relationships are declared; repositories issue explicit joins so that
async sessions never trigger lazy loads.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    Uuid,
)

from movie_reviews.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Review(Base):
    """One review of one movie by one user."""

    __tablename__ = "reviews"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    movie_id = Column(String(128), nullable=False, index=True, doc="Reviewed movie (slug or UUID string).")
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True,
                     doc="Author of the review (weak reference to `users.id`).")

    rating = Column(Float, nullable=False)
    review = Column(Text, nullable=False)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_reviews_movie_created", "movie_id", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Review id={self.id} movie={self.movie_id} user={self.user_id} rating={self.rating}>"


class ReviewLike(Base):
    """Membership row: `user_id` likes `review_id`."""

    __tablename__ = "review_likes"

    review_id = Column(Uuid(as_uuid=True), ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        PrimaryKeyConstraint("review_id", "user_id", name="pk_review_likes"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ReviewLike review={self.review_id} user={self.user_id}>"
