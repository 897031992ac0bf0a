from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ReviewInput(BaseModel):
    rating: float = Field(..., description="Numeric rating; range is not enforced")
    review: str = Field(..., description="Free-text review body")


class ReviewAuthor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="fullName")


class Review(BaseModel):
    """A review as sent over the wire (camelCase keys kept for existing clients)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    movie_id: str = Field(..., alias="movieID")
    user: Union[ReviewAuthor, str]
    rating: float
    review: str
    likes: List[str] = Field(default_factory=list)
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_record(cls, record: Dict[str, Any], **extra: Any) -> "Review":
        author = record.get("user")
        return cls(
            id=record["id"],
            movie_id=record["movie_id"],
            user=ReviewAuthor(**author) if author else record["user_id"],
            rating=record["rating"],
            review=record["review"],
            likes=list(record.get("likes") or []),
            created_at=record["created_at"],
            updated_at=record.get("updated_at"),
            **extra,
        )


class AnnotatedReview(Review):
    """Listing entry with per-caller flags."""

    is_author: bool = Field(False, alias="isUserLoggedIn")
    is_liked: bool = Field(False, alias="isLiked")


class ReviewMessage(BaseModel):
    message: str
    review: Review


class ReviewData(BaseModel):
    data: Review


class ReviewList(BaseModel):
    data: List[AnnotatedReview]


class ErrorBody(BaseModel):
    error: str
