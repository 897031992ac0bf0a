# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ MovieReviews · Review API (CRUD + likes)                                  ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Endpoints:                                                                ║
# ║  - POST   /movies/{movie_id}/reviews   → Add review (201)                 ║
# ║  - GET    /movies/{movie_id}/reviews   → List a movie's reviews           ║
# ║  - GET    /reviews/{review_id}         → One review (author populated)    ║
# ║  - PUT    /reviews/{review_id}         → Update rating/body (201)         ║
# ║  - DELETE /reviews/{review_id}         → Delete (204, no body)            ║
# ║  - POST   /reviews/{review_id}/like    → Like (idempotent)                ║
# ║  - POST   /reviews/{review_id}/unlike  → Unlike (idempotent)              ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Practices                                                                 ║
# ║  - Auth: mutations require `get_current_user`; the listing accepts an     ║
# ║    optional caller to compute `isUserLoggedIn` / `isLiked`.               ║
# ║  - Errors inside an operation are logged and answered as `{error}`.       ║
# ║  - Cache control: every response carries `Cache-Control: no-store`.       ║
# ║  - Structured `review_action` log per successful mutation.                ║
# ╚══════════════════════════════════════════════════════════════════════════╝
"""
Review endpoints.

Response bodies keep the historical shape: `{message, review}` for
mutations, `{data}` for reads and `{error}` for failures. `addReview`
failures answer HTTP 200 unless `REVIEWS_STRICT_STATUS` is enabled.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Request, Response, status

from movie_reviews.api.http_utils import get_client_ip, json_no_store, sanitize_movie_id
from movie_reviews.core.config import settings
from movie_reviews.core.exceptions import ConcurrentUpdateError
from movie_reviews.core.security import CurrentUser, get_current_user, get_optional_user
from movie_reviews.repositories.reviews import ReviewRepositoryProtocol, get_review_repository
from movie_reviews.schemas.reviews import (
    AnnotatedReview,
    ErrorBody,
    Review,
    ReviewData,
    ReviewInput,
    ReviewList,
    ReviewMessage,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reviews"])

NOT_FOUND = "Review not found"

_ERROR_RESPONSES = {
    404: {"model": ErrorBody, "description": "Review not found"},
    500: {"model": ErrorBody, "description": "Storage failure"},
}


def _log_review_action(request: Request, user_id: str, action: str, **meta: Any) -> None:
    """Structured audit log for review mutations."""
    logger.info(
        "review_action",
        extra={
            "action": action,
            "user_id": user_id,
            "ip": get_client_ip(request),
            "ua": request.headers.get("user-agent"),
            "meta": meta or {},
        },
    )


def _error(message: str, status_code: int):
    return json_no_store(ErrorBody(error=message).model_dump(), status_code=status_code)


def _message(message: str, record: dict, status_code: int = status.HTTP_200_OK):
    body = ReviewMessage(message=message, review=Review.from_record(record))
    return json_no_store(body.model_dump(by_alias=True, mode="json"), status_code=status_code)


# ╭───────────────────────────────────────────────────────────────────────────╮
# │ Create / list by movie                                                     │
# ╰───────────────────────────────────────────────────────────────────────────╯

@router.post(
    "/movies/{movie_id}/reviews",
    status_code=status.HTTP_201_CREATED,
    response_model=ReviewMessage,
    responses={500: _ERROR_RESPONSES[500]},
    summary="Add a review to a movie",
)
async def add_review(
    body: ReviewInput,
    request: Request,
    movie_id: str = Path(..., description="Movie slug or UUID"),
    user: CurrentUser = Depends(get_current_user),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    """Persist a new review with empty likes and no `updatedAt`.

    No duplicate check is made: a user may review the same movie twice.
    """
    mid = sanitize_movie_id(movie_id)
    try:
        record = await repo.create_review(movie_id=mid, user_id=user.id, rating=body.rating, review=body.review)
    except Exception as e:
        logger.exception("Failed to add review", extra={"movie_id": mid, "user_id": user.id})
        failure_status = (
            status.HTTP_500_INTERNAL_SERVER_ERROR if settings.REVIEWS_STRICT_STATUS else status.HTTP_200_OK
        )
        return _error(str(e), failure_status)

    _log_review_action(request, user.id, "REVIEW_CREATE", review_id=record["id"], movie_id=mid)
    return _message("Review added successfully", record, status.HTTP_201_CREATED)


@router.get(
    "/movies/{movie_id}/reviews",
    response_model=ReviewList,
    responses={500: _ERROR_RESPONSES[500]},
    summary="List a movie's reviews",
)
async def get_reviews(
    movie_id: str = Path(..., description="Movie slug or UUID"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    """All reviews of a movie, oldest first, authors populated.

    With a caller, each entry says whether the caller wrote it
    (`isUserLoggedIn`) and whether the caller liked it (`isLiked`).
    An unknown movie yields an empty list.
    """
    mid = sanitize_movie_id(movie_id)
    try:
        records = await repo.list_movie_reviews(mid)
        liked = set()
        if user is not None and records:
            liked = await repo.liked_review_ids([r["id"] for r in records], user.id)
        data = [
            AnnotatedReview.from_record(
                rec,
                is_author=user is not None and rec["user_id"] == user.id,
                is_liked=rec["id"] in liked,
            )
            for rec in records
        ]
    except Exception as e:
        logger.exception("Failed to list reviews", extra={"movie_id": mid})
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return json_no_store(ReviewList(data=data).model_dump(by_alias=True, mode="json"))


# ╭───────────────────────────────────────────────────────────────────────────╮
# │ Single review                                                              │
# ╰───────────────────────────────────────────────────────────────────────────╯

@router.get(
    "/reviews/{review_id}",
    response_model=ReviewData,
    responses=_ERROR_RESPONSES,
    summary="Get one review",
)
async def get_review(
    review_id: str = Path(...),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    try:
        record = await repo.get_review(review_id, populate=True)
    except Exception as e:
        logger.exception("Failed to fetch review", extra={"review_id": review_id})
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if record is None:
        return _error(NOT_FOUND, status.HTTP_404_NOT_FOUND)
    return json_no_store(ReviewData(data=Review.from_record(record)).model_dump(by_alias=True, mode="json"))


@router.put(
    "/reviews/{review_id}",
    status_code=status.HTTP_201_CREATED,
    response_model=ReviewMessage,
    responses={**_ERROR_RESPONSES, 409: {"model": ErrorBody, "description": "Concurrent update"}},
    summary="Update a review",
)
async def update_review(
    body: ReviewInput,
    request: Request,
    review_id: str = Path(...),
    user: CurrentUser = Depends(get_current_user),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    """Overwrite rating and body, stamping `updatedAt`. Likes, author and movie are untouched."""
    try:
        record = await repo.update_review(review_id, rating=body.rating, review=body.review)
    except ConcurrentUpdateError:
        logger.warning("Concurrent update rejected", extra={"review_id": review_id, "user_id": user.id})
        return _error("Review was modified concurrently", status.HTTP_409_CONFLICT)
    except Exception as e:
        logger.exception("Failed to update review", extra={"review_id": review_id})
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if record is None:
        return _error(NOT_FOUND, status.HTTP_404_NOT_FOUND)
    _log_review_action(request, user.id, "REVIEW_UPDATE", review_id=review_id)
    return _message("Review updated successfully", record, status.HTTP_201_CREATED)


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_ERROR_RESPONSES,
    summary="Delete a review",
)
async def delete_review(
    request: Request,
    review_id: str = Path(...),
    user: CurrentUser = Depends(get_current_user),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    try:
        deleted = await repo.delete_review(review_id)
    except Exception as e:
        logger.exception("Failed to delete review", extra={"review_id": review_id})
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if not deleted:
        return _error(NOT_FOUND, status.HTTP_404_NOT_FOUND)
    _log_review_action(request, user.id, "REVIEW_DELETE", review_id=review_id)
    resp = Response(status_code=status.HTTP_204_NO_CONTENT)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ╭───────────────────────────────────────────────────────────────────────────╮
# │ Likes                                                                      │
# ╰───────────────────────────────────────────────────────────────────────────╯

@router.post(
    "/reviews/{review_id}/like",
    response_model=ReviewMessage,
    responses=_ERROR_RESPONSES,
    summary="Like a review",
)
async def like_review(
    request: Request,
    review_id: str = Path(...),
    user: CurrentUser = Depends(get_current_user),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    """Add the caller to the review's likes; liking twice is a no-op."""
    try:
        record, changed = await repo.add_like(review_id, user.id)
    except Exception as e:
        logger.exception("Failed to like review", extra={"review_id": review_id})
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if record is None:
        return _error(NOT_FOUND, status.HTTP_404_NOT_FOUND)
    if not changed:
        return _message("You have already liked this review", record)
    _log_review_action(request, user.id, "REVIEW_LIKE", review_id=review_id)
    return _message("Review liked successfully", record)


@router.post(
    "/reviews/{review_id}/unlike",
    response_model=ReviewMessage,
    responses=_ERROR_RESPONSES,
    summary="Unlike a review",
)
async def unlike_review(
    request: Request,
    review_id: str = Path(...),
    user: CurrentUser = Depends(get_current_user),
    repo: ReviewRepositoryProtocol = Depends(get_review_repository),
):
    """Remove the caller from the review's likes; a caller who never liked it gets a no-op."""
    try:
        record, changed = await repo.remove_like(review_id, user.id)
    except Exception as e:
        logger.exception("Failed to unlike review", extra={"review_id": review_id})
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if record is None:
        return _error(NOT_FOUND, status.HTTP_404_NOT_FOUND)
    if not changed:
        return _message("You have not liked this review", record)
    _log_review_action(request, user.id, "REVIEW_UNLIKE", review_id=review_id)
    return _message("Review unliked successfully", record)
