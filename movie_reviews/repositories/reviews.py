from __future__ import annotations

"""
Review storage adapters.

Two implementations share one async contract:

- `SqlReviewRepository`: SQLAlchemy (asyncpg in production). Like/unlike are
  single atomic statements; updates are guarded by the `version` column.
- `MemoryReviewRepository`: process-local dicts behind an `asyncio.Lock`
  (dev, demos, router tests).

Records are plain dicts:

    {
        "id": str, "movie_id": str, "user_id": str,
        "user": {"id", "username", "full_name"},   # only when populated
        "rating": float, "review": str, "likes": [str, ...],
        "created_at": datetime, "updated_at": datetime | None,
    }

`REVIEWS_BACKEND` (`sql` | `memory`) selects the adapter served by
`get_review_repository`.
"""

import asyncio
import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from movie_reviews.core.config import settings
from movie_reviews.core.exceptions import ConcurrentUpdateError, ReviewStoreError
from movie_reviews.db.models.review import Review, ReviewLike
from movie_reviews.db.models.user import User
from movie_reviews.db.session import get_async_db

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ReviewRepositoryProtocol:
    async def create_review(self, *, movie_id: str, user_id: str, rating: float, review: str) -> Record:
        raise NotImplementedError

    async def get_review(self, review_id: str, *, populate: bool = False) -> Optional[Record]:
        raise NotImplementedError

    async def update_review(self, review_id: str, *, rating: float, review: str) -> Optional[Record]:
        raise NotImplementedError

    async def delete_review(self, review_id: str) -> bool:
        raise NotImplementedError

    async def list_movie_reviews(self, movie_id: str) -> List[Record]:
        raise NotImplementedError

    async def liked_review_ids(self, review_ids: Iterable[str], user_id: str) -> Set[str]:
        raise NotImplementedError

    async def add_like(self, review_id: str, user_id: str) -> Tuple[Optional[Record], bool]:
        raise NotImplementedError

    async def remove_like(self, review_id: str, user_id: str) -> Tuple[Optional[Record], bool]:
        raise NotImplementedError


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _author(user_id: str, username: Optional[str] = None, full_name: Optional[str] = None) -> Dict[str, Any]:
    return {"id": user_id, "username": username, "full_name": full_name}


# ──────────────────────────────────────────────────────────────
# 🧠 In-memory
# ──────────────────────────────────────────────────────────────
class MemoryReviewRepository(ReviewRepositoryProtocol):
    def __init__(self) -> None:
        self._reviews: Dict[str, Record] = {}
        self._users: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    def register_user(self, user_id: str, *, username: Optional[str] = None, full_name: Optional[str] = None) -> None:
        """Make an author known so populated reads can render username/full name."""
        self._users[user_id] = _author(user_id, username, full_name)

    def _render(self, stored: Record, populate: bool) -> Record:
        out = copy.deepcopy(stored)
        if populate:
            out["user"] = copy.deepcopy(self._users.get(stored["user_id"]) or _author(stored["user_id"]))
        return out

    async def create_review(self, *, movie_id: str, user_id: str, rating: float, review: str) -> Record:
        rec: Record = {
            "id": str(uuid.uuid4()),
            "movie_id": movie_id,
            "user_id": user_id,
            "rating": rating,
            "review": review,
            "likes": [],
            "created_at": _now(),
            "updated_at": None,
        }
        async with self._lock:
            self._reviews[rec["id"]] = rec
            return self._render(rec, populate=False)

    async def get_review(self, review_id: str, *, populate: bool = False) -> Optional[Record]:
        async with self._lock:
            rec = self._reviews.get(review_id)
            return self._render(rec, populate) if rec else None

    async def update_review(self, review_id: str, *, rating: float, review: str) -> Optional[Record]:
        async with self._lock:
            rec = self._reviews.get(review_id)
            if rec is None:
                return None
            rec["rating"] = rating
            rec["review"] = review
            rec["updated_at"] = _now()
            return self._render(rec, populate=False)

    async def delete_review(self, review_id: str) -> bool:
        async with self._lock:
            return self._reviews.pop(review_id, None) is not None

    async def list_movie_reviews(self, movie_id: str) -> List[Record]:
        async with self._lock:
            found = [r for r in self._reviews.values() if r["movie_id"] == movie_id]
            found.sort(key=lambda r: r["created_at"])
            return [self._render(r, populate=True) for r in found]

    async def liked_review_ids(self, review_ids: Iterable[str], user_id: str) -> Set[str]:
        async with self._lock:
            return {
                rid for rid in review_ids
                if rid in self._reviews and user_id in self._reviews[rid]["likes"]
            }

    async def add_like(self, review_id: str, user_id: str) -> Tuple[Optional[Record], bool]:
        async with self._lock:
            rec = self._reviews.get(review_id)
            if rec is None:
                return None, False
            if user_id in rec["likes"]:
                return self._render(rec, populate=False), False
            rec["likes"].append(user_id)
            return self._render(rec, populate=False), True

    async def remove_like(self, review_id: str, user_id: str) -> Tuple[Optional[Record], bool]:
        async with self._lock:
            rec = self._reviews.get(review_id)
            if rec is None:
                return None, False
            if user_id not in rec["likes"]:
                return self._render(rec, populate=False), False
            rec["likes"].remove(user_id)
            return self._render(rec, populate=False), True


# ──────────────────────────────────────────────────────────────
# 🗄️ SQLAlchemy
# ──────────────────────────────────────────────────────────────
def _parse_uuid(raw: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None


def _require_user_uuid(user_id: str) -> uuid.UUID:
    """Writes keyed by the caller need a UUID subject on this backend."""
    uid = _parse_uuid(user_id)
    if uid is None:
        raise ReviewStoreError(f"Invalid user id: {user_id}")
    return uid


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlReviewRepository(ReviewRepositoryProtocol):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── helpers ──────────────────────────────────────────────
    @staticmethod
    def _to_record(row: Review, likes: List[str], author: Optional[User] = None, populate: bool = False) -> Record:
        rec: Record = {
            "id": str(row.id),
            "movie_id": row.movie_id,
            "user_id": str(row.user_id),
            "rating": row.rating,
            "review": row.review,
            "likes": likes,
            "created_at": _aware(row.created_at),
            "updated_at": _aware(row.updated_at),
        }
        if populate:
            rec["user"] = (
                _author(str(author.id), author.username, author.full_name)
                if author is not None
                else _author(str(row.user_id))
            )
        return rec

    async def _likes_for(self, review_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[str]]:
        likes: Dict[uuid.UUID, List[str]] = {rid: [] for rid in review_ids}
        if not review_ids:
            return likes
        result = await self.session.execute(
            select(ReviewLike.review_id, ReviewLike.user_id)
            .where(ReviewLike.review_id.in_(review_ids))
            .order_by(ReviewLike.created_at, ReviewLike.user_id)
        )
        for review_id, user_id in result.all():
            likes[review_id].append(str(user_id))
        return likes

    async def _exists(self, rid: uuid.UUID) -> bool:
        result = await self.session.execute(select(Review.id).where(Review.id == rid))
        return result.scalar_one_or_none() is not None

    # ── contract ─────────────────────────────────────────────
    async def create_review(self, *, movie_id: str, user_id: str, rating: float, review: str) -> Record:
        row = Review(
            id=uuid.uuid4(),
            movie_id=movie_id,
            user_id=_require_user_uuid(user_id),
            rating=rating,
            review=review,
            created_at=_now(),
            updated_at=None,
        )
        self.session.add(row)
        await self.session.commit()
        return self._to_record(row, likes=[])

    async def get_review(self, review_id: str, *, populate: bool = False) -> Optional[Record]:
        rid = _parse_uuid(review_id)
        if rid is None:
            return None
        result = await self.session.execute(
            select(Review, User).outerjoin(User, User.id == Review.user_id).where(Review.id == rid)
        )
        found = result.first()
        if found is None:
            return None
        row, author = found
        likes = await self._likes_for([rid])
        return self._to_record(row, likes[rid], author, populate)

    async def update_review(self, review_id: str, *, rating: float, review: str) -> Optional[Record]:
        rid = _parse_uuid(review_id)
        if rid is None:
            return None
        row = await self.session.get(Review, rid)
        if row is None:
            return None
        row.rating = rating
        row.review = review
        row.updated_at = _now()
        try:
            await self.session.commit()
        except StaleDataError as e:
            await self.session.rollback()
            logger.warning("Stale update on review %s (version moved)", review_id)
            raise ConcurrentUpdateError(review_id) from e
        likes = await self._likes_for([rid])
        return self._to_record(row, likes[rid])

    async def delete_review(self, review_id: str) -> bool:
        rid = _parse_uuid(review_id)
        if rid is None:
            return False
        # Likes first; SQLite only cascades with `PRAGMA foreign_keys=ON`.
        await self.session.execute(delete(ReviewLike).where(ReviewLike.review_id == rid))
        result = await self.session.execute(delete(Review).where(Review.id == rid))
        await self.session.commit()
        return result.rowcount > 0

    async def list_movie_reviews(self, movie_id: str) -> List[Record]:
        result = await self.session.execute(
            select(Review, User)
            .outerjoin(User, User.id == Review.user_id)
            .where(Review.movie_id == movie_id)
            .order_by(Review.created_at.asc(), Review.id.asc())
        )
        rows = result.all()
        likes = await self._likes_for([row.id for row, _ in rows])
        return [self._to_record(row, likes[row.id], author, populate=True) for row, author in rows]

    async def liked_review_ids(self, review_ids: Iterable[str], user_id: str) -> Set[str]:
        uid = _parse_uuid(user_id)
        rids = [rid for rid in (_parse_uuid(r) for r in review_ids) if rid is not None]
        if uid is None or not rids:
            return set()
        result = await self.session.execute(
            select(ReviewLike.review_id).where(ReviewLike.user_id == uid, ReviewLike.review_id.in_(rids))
        )
        return {str(rid) for rid in result.scalars().all()}

    async def _insert_like(self, rid: uuid.UUID, uid: uuid.UUID) -> bool:
        values = {"review_id": rid, "user_id": uid, "created_at": _now()}
        dialect = self.session.get_bind().dialect.name
        if dialect in ("postgresql", "sqlite"):
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = (
                insert(ReviewLike)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["review_id", "user_id"])
                .returning(ReviewLike.review_id)
            )
            result = await self.session.execute(stmt)
            return result.first() is not None
        try:
            async with self.session.begin_nested():
                self.session.add(ReviewLike(**values))
            return True
        except IntegrityError:
            return False

    async def add_like(self, review_id: str, user_id: str) -> Tuple[Optional[Record], bool]:
        rid = _parse_uuid(review_id)
        if rid is None or not await self._exists(rid):
            return None, False
        changed = await self._insert_like(rid, _require_user_uuid(user_id))
        await self.session.commit()
        return await self.get_review(review_id), changed

    async def remove_like(self, review_id: str, user_id: str) -> Tuple[Optional[Record], bool]:
        rid = _parse_uuid(review_id)
        if rid is None or not await self._exists(rid):
            return None, False
        uid = _parse_uuid(user_id)
        changed = False
        if uid is not None:
            result = await self.session.execute(
                delete(ReviewLike).where(ReviewLike.review_id == rid, ReviewLike.user_id == uid)
            )
            changed = result.rowcount > 0
        await self.session.commit()
        return await self.get_review(review_id), changed


# ──────────────────────────────────────────────────────────────
# 🔌 Provider
# ──────────────────────────────────────────────────────────────
_memory_repo: Optional[MemoryReviewRepository] = None


def get_memory_repository() -> MemoryReviewRepository:
    """Process-wide in-memory store (created on first use)."""
    global _memory_repo
    if _memory_repo is None:
        _memory_repo = MemoryReviewRepository()
    return _memory_repo


async def get_review_repository(db: AsyncSession = Depends(get_async_db)) -> ReviewRepositoryProtocol:
    """FastAPI dependency selecting the adapter from `REVIEWS_BACKEND`."""
    if settings.REVIEWS_BACKEND == "memory":
        return get_memory_repository()
    return SqlReviewRepository(db)


__all__ = [
    "ReviewRepositoryProtocol",
    "MemoryReviewRepository",
    "SqlReviewRepository",
    "get_memory_repository",
    "get_review_repository",
]
