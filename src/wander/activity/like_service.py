"""Review likes with a denormalized ``total_like`` counter.

Like rows are keyed by ``(user_id, related_to_type, related_to_id)`` so the
same table can hold likes on other content; the unique constraint backs the
in-transaction existence check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Review, UserLike
from wander.db.unit_of_work import atomic
from wander.errors import AlreadyLiked, NotLiked, ReviewNotFound
from wander.users.service import adjust_counter, require_user

logger = logging.getLogger(__name__)

REVIEW_LIKE_TYPE = "review"


@dataclass(frozen=True)
class LikeState:
    review_id: int
    total_like: int
    liked: bool


async def _require_active_review(db: AsyncSession, review_id: int) -> Review:
    result = await db.execute(select(Review).where(Review.id == review_id).with_for_update())
    review = result.scalar_one_or_none()
    if review is None or not review.status:
        raise ReviewNotFound()
    return review


async def _get_like(db: AsyncSession, user_id: int, review_id: int) -> UserLike | None:
    result = await db.execute(
        select(UserLike).where(
            UserLike.user_id == user_id,
            UserLike.related_to_type == REVIEW_LIKE_TYPE,
            UserLike.related_to_id == review_id,
        )
    )
    return result.scalar_one_or_none()


async def has_liked_review(db: AsyncSession, user_id: int, review_id: int) -> bool:
    return await _get_like(db, user_id, review_id) is not None


async def like_review(db: AsyncSession, user_id: int, review_id: int) -> LikeState:
    """Like an active review and bump its ``total_like``."""
    async with atomic(db):
        await require_user(db, user_id)
        await _require_active_review(db, review_id)

        if await _get_like(db, user_id, review_id) is not None:
            raise AlreadyLiked()

        db.add(UserLike(
            user_id=user_id,
            related_to_type=REVIEW_LIKE_TYPE,
            related_to_id=review_id,
            created_at=datetime.now(timezone.utc),
        ))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise AlreadyLiked() from exc

        total_like = await adjust_counter(db, Review, review_id, "total_like")

    logger.info("User %s liked review %s", user_id, review_id)
    return LikeState(review_id=review_id, total_like=total_like, liked=True)


async def unlike_review(db: AsyncSession, user_id: int, review_id: int) -> LikeState:
    """Remove a like and decrement ``total_like`` (floored at zero)."""
    async with atomic(db):
        await require_user(db, user_id)
        await _require_active_review(db, review_id)

        like = await _get_like(db, user_id, review_id)
        if like is None:
            raise NotLiked()

        await db.delete(like)
        await db.flush()

        total_like = await adjust_counter(db, Review, review_id, "total_like", by=-1)

    logger.info("User %s unliked review %s", user_id, review_id)
    return LikeState(review_id=review_id, total_like=total_like, liked=False)


async def toggle_review_like(db: AsyncSession, user_id: int, review_id: int) -> LikeState:
    """Like the review if the user hasn't yet, otherwise remove the like."""
    if await has_liked_review(db, user_id, review_id):
        return await unlike_review(db, user_id, review_id)
    return await like_review(db, user_id, review_id)
