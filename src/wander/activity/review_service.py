"""Review create / update / soft-delete flows.

Each flow is one unit of work. Whenever the set of active ratings for a
place changes, the place aggregates are recomputed before commit.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Review, User
from wander.db.unit_of_work import atomic
from wander.eligibility.guard import ActionKind, already_acted_error, check_and_reserve
from wander.errors import Forbidden, ReviewNotFound, ValidationError
from wander.ledger.causes import Cause, CauseKind
from wander.ledger.service import add_coins, add_exp
from wander.places.stats_service import recompute_place_rating
from wander.users.service import adjust_counter, require_user

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
MAX_CONTENT_LENGTH = 5000


def validate_rating(rating: Any) -> int:
    """Ratings are whole numbers from 1 to 5."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def _validate_content(content: str | None) -> None:
    if content is not None and len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"Content must be at most {MAX_CONTENT_LENGTH} characters")


async def create_review(
    db: AsyncSession,
    user_id: int,
    place_id: int,
    rating: int,
    content: str | None = None,
    image_urls: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
    as_of: datetime | None = None,
) -> Review:
    """Create a review and pay the place's review rewards.

    1. Eligibility (place active, no review this calendar month)
    2. Insert the review
    3. Recompute the place rating (sets places.total_review)
    4. Bump users.total_review
    5. Credit the place's coin_reward and exp_reward, caused by the review
    """
    validate_rating(rating)
    _validate_content(content)

    async with atomic(db):
        await require_user(db, user_id, for_update=True)
        eligibility = await check_and_reserve(db, user_id, place_id, ActionKind.REVIEW, as_of)
        place = eligibility.place

        review = Review(
            user_id=user_id,
            place_id=place_id,
            rating=rating,
            content=content,
            image_urls=image_urls,
            additional_info=metadata or {},
            period_key=eligibility.period_key,
            status=True,
            created_at=eligibility.as_of,
            updated_at=eligibility.as_of,
        )
        db.add(review)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise already_acted_error(ActionKind.REVIEW) from exc

        await recompute_place_rating(db, place_id)
        await adjust_counter(db, User, user_id, "total_review")

        cause = Cause(CauseKind.REVIEW, review.id)
        if place.coin_reward > 0:
            await add_coins(db, user_id, place.coin_reward, cause)
        if place.exp_reward > 0:
            await add_exp(db, user_id, place.exp_reward, cause)

    logger.info("User %s reviewed place %s (review=%s, rating=%s)", user_id, place_id, review.id, rating)
    return review


async def _load_owned_review(db: AsyncSession, review_id: int, user_id: int) -> Review:
    result = await db.execute(select(Review).where(Review.id == review_id).with_for_update())
    review = result.scalar_one_or_none()
    if review is None or not review.status:
        raise ReviewNotFound()
    if review.user_id != user_id:
        raise Forbidden("Unauthorized to modify this review")
    return review


async def update_review(
    db: AsyncSession,
    review_id: int,
    user_id: int,
    rating: int | None = None,
    content: str | None = None,
    image_urls: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
) -> Review:
    """Edit an active review. The place rating is recomputed when the rating changes."""
    if rating is not None:
        validate_rating(rating)
    _validate_content(content)

    async with atomic(db):
        review = await _load_owned_review(db, review_id, user_id)
        rating_changed = rating is not None and rating != review.rating

        if rating is not None:
            review.rating = rating
        if content is not None:
            review.content = content
        if image_urls is not None:
            review.image_urls = image_urls
        if metadata is not None:
            review.additional_info = metadata
        await db.flush()

        if rating_changed:
            await recompute_place_rating(db, review.place_id)

    return review


async def delete_review(db: AsyncSession, review_id: int, user_id: int) -> Review:
    """Soft-delete a review. Rewards already paid stay in the ledger."""
    async with atomic(db):
        review = await _load_owned_review(db, review_id, user_id)
        review.status = False
        await db.flush()

        await recompute_place_rating(db, review.place_id)
        await adjust_counter(db, User, user_id, "total_review", by=-1)

    logger.info("User %s deleted review %s", user_id, review_id)
    return review
