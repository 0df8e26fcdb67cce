"""Check-in, review and review-like endpoints: 6 routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wander.activity.checkin_service import create_checkin
from wander.activity.like_service import LikeState, like_review, unlike_review
from wander.activity.review_service import create_review, delete_review, update_review
from wander.activity.schemas import (
    CheckinRequest,
    CheckinResponse,
    CreateReviewRequest,
    LikeResponse,
    ReviewResponse,
    UpdateReviewRequest,
)
from wander.database import get_session
from wander.db.models import Review
from wander.places.service import get_place

router = APIRouter(prefix="/api/v1", tags=["Activity"])


async def _review_response(db: AsyncSession, review: Review) -> ReviewResponse:
    place = await get_place(db, review.place_id)
    return ReviewResponse(
        id=review.id,
        user_id=review.user_id,
        place_id=review.place_id,
        rating=review.rating,
        content=review.content,
        image_urls=review.image_urls or [],
        metadata=review.additional_info or {},
        total_like=review.total_like,
        period_key=review.period_key,
        status=review.status,
        created_at=review.created_at,
        updated_at=review.updated_at,
        place_avg_rating=float(place.avg_rating) if place else 0.0,
        place_total_review=place.total_review if place else 0,
    )


@router.post("/users/{user_id}/checkins", response_model=CheckinResponse, status_code=201)
async def create_checkin_endpoint(
    user_id: int,
    body: CheckinRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Check in at a place (once per place per calendar month)."""
    result = await create_checkin(
        db,
        user_id,
        body.place_id,
        latitude=body.latitude,
        longitude=body.longitude,
        proof_image_url=body.proof_image_url,
        metadata=body.metadata,
    )
    checkin = result.checkin
    return CheckinResponse(
        id=checkin.id,
        user_id=checkin.user_id,
        place_id=checkin.place_id,
        period_key=checkin.period_key,
        created_at=checkin.created_at,
        coins_earned=result.coins_earned,
        exp_earned=result.exp_earned,
        new_level=result.new_level,
    )


@router.post("/users/{user_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_review_endpoint(
    user_id: int,
    body: CreateReviewRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Review a place (once per place per calendar month)."""
    review = await create_review(
        db,
        user_id,
        body.place_id,
        body.rating,
        content=body.content,
        image_urls=body.image_urls,
        metadata=body.metadata,
    )
    return await _review_response(db, review)


@router.patch("/users/{user_id}/reviews/{review_id}", response_model=ReviewResponse)
async def update_review_endpoint(
    user_id: int,
    review_id: int,
    body: UpdateReviewRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Edit one of the user's active reviews."""
    review = await update_review(
        db,
        review_id,
        user_id,
        rating=body.rating,
        content=body.content,
        image_urls=body.image_urls,
        metadata=body.metadata,
    )
    return await _review_response(db, review)


@router.delete("/users/{user_id}/reviews/{review_id}", status_code=204)
async def delete_review_endpoint(
    user_id: int,
    review_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Soft-delete one of the user's reviews."""
    await delete_review(db, review_id, user_id)


# ── Likes ──


def _like_response(state: LikeState) -> LikeResponse:
    return LikeResponse(review_id=state.review_id, total_like=state.total_like, liked=state.liked)


@router.post("/users/{user_id}/review-likes/{review_id}", response_model=LikeResponse, status_code=201)
async def like_review_endpoint(
    user_id: int,
    review_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Like a review."""
    return _like_response(await like_review(db, user_id, review_id))


@router.delete("/users/{user_id}/review-likes/{review_id}", response_model=LikeResponse)
async def unlike_review_endpoint(
    user_id: int,
    review_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Remove a like from a review."""
    return _like_response(await unlike_review(db, user_id, review_id))
