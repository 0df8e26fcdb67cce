"""Follow endpoints: 2 routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wander.database import get_session
from wander.social.follow_service import FollowCounts, follow_user, unfollow_user
from wander.social.schemas import FollowResponse

router = APIRouter(prefix="/api/v1", tags=["Social"])


def _follow_response(counts: FollowCounts, following: bool) -> FollowResponse:
    return FollowResponse(
        follower_id=counts.follower_id,
        following_count=counts.following_count,
        target_id=counts.target_id,
        follower_count=counts.follower_count,
        following=following,
    )


@router.post("/users/{follower_id}/following/{target_id}", response_model=FollowResponse, status_code=201)
async def follow(
    follower_id: int,
    target_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Follow another user."""
    counts = await follow_user(db, follower_id, target_id)
    return _follow_response(counts, following=True)


@router.delete("/users/{follower_id}/following/{target_id}", response_model=FollowResponse)
async def unfollow(
    follower_id: int,
    target_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Stop following a user."""
    counts = await unfollow_user(db, follower_id, target_id)
    return _follow_response(counts, following=False)
