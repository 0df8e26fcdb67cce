"""Follow graph with denormalized follower/following counters.

Rules:
- A user cannot follow themselves
- One edge per (follower, following) pair, backed by a unique constraint
- Edge insert/delete and both counter updates commit together
- Counter decrements never go below zero
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import User, UserFollow
from wander.db.unit_of_work import atomic
from wander.errors import AlreadyFollowing, NotFollowing, ValidationError
from wander.users.service import adjust_counter, require_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowCounts:
    follower_id: int
    following_count: int
    target_id: int
    follower_count: int


async def _get_edge(db: AsyncSession, follower_id: int, target_id: int) -> UserFollow | None:
    result = await db.execute(
        select(UserFollow).where(
            UserFollow.follower_id == follower_id,
            UserFollow.following_id == target_id,
        )
    )
    return result.scalar_one_or_none()


async def is_following(db: AsyncSession, follower_id: int, target_id: int) -> bool:
    """Check whether ``follower_id`` follows ``target_id``."""
    return await _get_edge(db, follower_id, target_id) is not None


async def follow_user(db: AsyncSession, follower_id: int, target_id: int) -> FollowCounts:
    """Follow a user and bump both counters."""
    if follower_id == target_id:
        raise ValidationError("You cannot follow yourself")

    async with atomic(db):
        await require_user(db, follower_id, for_update=True)
        await require_user(db, target_id, for_update=True)

        if await _get_edge(db, follower_id, target_id) is not None:
            raise AlreadyFollowing()

        db.add(UserFollow(
            follower_id=follower_id,
            following_id=target_id,
            created_at=datetime.now(timezone.utc),
        ))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise AlreadyFollowing() from exc

        following_count = await adjust_counter(db, User, follower_id, "total_following")
        follower_count = await adjust_counter(db, User, target_id, "total_follower")

    logger.info("User %s followed user %s", follower_id, target_id)
    return FollowCounts(
        follower_id=follower_id,
        following_count=following_count,
        target_id=target_id,
        follower_count=follower_count,
    )


async def unfollow_user(db: AsyncSession, follower_id: int, target_id: int) -> FollowCounts:
    """Remove a follow edge and decrement both counters."""
    if follower_id == target_id:
        raise ValidationError("You cannot unfollow yourself")

    async with atomic(db):
        await require_user(db, follower_id, for_update=True)
        await require_user(db, target_id, for_update=True)

        edge = await _get_edge(db, follower_id, target_id)
        if edge is None:
            raise NotFollowing()

        await db.delete(edge)
        await db.flush()

        following_count = await adjust_counter(db, User, follower_id, "total_following", by=-1)
        follower_count = await adjust_counter(db, User, target_id, "total_follower", by=-1)

    logger.info("User %s unfollowed user %s", follower_id, target_id)
    return FollowCounts(
        follower_id=follower_id,
        following_count=following_count,
        target_id=target_id,
        follower_count=follower_count,
    )
