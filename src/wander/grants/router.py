"""Achievement, challenge and reward endpoints: 6 routes.

Events are published on Redis only after the grant has committed.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wander.database import get_session
from wander.db.models import Achievement, Challenge, Reward, User
from wander.dependencies import get_redis_dep
from wander.events import ACHIEVEMENT_GRANTED, CHALLENGE_COMPLETED, REWARD_REDEEMED, publish_event
from wander.grants.catalog import list_achievements, list_challenges, list_rewards
from wander.grants.registry import complete_challenge, grant_achievement, redeem_reward
from wander.grants.schemas import (
    AchievementResponse,
    ChallengeResponse,
    GrantResponse,
    RedemptionResponse,
    RewardListResponse,
    RewardResponse,
    UserAchievementsResponse,
    UserChallengesResponse,
)
from wander.users.service import require_user

router = APIRouter(prefix="/api/v1", tags=["Grants"])


async def _grant_response(
    db: AsyncSession,
    user_id: int,
    entity_id: int,
    completed_at: datetime | None,
    counter: str,
) -> GrantResponse:
    user: User = await require_user(db, user_id)
    await db.refresh(user, attribute_names=["total_coin", "total_exp", counter])
    return GrantResponse(
        user_id=user_id,
        entity_id=entity_id,
        completed_at=completed_at,
        total_coin=user.total_coin,
        total_exp=user.total_exp,
        counter=getattr(user, counter),
    )


def _reward_response(reward: Reward) -> RewardResponse:
    return RewardResponse(
        id=reward.id,
        name=reward.name,
        description=reward.description,
        image_url=reward.image_url,
        coin_requirement=reward.coin_requirement,
        stock=reward.stock,
        started_at=reward.started_at,
        ended_at=reward.ended_at,
    )


# ── Achievements ──


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def list_user_achievements(
    user_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """All active achievements with the user's completion state."""
    await require_user(db, user_id)
    rows = await list_achievements(db, user_id)
    items = [
        AchievementResponse(
            id=a.id,
            name=a.name,
            description=a.description,
            image_url=a.image_url,
            coin_reward=a.coin_reward,
            exp_reward=a.exp_reward,
            completed=bool(ua is not None and ua.status),
            completed_at=ua.completed_at if ua is not None else None,
        )
        for a, ua in rows
    ]
    return UserAchievementsResponse(
        achievements=items,
        total_available=len(items),
        total_completed=sum(1 for i in items if i.completed),
    )


@router.post("/users/{user_id}/achievements/{achievement_id}", response_model=GrantResponse, status_code=201)
async def grant_achievement_endpoint(
    user_id: int,
    achievement_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: object | None = Depends(get_redis_dep),  # noqa: B008
):
    """Grant an achievement once and pay its rewards."""
    row = await grant_achievement(db, user_id, achievement_id)
    achievement = await db.get(Achievement, achievement_id)
    await publish_event(redis, ACHIEVEMENT_GRANTED, {
        "user_id": user_id,
        "achievement_id": achievement_id,
        "name": achievement.name if achievement else None,
        "coin_reward": achievement.coin_reward if achievement else 0,
        "exp_reward": achievement.exp_reward if achievement else 0,
    })
    return await _grant_response(db, user_id, achievement_id, row.completed_at, "total_achievement")


# ── Challenges ──


@router.get("/users/{user_id}/challenges", response_model=UserChallengesResponse)
async def list_user_challenges(
    user_id: int,
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Challenges (currently running by default) with the user's completion state."""
    await require_user(db, user_id)
    rows = await list_challenges(db, user_id, active_only=active_only)
    items = [
        ChallengeResponse(
            id=c.id,
            name=c.name,
            description=c.description,
            image_url=c.image_url,
            challenge_type=c.challenge_type,
            coin_reward=c.coin_reward,
            exp_reward=c.exp_reward,
            started_at=c.started_at,
            ended_at=c.ended_at,
            completed=bool(uc is not None and uc.status),
            completed_at=uc.completed_at if uc is not None else None,
        )
        for c, uc in rows
    ]
    return UserChallengesResponse(
        challenges=items,
        total_available=len(items),
        total_completed=sum(1 for i in items if i.completed),
    )


@router.post("/users/{user_id}/challenges/{challenge_id}", response_model=GrantResponse, status_code=201)
async def complete_challenge_endpoint(
    user_id: int,
    challenge_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: object | None = Depends(get_redis_dep),  # noqa: B008
):
    """Complete a challenge once and pay its rewards."""
    row = await complete_challenge(db, user_id, challenge_id)
    challenge = await db.get(Challenge, challenge_id)
    await publish_event(redis, CHALLENGE_COMPLETED, {
        "user_id": user_id,
        "challenge_id": challenge_id,
        "name": challenge.name if challenge else None,
        "coin_reward": challenge.coin_reward if challenge else 0,
        "exp_reward": challenge.exp_reward if challenge else 0,
    })
    return await _grant_response(db, user_id, challenge_id, row.completed_at, "total_challenge")


# ── Rewards ──


@router.get("/rewards", response_model=RewardListResponse)
async def list_rewards_endpoint(db: AsyncSession = Depends(get_session)):  # noqa: B008
    """Rewards that can be redeemed right now, cheapest first."""
    rewards = await list_rewards(db)
    return RewardListResponse(rewards=[_reward_response(r) for r in rewards])


@router.post("/users/{user_id}/rewards/{reward_id}/redeem", response_model=RedemptionResponse, status_code=201)
async def redeem_reward_endpoint(
    user_id: int,
    reward_id: int,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: object | None = Depends(get_redis_dep),  # noqa: B008
):
    """Spend coins on a reward and receive a redemption code."""
    user_reward = await redeem_reward(db, user_id, reward_id)
    reward = await db.get(Reward, reward_id)
    user = await require_user(db, user_id)
    await db.refresh(user, attribute_names=["total_coin"])

    await publish_event(redis, REWARD_REDEEMED, {
        "user_id": user_id,
        "reward_id": reward_id,
        "redemption_code": user_reward.redemption_code,
    })
    return RedemptionResponse(
        id=user_reward.id,
        user_id=user_id,
        reward_id=reward_id,
        redemption_code=user_reward.redemption_code,
        coins_spent=reward.coin_requirement if reward else 0,
        total_coin=user.total_coin,
        remaining_stock=reward.stock if reward else None,
        metadata=user_reward.additional_info or {},
        created_at=user_reward.created_at,
    )
