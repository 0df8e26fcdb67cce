"""Read-only catalog queries with per-user grant state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Achievement, Challenge, Reward, UserAchievement, UserChallenge
from wander.eligibility.periods import as_utc


async def list_achievements(
    db: AsyncSession,
    user_id: int,
) -> list[tuple[Achievement, UserAchievement | None]]:
    """Active achievements by name, each with the user's grant row (if any)."""
    result = await db.execute(
        select(Achievement, UserAchievement)
        .outerjoin(
            UserAchievement,
            and_(
                UserAchievement.achievement_id == Achievement.id,
                UserAchievement.user_id == user_id,
            ),
        )
        .where(Achievement.status.is_(True))
        .order_by(Achievement.name.asc())
    )
    return [(row.Achievement, row.UserAchievement) for row in result]


async def list_challenges(
    db: AsyncSession,
    user_id: int,
    active_only: bool = True,
    now: datetime | None = None,
) -> list[tuple[Challenge, UserChallenge | None]]:
    """Challenges with the user's completion row.

    ``active_only`` keeps challenges whose [started_at, ended_at] range
    contains ``now``; open-ended bounds always match.
    """
    stmt = (
        select(Challenge, UserChallenge)
        .outerjoin(
            UserChallenge,
            and_(
                UserChallenge.challenge_id == Challenge.id,
                UserChallenge.user_id == user_id,
            ),
        )
        .where(Challenge.status.is_(True))
    )
    if active_only:
        moment = as_utc(now)
        stmt = stmt.where(
            or_(Challenge.started_at.is_(None), Challenge.started_at <= moment),
            or_(Challenge.ended_at.is_(None), Challenge.ended_at >= moment),
        )
    result = await db.execute(stmt.order_by(Challenge.started_at.desc(), Challenge.id.desc()))
    return [(row.Challenge, row.UserChallenge) for row in result]


async def list_rewards(db: AsyncSession, now: datetime | None = None) -> list[Reward]:
    """Active rewards that are in stock (or unlimited), cheapest first."""
    moment = as_utc(now)
    result = await db.execute(
        select(Reward)
        .where(
            Reward.status.is_(True),
            or_(Reward.stock.is_(None), Reward.stock > 0),
            or_(Reward.started_at.is_(None), Reward.started_at <= moment),
            or_(Reward.ended_at.is_(None), Reward.ended_at >= moment),
        )
        .order_by(Reward.coin_requirement.asc(), Reward.id.asc())
    )
    return list(result.scalars().all())
