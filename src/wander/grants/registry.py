"""Grant registry: one-time achievements, challenges and reward redemptions.

Rules:
- At most one completed grant row per (user, catalog entity); the unique
  pair constraint backs the in-transaction existence check
- Grant row, user counter and payout ledger entries commit together
- Limited rewards decrement stock with a guarded UPDATE (stock > 0)
- Redemption deducts the coin cost through the balance mutator
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import (
    Achievement,
    Challenge,
    Reward,
    User,
    UserAchievement,
    UserChallenge,
    UserReward,
)
from wander.db.unit_of_work import atomic
from wander.eligibility.periods import as_utc
from wander.errors import (
    AchievementNotFound,
    AlreadyGranted,
    ChallengeNotFound,
    InsufficientCoins,
    InsufficientFunds,
    NotFound,
    OutOfStock,
    RewardInactive,
    RewardNotFound,
    ValidationError,
)
from wander.grants.redemption_codes import generate_unique_redemption_code
from wander.ledger.causes import Cause, CauseKind
from wander.ledger.service import add_coins, add_exp, use_coins
from wander.users.service import adjust_counter, require_user

logger = logging.getLogger(__name__)


class GrantKind(str, enum.Enum):
    ACHIEVEMENT = "achievement"
    CHALLENGE = "challenge"


@dataclass(frozen=True)
class _GrantSpec:
    catalog: type[Achievement] | type[Challenge]
    join: type[UserAchievement] | type[UserChallenge]
    fk: str
    counter: str
    cause_kind: CauseKind
    not_found: type[NotFound]
    already_message: str


_GRANT_SPECS: dict[GrantKind, _GrantSpec] = {
    GrantKind.ACHIEVEMENT: _GrantSpec(
        catalog=Achievement,
        join=UserAchievement,
        fk="achievement_id",
        counter="total_achievement",
        cause_kind=CauseKind.ACHIEVEMENT,
        not_found=AchievementNotFound,
        already_message="You already have this achievement.",
    ),
    GrantKind.CHALLENGE: _GrantSpec(
        catalog=Challenge,
        join=UserChallenge,
        fk="challenge_id",
        counter="total_challenge",
        cause_kind=CauseKind.CHALLENGE,
        not_found=ChallengeNotFound,
        already_message="You have already completed this challenge.",
    ),
}


async def grant(
    db: AsyncSession,
    user_id: int,
    entity_kind: GrantKind | str,
    entity_id: int,
) -> UserAchievement | UserChallenge:
    """Grant an achievement or complete a challenge for a user.

    Raises AlreadyGranted if the user already holds a completed grant for
    the entity, including when a concurrent grant wins the race.
    """
    kind = GrantKind(entity_kind)
    spec = _GRANT_SPECS[kind]

    async with atomic(db):
        await require_user(db, user_id, for_update=True)

        entity = (
            await db.execute(select(spec.catalog).where(spec.catalog.id == entity_id))
        ).scalar_one_or_none()
        if entity is None:
            raise spec.not_found()
        if not entity.status:
            raise ValidationError(f"This {kind.value} is not active.")

        fk_column = getattr(spec.join, spec.fk)
        existing = (
            await db.execute(
                select(spec.join)
                .where(spec.join.user_id == user_id, fk_column == entity_id)
                .with_for_update()
            )
        ).scalar_one_or_none()

        now = datetime.now(timezone.utc)
        if existing is not None and existing.status:
            raise AlreadyGranted(spec.already_message)

        if existing is not None:
            # In-progress row: complete it in place.
            existing.status = True
            existing.completed_at = now
            row = existing
        else:
            row = spec.join(
                user_id=user_id,
                status=True,
                completed_at=now,
                created_at=now,
                **{spec.fk: entity_id},
            )
            db.add(row)

        try:
            await db.flush()
        except IntegrityError as exc:
            raise AlreadyGranted(spec.already_message) from exc

        await adjust_counter(db, User, user_id, spec.counter)

        cause = Cause(spec.cause_kind, entity.id)
        if entity.coin_reward > 0:
            await add_coins(db, user_id, entity.coin_reward, cause)
        if entity.exp_reward > 0:
            await add_exp(db, user_id, entity.exp_reward, cause)

    logger.info("Granted %s %s to user %s", kind.value, entity_id, user_id)
    return row


async def grant_achievement(db: AsyncSession, user_id: int, achievement_id: int) -> UserAchievement:
    """Grant an achievement once."""
    return await grant(db, user_id, GrantKind.ACHIEVEMENT, achievement_id)  # type: ignore[return-value]


async def complete_challenge(db: AsyncSession, user_id: int, challenge_id: int) -> UserChallenge:
    """Complete a challenge once."""
    return await grant(db, user_id, GrantKind.CHALLENGE, challenge_id)  # type: ignore[return-value]


def is_reward_available(reward: Reward, now: datetime | None = None) -> bool:
    """Active flag set and ``now`` inside the optional [started_at, ended_at] range."""
    if not reward.status:
        return False
    moment = as_utc(now)
    if reward.started_at is not None and moment < as_utc(reward.started_at):
        return False
    if reward.ended_at is not None and moment > as_utc(reward.ended_at):
        return False
    return True


async def redeem_reward(
    db: AsyncSession,
    user_id: int,
    reward_id: int,
    as_of: datetime | None = None,
) -> UserReward:
    """Redeem a reward: deduct its coin cost, take one unit of stock, issue a code.

    All three effects commit together; any failure applies none of them.
    """
    async with atomic(db):
        user = await require_user(db, user_id, for_update=True)
        await db.refresh(user, attribute_names=["total_coin"])

        reward = (
            await db.execute(select(Reward).where(Reward.id == reward_id).with_for_update())
        ).scalar_one_or_none()
        if reward is None:
            raise RewardNotFound()
        await db.refresh(reward, attribute_names=["stock", "status"])

        if not is_reward_available(reward, as_of):
            raise RewardInactive()

        existing = (
            await db.execute(
                select(UserReward.id).where(
                    UserReward.user_id == user_id,
                    UserReward.reward_id == reward_id,
                    UserReward.status.is_(True),
                )
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise AlreadyGranted("You have already redeemed this reward.")

        if reward.stock is not None and reward.stock <= 0:
            raise OutOfStock()
        if user.total_coin < reward.coin_requirement:
            raise InsufficientCoins()

        if reward.coin_requirement > 0:
            try:
                await use_coins(db, user_id, reward.coin_requirement, Cause(CauseKind.REWARD, reward.id))
            except InsufficientFunds as exc:
                raise InsufficientCoins() from exc

        if reward.stock is not None:
            result = await db.execute(
                update(Reward)
                .where(Reward.id == reward_id, Reward.stock > 0)
                .values(stock=Reward.stock - 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise OutOfStock()
            await db.refresh(reward, attribute_names=["stock"])

        code = await generate_unique_redemption_code(db)
        user_reward = UserReward(
            user_id=user_id,
            reward_id=reward_id,
            redemption_code=code,
            status=True,
            additional_info={"redemption_code": code},
            created_at=datetime.now(timezone.utc),
        )
        db.add(user_reward)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise AlreadyGranted("You have already redeemed this reward.") from exc

        await adjust_counter(db, User, user_id, "total_reward")

    logger.info("User %s redeemed reward %s (code=%s)", user_id, reward_id, code)
    return user_reward
