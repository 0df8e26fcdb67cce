"""ORM models for users, places, activity, the ledger and the grant catalogs.

Counters on ``users``, ``places`` and ``reviews`` are denormalized caches;
they are only written in the same unit of work as the row that justifies
them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from wander.db.base import Base, BigIntPK
from wander.ledger.causes import CauseKind


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("total_coin >= 0", name="ck_users_total_coin_non_negative"),
        CheckConstraint("total_exp >= 0", name="ck_users_total_exp_non_negative"),
        CheckConstraint("total_following >= 0", name="ck_users_total_following_non_negative"),
        CheckConstraint("total_follower >= 0", name="ck_users_total_follower_non_negative"),
        CheckConstraint("total_checkin >= 0", name="ck_users_total_checkin_non_negative"),
        CheckConstraint("total_review >= 0", name="ck_users_total_review_non_negative"),
        CheckConstraint("total_achievement >= 0", name="ck_users_total_achievement_non_negative"),
        CheckConstraint("total_challenge >= 0", name="ck_users_total_challenge_non_negative"),
        CheckConstraint("total_reward >= 0", name="ck_users_total_reward_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")

    # --- Denormalized counters ---
    total_coin: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_exp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_following: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_follower: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_checkin: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_review: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_achievement: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_challenge: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class UserFollow(Base):
    """Directed follow edge between two users."""

    __tablename__ = "user_follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_user_follows_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    following_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Places & activity
# ---------------------------------------------------------------------------


class Place(Base):
    """Point of interest with review payouts and aggregate rating."""

    __tablename__ = "places"
    __table_args__ = (
        CheckConstraint("coin_reward >= 0", name="ck_places_coin_reward_non_negative"),
        CheckConstraint("exp_reward >= 0", name="ck_places_exp_reward_non_negative"),
        CheckConstraint("avg_rating >= 0 AND avg_rating <= 5", name="ck_places_avg_rating_range"),
        CheckConstraint("total_review >= 0", name="ck_places_total_review_non_negative"),
        CheckConstraint("total_checkin >= 0", name="ck_places_total_checkin_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    coin_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    exp_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    avg_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), default=Decimal("0.00"), server_default="0", nullable=False
    )
    total_review: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_checkin: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class Checkin(Base):
    """One rewarded visit per (user, place, calendar month)."""

    __tablename__ = "checkins"
    __table_args__ = (
        UniqueConstraint("user_id", "place_id", "period_key", name="uq_checkins_user_place_period"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    place_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("places.id", ondelete="CASCADE"), nullable=False, index=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    period_key: Mapped[str] = mapped_column(String(7), nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Review(Base):
    """Rating + content for a place. Soft-deleted through ``status``."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "place_id", "period_key", name="uq_reviews_user_place_period"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    place_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("places.id", ondelete="CASCADE"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_urls: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    total_like: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    period_key: Mapped[str] = mapped_column(String(7), nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class UserLike(Base):
    """A user's like on a likeable row, addressed by ``(related_to_type, related_to_id)``."""

    __tablename__ = "user_likes"
    __table_args__ = (
        UniqueConstraint("user_id", "related_to_type", "related_to_id", name="uq_user_likes_target"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    related_to_type: Mapped[str] = mapped_column(String(32), nullable=False)
    related_to_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class LedgerEntryMixin:
    """Immutable signed delta with its causal reference."""

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    cause_kind: Mapped[CauseKind] = mapped_column(
        Enum(
            CauseKind,
            name="cause_kind",
            native_enum=False,
            length=32,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
    )
    cause_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    @declared_attr
    def user_id(cls) -> Mapped[int]:  # noqa: N805
        return mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class CoinTransaction(LedgerEntryMixin, Base):
    __tablename__ = "coin_transactions"


class ExpTransaction(LedgerEntryMixin, Base):
    __tablename__ = "exp_transactions"


def _reject_ledger_mutation(_mapper: Any, _connection: Any, target: LedgerEntryMixin) -> None:
    msg = f"{type(target).__name__} rows are append-only"
    raise RuntimeError(msg)


for _ledger_model in (CoinTransaction, ExpTransaction):
    event.listen(_ledger_model, "before_update", _reject_ledger_mutation)
    event.listen(_ledger_model, "before_delete", _reject_ledger_mutation)


# ---------------------------------------------------------------------------
# Catalogs
# ---------------------------------------------------------------------------


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    coin_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    exp_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Challenge(Base):
    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    challenge_type: Mapped[str] = mapped_column(String(16), default="special", nullable=False)
    coin_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    exp_reward: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Reward(Base):
    """Redeemable item. ``stock`` NULL means unlimited."""

    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("stock IS NULL OR stock >= 0", name="ck_rewards_stock_non_negative"),
        CheckConstraint("coin_requirement >= 0", name="ck_rewards_coin_requirement_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    coin_requirement: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class UserChallenge(Base):
    __tablename__ = "user_challenges"
    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_user_challenges_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    challenge_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class UserReward(Base):
    __tablename__ = "user_rewards"
    __table_args__ = (
        UniqueConstraint("user_id", "reward_id", name="uq_user_rewards_pair"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reward_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("rewards.id", ondelete="CASCADE"), nullable=False)
    redemption_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
