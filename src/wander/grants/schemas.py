"""Pydantic schemas for achievement, challenge and reward endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


# --- Achievements ---


class AchievementResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    coin_reward: int
    exp_reward: int
    completed: bool = False
    completed_at: datetime | None = None


class UserAchievementsResponse(BaseModel):
    achievements: list[AchievementResponse]
    total_available: int
    total_completed: int


# --- Challenges ---


class ChallengeResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    challenge_type: str
    coin_reward: int
    exp_reward: int
    started_at: datetime | None = None
    ended_at: datetime | None = None
    completed: bool = False
    completed_at: datetime | None = None


class UserChallengesResponse(BaseModel):
    challenges: list[ChallengeResponse]
    total_available: int
    total_completed: int


# --- Grants ---


class GrantResponse(BaseModel):
    user_id: int
    entity_id: int
    completed_at: datetime | None
    total_coin: int
    total_exp: int
    counter: int


# --- Rewards ---


class RewardResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    coin_requirement: int
    stock: int | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


class RewardListResponse(BaseModel):
    rewards: list[RewardResponse]


class RedemptionResponse(BaseModel):
    id: int
    user_id: int
    reward_id: int
    redemption_code: str
    coins_spent: int
    total_coin: int
    remaining_stock: int | None = None
    metadata: dict[str, Any] = {}
    created_at: datetime
