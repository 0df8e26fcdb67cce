"""Pydantic schemas for check-in and review endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# --- Check-in ---


class CheckinRequest(BaseModel):
    place_id: int
    latitude: float | None = None
    longitude: float | None = None
    proof_image_url: str | None = Field(None, max_length=2048)
    metadata: dict[str, Any] | None = None


class CheckinResponse(BaseModel):
    id: int
    user_id: int
    place_id: int
    period_key: str
    created_at: datetime
    coins_earned: int
    exp_earned: int
    new_level: int


# --- Review ---


class CreateReviewRequest(BaseModel):
    place_id: int
    rating: int
    content: str | None = None
    image_urls: list[str] | None = None
    metadata: dict[str, Any] | None = None


class UpdateReviewRequest(BaseModel):
    rating: int | None = None
    content: str | None = None
    image_urls: list[str] | None = None
    metadata: dict[str, Any] | None = None


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    place_id: int
    rating: int
    content: str | None = None
    image_urls: list[str] = []
    metadata: dict[str, Any] = {}
    total_like: int = 0
    period_key: str
    status: bool
    created_at: datetime
    updated_at: datetime
    place_avg_rating: float
    place_total_review: int


# --- Likes ---


class LikeResponse(BaseModel):
    review_id: int
    total_like: int
    liked: bool
