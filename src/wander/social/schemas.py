"""Pydantic schemas for follow endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class FollowResponse(BaseModel):
    follower_id: int
    following_count: int
    target_id: int
    follower_count: int
    following: bool
