"""Tests for best-effort event publishing."""

import json
from unittest.mock import AsyncMock

import pytest

from wander.events import ACHIEVEMENT_GRANTED, REWARD_REDEEMED, publish_event


@pytest.mark.asyncio
async def test_publish_serializes_payload():
    redis = AsyncMock()
    ok = await publish_event(redis, ACHIEVEMENT_GRANTED, {"user_id": 1, "achievement_id": 7})

    assert ok is True
    channel, payload = redis.publish.await_args.args
    assert channel == "pubsub:achievement_granted"
    assert json.loads(payload) == {"user_id": 1, "achievement_id": 7}


@pytest.mark.asyncio
async def test_publish_without_redis_is_skipped():
    assert await publish_event(None, REWARD_REDEEMED, {"user_id": 1}) is False


@pytest.mark.asyncio
async def test_publish_failure_is_swallowed():
    redis = AsyncMock()
    redis.publish.side_effect = ConnectionError("connection refused")

    assert await publish_event(redis, REWARD_REDEEMED, {"user_id": 1}) is False
