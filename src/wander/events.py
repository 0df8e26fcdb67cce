"""Best-effort Redis pub/sub events for committed grants and redemptions."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

ACHIEVEMENT_GRANTED = "pubsub:achievement_granted"
CHALLENGE_COMPLETED = "pubsub:challenge_completed"
REWARD_REDEEMED = "pubsub:reward_redeemed"


async def publish_event(redis: object | None, channel: str, payload: dict[str, Any]) -> bool:
    """Publish a JSON event. Returns False when skipped or failed.

    Only call after the unit of work has committed; a failure here never
    undoes the committed state.
    """
    if redis is None:
        return False
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[union-attr]
    except Exception:
        logger.warning("Failed to publish %s event", channel, exc_info=True)
        return False
    return True
