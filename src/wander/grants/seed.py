"""Default achievement, challenge and reward catalog.

Seeding inserts missing rows by name and never touches existing ones, so
reward stock and catalog edits survive restarts.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Achievement, Challenge, Reward
from wander.db.unit_of_work import atomic

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict[str, Any]] = [
    {
        "name": "First Steps",
        "description": "Check in at your first place",
        "coin_reward": 20,
        "exp_reward": 10,
        "additional_info": {"trigger": "checkin_count", "threshold": 1},
    },
    {
        "name": "Regular",
        "description": "Check in 10 times",
        "coin_reward": 50,
        "exp_reward": 50,
        "additional_info": {"trigger": "checkin_count", "threshold": 10},
    },
    {
        "name": "First Impressions",
        "description": "Write your first review",
        "coin_reward": 20,
        "exp_reward": 10,
        "additional_info": {"trigger": "review_count", "threshold": 1},
    },
    {
        "name": "Critic",
        "description": "Write 25 reviews",
        "coin_reward": 100,
        "exp_reward": 100,
        "additional_info": {"trigger": "review_count", "threshold": 25},
    },
    {
        "name": "Social Butterfly",
        "description": "Follow 10 other explorers",
        "coin_reward": 30,
        "exp_reward": 20,
        "additional_info": {"trigger": "following_count", "threshold": 10},
    },
]

CHALLENGE_SEED_DATA: list[dict[str, Any]] = [
    {
        "name": "Daily Wander",
        "description": "Check in anywhere today",
        "challenge_type": "daily",
        "coin_reward": 5,
        "exp_reward": 5,
    },
    {
        "name": "Weekend Explorer",
        "description": "Check in at three different places in one week",
        "challenge_type": "weekly",
        "coin_reward": 25,
        "exp_reward": 30,
    },
    {
        "name": "City Sampler",
        "description": "Review five places in different neighbourhoods",
        "challenge_type": "special",
        "coin_reward": 75,
        "exp_reward": 60,
    },
]

REWARD_SEED_DATA: list[dict[str, Any]] = [
    {
        "name": "Sticker Pack",
        "description": "A set of Wander stickers",
        "coin_requirement": 30,
        "stock": None,
    },
    {
        "name": "Coffee Voucher",
        "description": "One free coffee at a partner cafe",
        "coin_requirement": 100,
        "stock": 50,
    },
    {
        "name": "Museum Pass",
        "description": "Single entry to a partner museum",
        "coin_requirement": 400,
        "stock": 10,
    },
]


def _insert_for(db: AsyncSession) -> Any:
    return sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert


async def seed_catalog(db: AsyncSession) -> int:
    """Insert any missing catalog rows. Returns the number of rows inserted."""
    insert = _insert_for(db)
    seeded = 0
    async with atomic(db):
        for model, rows in (
            (Achievement, ACHIEVEMENT_SEED_DATA),
            (Challenge, CHALLENGE_SEED_DATA),
            (Reward, REWARD_SEED_DATA),
        ):
            for data in rows:
                stmt = insert(model).values(status=True, **{"additional_info": {}, **data})
                stmt = stmt.on_conflict_do_nothing(index_elements=["name"])
                result = await db.execute(stmt)
                seeded += result.rowcount or 0

    logger.info("Seeded %d catalog rows", seeded)
    return seeded
