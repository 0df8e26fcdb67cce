"""Place lookups used by the activity flows."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Place


async def get_place(db: AsyncSession, place_id: int) -> Place | None:
    """Get a place by ID."""
    result = await db.execute(select(Place).where(Place.id == place_id))
    return result.scalar_one_or_none()


async def create_place(
    db: AsyncSession,
    name: str,
    coin_reward: int = 0,
    exp_reward: int = 0,
    latitude: float | None = None,
    longitude: float | None = None,
    status: bool = True,
) -> Place:
    """Create a place with empty aggregates."""
    place = Place(
        name=name,
        coin_reward=coin_reward,
        exp_reward=exp_reward,
        latitude=latitude,
        longitude=longitude,
        status=status,
    )
    db.add(place)
    await db.flush()
    return place
