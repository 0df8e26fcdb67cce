"""Place aggregate recalculation.

``avg_rating`` and ``total_review`` are always recomputed from the full set
of active reviews, never adjusted incrementally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Place, Review
from wander.db.unit_of_work import atomic
from wander.errors import PlaceNotFound

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class PlaceRating:
    place_id: int
    avg_rating: Decimal
    total_review: int


def round_rating(value: float | Decimal | None) -> Decimal:
    """Round a mean rating half-up to two decimals; None becomes 0.00."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


async def recompute_place_rating(db: AsyncSession, place_id: int) -> PlaceRating:
    """Recompute avg_rating and total_review for a place from its active reviews."""
    async with atomic(db):
        row = (
            await db.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(
                    Review.place_id == place_id,
                    Review.status.is_(True),
                )
            )
        ).one()
        mean, count = row
        avg_rating = round_rating(mean) if count else Decimal("0.00")
        total = int(count or 0)

        result = await db.execute(
            update(Place)
            .where(Place.id == place_id)
            .values(avg_rating=avg_rating, total_review=total)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise PlaceNotFound()

        place = await db.get(Place, place_id)
        if place is not None:
            await db.refresh(place, attribute_names=["avg_rating", "total_review"])

    logger.debug("Recomputed place %s rating: avg=%s total=%s", place_id, avg_rating, total)
    return PlaceRating(place_id=place_id, avg_rating=avg_rating, total_review=total)
