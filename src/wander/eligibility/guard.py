"""Once-per-calendar-month eligibility for rewarded actions.

A user may check in at, or review, a given place at most once per calendar
month. Acting on the 31st and again on the 1st is allowed.

The existence check runs inside the caller's unit of work, and the
``(user_id, place_id, period_key)`` unique constraint turns a lost race
into ``AlreadyActedThisPeriod`` instead of a duplicate row.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import Checkin, Place, Review
from wander.eligibility.periods import MonthWindow, as_utc, month_window
from wander.errors import AlreadyActedThisPeriod, PlaceInactive, PlaceNotFound


class ActionKind(str, enum.Enum):
    CHECKIN = "checkin"
    REVIEW = "review"


_ACTION_MODELS: dict[ActionKind, type[Checkin] | type[Review]] = {
    ActionKind.CHECKIN: Checkin,
    ActionKind.REVIEW: Review,
}

_ALREADY_ACTED_MESSAGES = {
    ActionKind.CHECKIN: "You have already checked in at this place this month.",
    ActionKind.REVIEW: "You have already reviewed this place this month.",
}


@dataclass(frozen=True)
class Eligibility:
    place: Place
    window: MonthWindow
    as_of: datetime

    @property
    def period_key(self) -> str:
        return self.window.period_key


async def require_active_place(db: AsyncSession, place_id: int, *, for_update: bool = False) -> Place:
    """Load a place or raise PlaceNotFound / PlaceInactive."""
    stmt = select(Place).where(Place.id == place_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    place = result.scalar_one_or_none()
    if place is None:
        raise PlaceNotFound()
    if not place.status:
        raise PlaceInactive()
    return place


async def has_acted_in_window(
    db: AsyncSession,
    user_id: int,
    place_id: int,
    action_kind: ActionKind,
    window: MonthWindow,
) -> bool:
    """Any row of this kind for (user, place) created inside the window, whatever its status."""
    model = _ACTION_MODELS[action_kind]
    result = await db.execute(
        select(model.id)
        .where(
            model.user_id == user_id,
            model.place_id == place_id,
            model.created_at >= window.start,
            model.created_at < window.end,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def check_and_reserve(
    db: AsyncSession,
    user_id: int,
    place_id: int,
    action_kind: ActionKind | str,
    as_of: datetime | None = None,
) -> Eligibility:
    """Verify that the user may perform ``action_kind`` at the place.

    Must be called inside the unit of work that inserts the row; the
    returned ``Eligibility`` carries the period key for that insert.
    """
    action_kind = ActionKind(action_kind)
    moment = as_utc(as_of)
    place = await require_active_place(db, place_id)
    window = month_window(moment)

    if await has_acted_in_window(db, user_id, place_id, action_kind, window):
        raise AlreadyActedThisPeriod(_ALREADY_ACTED_MESSAGES[action_kind])

    return Eligibility(place=place, window=window, as_of=moment)


def already_acted_error(action_kind: ActionKind | str) -> AlreadyActedThisPeriod:
    """Error for an insert that lost the race against the unique period constraint."""
    return AlreadyActedThisPeriod(_ALREADY_ACTED_MESSAGES[ActionKind(action_kind)])
