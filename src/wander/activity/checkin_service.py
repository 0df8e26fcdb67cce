"""Check-in flow.

Requested -> EligibilityChecked -> Persisted -> RewardsApplied -> Committed,
all inside one unit of work. Any failure leaves nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wander.config import get_settings
from wander.db.models import Checkin, Place, User
from wander.db.unit_of_work import atomic
from wander.eligibility.guard import ActionKind, already_acted_error, check_and_reserve
from wander.errors import ValidationError
from wander.ledger.causes import Cause, CauseKind
from wander.ledger.levels import compute_level
from wander.ledger.service import add_coins, add_exp
from wander.users.service import adjust_counter, require_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckinResult:
    checkin: Checkin
    coins_earned: int
    exp_earned: int
    new_level: int


def validate_coordinates(latitude: float | None, longitude: float | None) -> None:
    """Reject out-of-range or half-specified coordinates."""
    if (latitude is None) != (longitude is None):
        raise ValidationError("Latitude and longitude must be provided together")
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationError("Longitude must be between -180 and 180")


async def create_checkin(
    db: AsyncSession,
    user_id: int,
    place_id: int,
    latitude: float | None = None,
    longitude: float | None = None,
    proof_image_url: str | None = None,
    metadata: dict[str, Any] | None = None,
    as_of: datetime | None = None,
) -> CheckinResult:
    """Check a user in at a place and pay the check-in rewards.

    1. Eligibility (place active, no check-in this calendar month)
    2. Insert the check-in row
    3. Credit coins and exp, each with a ledger entry caused by the check-in
    4. Bump users.total_checkin and places.total_checkin
    """
    validate_coordinates(latitude, longitude)
    settings = get_settings()
    coins_earned = settings.checkin_coin_reward
    exp_earned = settings.checkin_exp_reward

    async with atomic(db):
        user = await require_user(db, user_id, for_update=True)
        eligibility = await check_and_reserve(db, user_id, place_id, ActionKind.CHECKIN, as_of)

        checkin = Checkin(
            user_id=user_id,
            place_id=place_id,
            latitude=latitude,
            longitude=longitude,
            image_url=proof_image_url,
            additional_info=metadata or {},
            period_key=eligibility.period_key,
            status=True,
            created_at=eligibility.as_of,
        )
        db.add(checkin)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise already_acted_error(ActionKind.CHECKIN) from exc

        cause = Cause(CauseKind.CHECKIN, checkin.id)
        if coins_earned > 0:
            await add_coins(db, user_id, coins_earned, cause)
        if exp_earned > 0:
            await add_exp(db, user_id, exp_earned, cause)

        await adjust_counter(db, User, user_id, "total_checkin")
        await adjust_counter(db, Place, place_id, "total_checkin")
        new_level = compute_level(user.total_exp)["level"]

    logger.info("User %s checked in at place %s (checkin=%s)", user_id, place_id, checkin.id)
    return CheckinResult(
        checkin=checkin,
        coins_earned=coins_earned,
        exp_earned=exp_earned,
        new_level=new_level,
    )
