"""Redemption code generation for rewards.

Codes keep the ``<PREFIX>-<epoch millis>`` shape and append a random
suffix from a cryptographic source; ``user_rewards.redemption_code`` is
unique, so a collision is retried rather than stored.
"""

from __future__ import annotations

import secrets
import string
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wander.config import get_settings
from wander.db.models import UserReward

SUFFIX_CHARSET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 6


def generate_redemption_code(prefix: str | None = None, now_ms: int | None = None) -> str:
    """Generate e.g. 'XYZ-1760745600123-7KQ2ZD'."""
    if prefix is None:
        prefix = get_settings().redemption_code_prefix
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(SUFFIX_CHARSET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}-{now_ms}-{suffix}"


async def generate_unique_redemption_code(db: AsyncSession) -> str:
    """Generate a redemption code that doesn't already exist in the database."""
    for _ in range(10):
        code = generate_redemption_code()
        existing = await db.execute(
            select(UserReward.id).where(UserReward.redemption_code == code)
        )
        if existing.scalar_one_or_none() is None:
            return code
    raise RuntimeError("Failed to generate unique redemption code after 10 attempts")
