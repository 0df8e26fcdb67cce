"""User lookups and atomic counter updates."""

from __future__ import annotations

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.base import Base
from wander.db.models import User
from wander.errors import UserNotFound


async def require_user(db: AsyncSession, user_id: int, *, for_update: bool = False) -> User:
    """Load a user or raise UserNotFound. ``for_update`` takes a row lock."""
    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFound()
    return user


async def create_user(
    db: AsyncSession,
    username: str,
    name: str,
    email: str,
    image_url: str | None = None,
) -> User:
    """Create a user with zeroed counters."""
    user = User(username=username, name=name, email=email.lower(), image_url=image_url)
    db.add(user)
    await db.flush()
    return user


async def adjust_counter(
    db: AsyncSession,
    model: type[Base],
    row_id: int,
    field: str,
    by: int = 1,
) -> int:
    """Atomically add ``by`` to a denormalized counter, flooring at zero.

    Runs as ``UPDATE ... SET field = field + :by`` so concurrent writers never
    lose increments. Returns the new value and refreshes the loaded instance.
    """
    column = getattr(model, field)
    new_value = column + by
    if by < 0:
        new_value = case((column + by < 0, 0), else_=column + by)
    await db.execute(
        update(model)
        .where(model.id == row_id)  # type: ignore[attr-defined]
        .values({field: new_value})
        .execution_options(synchronize_session=False)
    )
    obj = await db.get(model, row_id)
    if obj is None:
        return 0
    await db.refresh(obj, attribute_names=[field])
    return getattr(obj, field)
