"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from wander.database import get_session as _get_session
from wander.redis_client import get_redis as _get_redis

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[object | None, None]:
    """Yield the Redis client, or None when Redis is not initialized.

    Event publishing is best-effort, so routes keep working without Redis.
    """
    try:
        client = _get_redis()
    except RuntimeError:
        client = None
    yield client
