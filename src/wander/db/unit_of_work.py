"""Transaction boundary shared by every mutating operation.

``atomic`` opens a unit of work on a session. Nested blocks join the
outermost one, so a composed operation (check-in -> balance mutation ->
ledger append) commits exactly once and any failure rolls back every step.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from wander.errors import TransactionFailed

logger = logging.getLogger(__name__)

_DEPTH_KEY = "wander.atomic_depth"


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed block as one unit of work.

    Only the outermost block commits or rolls back. Database errors that
    were not translated closer to their source surface as
    ``TransactionFailed`` after the rollback.
    """
    depth = db.info.get(_DEPTH_KEY, 0)
    db.info[_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            await db.commit()
    except DBAPIError as exc:
        if depth == 0:
            await db.rollback()
        logger.warning("Unit of work rolled back after database error", exc_info=True)
        raise TransactionFailed() from exc
    except BaseException:
        if depth == 0:
            await db.rollback()
        raise
    finally:
        db.info[_DEPTH_KEY] = depth
