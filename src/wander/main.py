"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wander.activity.router import router as activity_router
from wander.config import get_settings
from wander.database import close_db, get_session, init_db
from wander.grants.router import router as grants_router
from wander.grants.seed import seed_catalog
from wander.health.router import router as health_router
from wander.ledger.router import router as ledger_router
from wander.middleware import setup_middleware
from wander.redis_client import close_redis, init_redis
from wander.social.router import router as social_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
    )

    if settings.seed_catalog_on_startup:
        try:
            async for db in get_session():
                await seed_catalog(db)
                break
        except Exception:
            logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Wander API",
        description="Coins, experience, achievements and rewards for a location-based social platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(activity_router)
    app.include_router(grants_router)
    app.include_router(ledger_router)
    app.include_router(social_router)

    return app


app = create_app()
