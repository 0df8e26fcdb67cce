"""CORS for the web and mobile-web clients."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wander.config import Settings

# Headers clients read back: request correlation and rate-limit state.
_EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow ``settings.cors_origins`` on the methods the API routes use."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=_EXPOSED_HEADERS,
        max_age=settings.cors_max_age,
    )
