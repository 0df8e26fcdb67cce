"""Global error handlers: every failure leaves the API as ``{"error", "detail"}`` JSON."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wander.errors import TransactionFailed, WanderError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register global exception handlers."""

    @app.exception_handler(WanderError)
    async def wander_error_handler(request: Request, exc: WanderError) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        if isinstance(exc, TransactionFailed):
            logger.warning(
                "transaction_failed",
                path=request.url.path,
                method=request.method,
                error=str(exc.__cause__ or exc),
            )
        content: dict[str, object] = {"error": exc.kind, "detail": exc.message}
        if debug and exc.__cause__ is not None:
            content["internal"] = repr(exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": "validation_error", "detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        content: dict[str, object] = {"error": "internal_error", "detail": "Internal server error"}
        if debug:
            content["internal"] = repr(exc)
        return JSONResponse(status_code=500, content=content)
