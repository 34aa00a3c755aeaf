"""Global error handlers rendering every failure as JSON."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from safevault.exceptions import SafeVaultError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(SafeVaultError)
    async def domain_exception_handler(request: Request, exc: SafeVaultError) -> JSONResponse:
        """Render domain errors with the status code they carry."""
        if exc.status_code >= 500:
            logger.error("domain_error", path=request.url.path, error=exc.message, exc_info=exc)
        else:
            logger.info("request_rejected", path=request.url.path, error=type(exc).__name__, detail=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(StaleDataError)
    async def stale_data_handler(request: Request, _exc: StaleDataError) -> JSONResponse:
        """An optimistic version check lost a race with a concurrent write."""
        logger.warning("concurrent_update_rejected", path=request.url.path)
        return JSONResponse(
            status_code=409,
            content={"detail": "The record was modified concurrently. Retry the operation."},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent JSON format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle validation errors with consistent JSON format."""
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions. Always returns JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Strip non-serialisable context (e.g. raised ValueError instances) from pydantic errors."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
