"""FastAPI application factory.

Renders every error body the same way:
- HTTPException          → {"message": detail}
- RoomValidationError    → 400 {"errors": [...]}
- RequestValidationError → 400 {"errors": [...]}
- anything else          → 500 {"message": "Internal server error."}, logged
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from roomdesk.domain.rooms import RoomValidationError
from roomdesk.infra.db import close_pool
from roomdesk.observability.correlation import correlation_id_middleware
from roomdesk.observability.logging import get_logger

from .routers import public

logger = get_logger(__name__)


def _format_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    close_pool()


def create_app() -> FastAPI:
    """Create the FastAPI app with middleware, error handlers and routes."""
    app = FastAPI(
        title="Roomdesk",
        docs_url=None,
        redoc_url=None,
        lifespan=_lifespan,
    )

    app.middleware("http")(correlation_id_middleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            {"message": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RoomValidationError)
    async def room_validation_handler(request: Request, exc: RoomValidationError) -> JSONResponse:
        return JSONResponse({"errors": exc.errors}, status_code=400)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [_format_validation_error(error) for error in exc.errors()]
        return JSONResponse({"errors": errors}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled error", exc_info=exc)
        return JSONResponse({"message": "Internal server error."}, status_code=500)

    app.include_router(public.router)

    return app
