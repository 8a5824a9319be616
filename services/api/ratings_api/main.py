"""FastAPI application entry point.

Store Ratings API - users rate stores, owners read feedback, admins manage both.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ratings_api.routes import api_router
from ratings_api.schemas.common import ErrorResponse
from ratings_api.services.errors import ServiceError
from ratings_api.settings import get_settings
from ratings_api.stores.postgres import init_db, close_db, ping_db
from ratings_api.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")

# Location prefixes that are not part of the client-facing field name
_LOCATION_PARTS = {"body", "query", "path", "header"}


def _validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors to [{"field", "message"}]."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in _LOCATION_PARTS]
        message = str(err.get("msg", "Invalid value"))
        # "Value error, <msg>" -> "<msg>" for custom validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc) or "body", "message": message})
    return errors


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Initialize database (skip in tests if no DB available)
    try:
        await init_db()
        await ping_db()
        logger.info("Database connected")
    except Exception:
        logger.exception("Database init failed")

    # Initialize Redis (token revocation stays disabled if this fails)
    try:
        await init_redis()
    except Exception:
        logger.exception("Redis init failed; token revocation disabled")

    yield

    # Shutdown
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-tenant store rating platform API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """Domain errors raised by services and dependencies."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Schema validation failures -> 400 with per-field messages."""
        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Validation failed",
                    "detail": {"errors": _validation_errors(exc)},
                }
            },
        )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": str(exc) if settings.debug else "Internal server error",
                    "detail": None,
                }
            },
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(
        api_router,
        responses={code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409)},
    )

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ratings_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
