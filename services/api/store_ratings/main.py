"""FastAPI application entry point.

Store Ratings API - browse stores, rate them, manage owners and users.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from store_ratings.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConstraintError,
    NoChangeError,
    NotFoundError,
    StoreRatingsError,
)
from store_ratings.routes import api_router
from store_ratings.schemas import ErrorDetail, ErrorResponse
from store_ratings.services.users import ensure_admin
from store_ratings.settings import get_settings
from store_ratings.stores.gateway import SqlAlchemyGateway
from store_ratings.stores.postgres import close_db, create_tables, get_session, init_db, ping_db

logger = logging.getLogger("uvicorn.error")

# Domain error -> HTTP status
ERROR_STATUS_CODES: dict[type[StoreRatingsError], int] = {
    NotFoundError: 404,
    AuthorizationError: 403,
    AuthenticationError: 401,
    ConstraintError: 400,
    ConflictError: 409,
    NoChangeError: 400,
}


def status_code_for(exc: StoreRatingsError) -> int:
    """Map a domain error (or subclass) to its HTTP status."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[error_type]
    return 400


async def _bootstrap_admin() -> None:
    """Create the configured admin account if it does not exist yet."""
    settings = get_settings()
    if not (settings.admin_email and settings.admin_password):
        return
    async with get_session() as session:
        admin = await ensure_admin(
            SqlAlchemyGateway(session),
            name=settings.admin_name,
            email=settings.admin_email.strip().lower(),
            password=settings.admin_password,
            address=settings.admin_address,
        )
    logger.info("Bootstrap admin ready user_id=%s", admin.id)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()

    # Initialize database (skip in tests if no DB available)
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
        if settings.auto_create_tables:
            await create_tables()
            logger.info("Tables created")
        await _bootstrap_admin()
    except Exception:
        logger.exception("Postgres init failed")

    yield

    # Shutdown
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Store rating platform API",
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

    @app.exception_handler(StoreRatingsError)
    async def domain_exception_handler(request: Request, exc: StoreRatingsError) -> JSONResponse:
        """Typed service failures in the structured error format."""
        status_code = status_code_for(exc)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        body = ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message, detail=exc.detail))
        return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)

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
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "store_ratings.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
