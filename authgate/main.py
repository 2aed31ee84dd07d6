"""authgate - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.api import auth_router, health_router, profile_router
from authgate.core import Settings, create_engine, create_session_maker, get_settings, setup_logging
from authgate.core.logging import get_logger

# Import all models to ensure they're registered with Base for Alembic
from authgate.models import RevokedToken, User  # noqa: F401
from authgate.services.passwords import CredentialHasher
from authgate.services.revocation import RevocationStore

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def revocation_sweep_loop(
    session_maker: async_sessionmaker[AsyncSession],
    interval: int,
    timeout: float | None = None,
) -> None:
    """Periodically remove revoked tokens that have expired anyway."""
    while True:
        await asyncio.sleep(interval)
        try:
            async with session_maker() as db:
                removed = await RevocationStore(db, timeout=timeout).purge_expired()
                if removed > 0:
                    logger.info(f"Cleaned up {removed} expired revoked-token entries")
        except Exception:
            logger.exception("Error cleaning up revoked tokens")


async def invalid_payload_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are a client error (400), without echoing the input."""
    logger.debug(f"Invalid payload for {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request payload"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    engine = create_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        setup_logging(
            level=settings.log_level,
            format_type="structured" if not settings.debug else "dev",
        )
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")

        for warning in settings.check_security_configuration():
            logger.warning(f"SECURITY: {warning}")

        app.state.hasher.warm_up()

        tasks: list[asyncio.Task] = []
        if settings.revocation_sweep_interval_seconds > 0:
            sweep_task = asyncio.create_task(
                revocation_sweep_loop(
                    app.state.session_maker,
                    settings.revocation_sweep_interval_seconds,
                    settings.db_operation_timeout,
                )
            )
            sweep_task.add_done_callback(task_done_callback)
            tasks.append(sweep_task)

        yield

        logger.info("Shutting down...")
        for task in tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Credential and session service",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    # Explicit handles instead of module-level globals
    app.state.settings = settings
    app.state.auth_config = settings.auth_config()
    # Shared so the dummy hash for unknown-account logins is built once
    app.state.hasher = CredentialHasher(app.state.auth_config)
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)

    app.add_exception_handler(RequestValidationError, invalid_payload_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
