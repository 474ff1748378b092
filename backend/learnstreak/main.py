import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
BACKEND_DIR = Path(__file__).parent.parent
load_dotenv(BACKEND_DIR / ".env")

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError
from starlette.requests import Request

from .auth.exceptions import AuthenticationError
from .config.logging import setup_logging
from .config.settings import get_settings
from .database.base import create_all_tables
from .database.engine import engine
from .exceptions import (
    AlreadyCompletedError,
    ConcurrentUpdateError,
    InvalidTimestampError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationError as CustomValidationError,
)
from .middleware.error_handlers import (
    ErrorCategory,
    ErrorCode,
    format_error_response,
    handle_already_completed_errors,
    handle_authentication_errors,
    handle_concurrent_update_errors,
    handle_database_errors,
    handle_invalid_timestamp_errors,
    handle_not_found_errors,
    handle_permission_errors,
    handle_validation_errors,
    log_error_context,
)
from .middleware.security import SimpleSecurityMiddleware, limiter
from .offensives.evaluator import get_streak_timezone
from .offensives.router import router as offensives_router
from .offensives.tiers import get_tier_classifier
from .progress.router import router as progress_router


setup_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger(__name__)


def _register_routers(app: FastAPI) -> None:
    """Register all application routers."""
    app.include_router(progress_router)
    app.include_router(offensives_router)


def _startup_validation() -> None:
    """Fail fast on a bad streak configuration."""
    settings = get_settings()
    tz = get_streak_timezone()
    thresholds = get_tier_classifier().thresholds
    logger.info(
        "Offensive engine configured: timezone %s, tiers %s",
        tz.key,
        ", ".join(f"{tier.value}>={days}" for tier, days in thresholds.items()),
    )
    if settings.AUTH_PROVIDER == "none" and settings.ENVIRONMENT == "production":
        logger.error("AUTH_PROVIDER='none' is not allowed in production!")
    if settings.simulated_completions_allowed:
        logger.info("Simulated completion timestamps are enabled")


async def _startup_database() -> None:
    """Create missing tables with retry logic."""
    max_retries = 5
    retry_delay = 1  # seconds

    for attempt in range(max_retries):
        try:
            await create_all_tables(engine)
            logger.info("Database initialization completed successfully")
            break

        except OperationalError:
            if attempt == max_retries - 1:
                logger.exception("Startup failed after %d attempts", max_retries)
                raise

            logger.warning(
                "Database connection attempt %d failed, retrying in %ds...",
                attempt + 1,
                retry_delay,
            )
            await asyncio.sleep(retry_delay)
            retry_delay *= 2  # Exponential backoff


async def _shutdown_cleanup() -> None:
    """Clean up resources on shutdown."""
    logger.info("Starting graceful shutdown...")
    await engine.dispose()
    logger.info("Shutdown complete")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    _startup_validation()
    await _startup_database()

    yield

    await _shutdown_cleanup()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="Learning Streak API",
        description="Video completion tracking and tiered learning streaks (offensives)",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan if settings.ENVIRONMENT != "test" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SimpleSecurityMiddleware)

    # Add rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(ResourceNotFoundError, handle_not_found_errors)
    app.add_exception_handler(AlreadyCompletedError, handle_already_completed_errors)
    app.add_exception_handler(InvalidTimestampError, handle_invalid_timestamp_errors)
    app.add_exception_handler(CustomValidationError, handle_validation_errors)
    app.add_exception_handler(PermissionDeniedError, handle_permission_errors)
    app.add_exception_handler(ConcurrentUpdateError, handle_concurrent_update_errors)

    # Request validation and authentication
    app.add_exception_handler(RequestValidationError, handle_validation_errors)
    app.add_exception_handler(AuthenticationError, handle_authentication_errors)

    # Database errors
    app.add_exception_handler(IntegrityError, handle_database_errors)
    app.add_exception_handler(OperationalError, handle_database_errors)
    app.add_exception_handler(DatabaseError, handle_database_errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        error_id = uuid4()
        log_error_context(request, exc, error_id)

        # Generic response, no internal details
        return format_error_response(
            category=ErrorCategory.INTERNAL,
            code=ErrorCode.INTERNAL,
            detail="An unexpected error occurred",
            status_code=500,
            metadata={"error_id": str(error_id)},
            suggestions=["Please try again later", "If the problem persists, contact support with the error ID"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Check application health status."""
        return {"status": "healthy"}

    _register_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from learnstreak.config import env

    host = env("API_HOST", "127.0.0.1")
    port = int(env("API_PORT", "8080"))

    uvicorn.run(app, host=host, port=port)
