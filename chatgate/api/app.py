"""FastAPI application factory."""

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatgate import __version__
from chatgate.utils.env_utils import parse_bool_env
from .middleware import add_middleware, register_exception_handlers
from .routers import (
    admin_router,
    cron_router,
    health_router,
    plans_router,
    usage_router,
)

logger = logging.getLogger(__name__)

# =============================================================================
# OpenAPI Configuration
# =============================================================================

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Service health checks",
    },
    {
        "name": "Usage",
        "description": "Daily interaction quota: check, increment and read today's usage",
    },
    {
        "name": "Plans",
        "description": "Purchasable subscription plans",
    },
    {
        "name": "Admin",
        "description": "Admin console login, logout and session probe",
    },
    {
        "name": "Cron",
        "description": "Scheduled maintenance jobs",
    },
]

API_DESCRIPTION = """
Access and usage admission control for the chat application.

## Authentication
Usage endpoints accept `Authorization: Bearer <token>` or the identity
provider's credential cookies. Admin endpoints use the `admin_session` cookie.

## Quotas
Each identity gets a daily interaction limit from its plan or trial.
`-1` means unrestricted. Counters reset at midnight in `USAGE_TIMEZONE`.

## Errors
All errors return `success`, `error` (machine code), `message`, `retryable`
and `request_id`.
"""


# Background cleanup task reference
_cleanup_task: Optional[asyncio.Task] = None


async def _periodic_retention_cleanup(interval_seconds: int):
    """Background task that purges stale admin sessions and idempotency keys."""
    from chatgate.core.admin import get_admin_session_manager
    from chatgate.core.usage import get_usage_ledger

    while True:
        try:
            await asyncio.sleep(interval_seconds)
            result = await get_admin_session_manager().cleanup()
            keys = await get_usage_ledger().prune_idempotency_keys()
            logger.debug(
                f"Periodic cleanup removed {result.removed} admin sessions, {keys} idempotency keys"
            )
        except asyncio.CancelledError:
            logger.info("Periodic cleanup task cancelled")
            break
        except Exception as e:
            logger.error(f"Unexpected error in periodic cleanup: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    global _cleanup_task

    logger.info("Starting chatgate API...")

    try:
        from chatgate.db.connection import db
        if await db.get_engine_async() is None:
            logger.warning("DATABASE_ENABLED=false: usage and admin endpoints will fail")
        else:
            logger.info("Ledger store engine initialized")
    except Exception as e:
        logger.warning(f"Ledger store initialization deferred: {e}")

    from chatgate.core.admin import get_admin_config
    interval = get_admin_config().admin_session_cleanup_interval_seconds
    if interval > 0:
        _cleanup_task = asyncio.create_task(_periodic_retention_cleanup(interval))
        logger.info(f"Started admin session cleanup task (every {interval}s)")

    yield

    # Shutdown - order matters: cleanup task, provider client, then database
    logger.info("Shutting down chatgate API...")

    if _cleanup_task:
        _cleanup_task.cancel()
        try:
            await _cleanup_task
        except asyncio.CancelledError:
            pass
        _cleanup_task = None
        logger.info("Periodic cleanup task stopped")

    try:
        from chatgate.core.auth import close_identity_client
        await close_identity_client()
    except Exception as e:
        logger.warning(f"Identity client shutdown error: {e}")

    try:
        from chatgate.db.connection import db
        await db.close_all()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Database cleanup error: {e}")

    logger.info("Shutdown complete")


def _parse_cors_origins(raw: str) -> list:
    """CORS_ORIGINS as a JSON list or a comma-separated string."""
    try:
        origins = json.loads(raw)
        if isinstance(origins, list):
            return [str(o) for o in origins]
    except ValueError:
        pass
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    api_prefix = os.getenv("API_PREFIX", "/api").rstrip("/")
    debug = parse_bool_env("DEBUG", False)

    app = FastAPI(
        title="chatgate",
        description=API_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        debug=debug,
    )

    origins = _parse_cors_origins(os.getenv("CORS_ORIGINS", '["*"]'))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom middleware (logging, error handling)
    add_middleware(app)

    # Register custom exception handlers
    register_exception_handlers(app)

    app.include_router(health_router, tags=["Health"])

    app.include_router(
        usage_router,
        prefix=f"{api_prefix}/user-subscription",
        tags=["Usage"],
    )

    app.include_router(
        plans_router,
        prefix=f"{api_prefix}/subscription",
        tags=["Plans"],
    )

    app.include_router(
        admin_router,
        prefix=f"{api_prefix}/admin",
        tags=["Admin"],
    )

    app.include_router(
        cron_router,
        prefix=f"{api_prefix}/cron",
        tags=["Cron"],
    )

    return app
