"""API routers."""

from .health import router as health_router
from .usage import router as usage_router
from .plans import router as plans_router
from .admin import router as admin_router
from .cron import router as cron_router

__all__ = [
    "health_router",
    "usage_router",
    "plans_router",
    "admin_router",
    "cron_router",
]
