"""Health check API endpoint."""

import logging
from typing import Dict, Any

from fastapi import APIRouter

from chatgate import __version__
from chatgate.db.connection import db
from chatgate.utils.time_utils import utc_now
from ..schemas.common import HealthStatus, HealthStatusEnum

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/health",
    response_model=HealthStatus,
    operation_id="getHealth",
    summary="Check service health",
)
async def health_check():
    """
    Check the health of service components.

    **No authentication required.**

    Returns status of:
    - Database connection
    """
    components: Dict[str, Dict[str, Any]] = {}

    if not db.config.enabled:
        components["database"] = {"status": "disabled", "message": "Database disabled"}
    elif await db.test_connection(timeout=5.0):
        components["database"] = {"status": "healthy", "message": "Connected"}
    else:
        components["database"] = {"status": "unhealthy", "message": "Connection failed"}

    unhealthy = any(c.get("status") == "unhealthy" for c in components.values())

    return HealthStatus(
        status=HealthStatusEnum.unhealthy if unhealthy else HealthStatusEnum.healthy,
        version=__version__,
        timestamp=utc_now(),
        components=components,
    )
