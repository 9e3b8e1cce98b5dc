"""Common schema models shared across API endpoints."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field


class HealthStatusEnum(str, Enum):
    """Health status values for service components."""
    healthy = "healthy"
    unhealthy = "unhealthy"
    degraded = "degraded"


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = Field(default=False, examples=[False])
    error: str = Field(..., examples=["quota_exceeded"])
    message: Optional[str] = Field(default=None, examples=["Daily interaction limit reached. Used: 10 / 10"])
    retryable: bool = Field(default=False)
    request_id: Optional[str] = Field(default=None, examples=["a1b2c3d4"])


class SuccessResponse(BaseModel):
    """Standard success response."""
    success: bool = True
    message: Optional[str] = None


class HealthStatus(BaseModel):
    """Service health status."""
    status: HealthStatusEnum = Field(default=HealthStatusEnum.healthy, examples=["healthy"])
    version: str
    timestamp: datetime
    components: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
