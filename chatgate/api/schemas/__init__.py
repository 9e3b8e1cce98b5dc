"""API request and response schemas."""

from .common import ErrorResponse, HealthStatus, HealthStatusEnum, SuccessResponse
from .usage import (
    IncrementResponse,
    LimitResponse,
    PlanItem,
    PlansResponse,
    QuotaResponse,
    UsageResponse,
)
from .admin import AdminLoginRequest, AdminSessionStatus, CleanupResponse, KeyPruneResponse

__all__ = [
    "ErrorResponse",
    "HealthStatus",
    "HealthStatusEnum",
    "SuccessResponse",
    "IncrementResponse",
    "LimitResponse",
    "PlanItem",
    "PlansResponse",
    "QuotaResponse",
    "UsageResponse",
    "AdminLoginRequest",
    "AdminSessionStatus",
    "CleanupResponse",
    "KeyPruneResponse",
]
