"""Request/response models for admin endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    """Shared-secret login."""
    password: Optional[str] = Field(None, description="Admin password")


class AdminSessionStatus(BaseModel):
    """Whether the caller holds a valid admin session."""
    authenticated: bool


class CleanupResponse(BaseModel):
    """Result of the admin session cleanup job."""
    ok: bool = True
    removed: int = 0
    fallback: bool = False


class KeyPruneResponse(BaseModel):
    """Result of the idempotency key retention job."""
    ok: bool = True
    removed: int = 0
