"""Request/response models for usage and plan endpoints."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class IncrementResponse(BaseModel):
    """Result of recording one interaction."""
    success: bool = True
    interactions_used: int = Field(..., description="Count for today after this interaction")
    daily_limit: int = Field(..., description="-1 means unrestricted")
    remaining: int = Field(..., description="-1 means unrestricted")
    usage_date: date
    resets_at: datetime
    replayed: bool = Field(False, description="True when the Idempotency-Key was seen before")


class LimitResponse(BaseModel):
    """Today's effective limit."""
    daily_limit: int


class UsageResponse(BaseModel):
    """Today's usage for display."""
    count: int
    limit: int
    resets_at: datetime
    usage_date: date
    plan_type: Optional[str] = None
    is_trial_override: bool = False


class QuotaResponse(BaseModel):
    """Full quota status."""
    allowed: bool
    daily_limit: int
    used: int
    remaining: int
    plan_type: Optional[str] = None
    is_trial_override: bool = False
    usage_date: date
    resets_at: datetime
    reason: Optional[str] = None


class PlanItem(BaseModel):
    """One purchasable plan."""
    type: str
    name: str
    daily_limit: int
    price_id: str
    price_cents: int
    currency: str


class PlansResponse(BaseModel):
    """Purchasable plans."""
    success: bool = True
    plans: List[PlanItem] = Field(default_factory=list)
