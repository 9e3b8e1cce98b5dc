"""
Pydantic schemas for usage metering.

Provides data models for subscription state, plan definitions, effective
limits and the results of ledger operations.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from chatgate.constants import UNLIMITED_DAILY_LIMIT


class PlanDefinition(BaseModel):
    """A plan as published by the plan catalog."""
    plan_type: str
    display_name: str
    daily_interactions_limit: int  # -1 = unrestricted
    price_reference: Optional[str] = None
    price_cents: int = 0
    currency: str = "usd"
    sort_order: int = 0

    @property
    def is_unlimited(self) -> bool:
        return self.daily_interactions_limit == UNLIMITED_DAILY_LIMIT


class SubscriptionState(BaseModel):
    """Billing state for one identity, as read by the ledger."""
    user_id: str
    plan_type: Optional[str] = None
    status: str = "inactive"
    trial_ends_at: Optional[datetime] = None
    current_period_end: Optional[datetime] = None

    def is_trialing(self, now: datetime) -> bool:
        """True while ``now`` is before the trial end."""
        return self.trial_ends_at is not None and now < self.trial_ends_at


class EffectiveLimit(BaseModel):
    """Today's limit and where it came from."""
    daily_limit: int
    plan_type: Optional[str] = None
    is_trial_override: bool = False
    reason: Optional[str] = None  # set when the identity has no access

    @property
    def is_unlimited(self) -> bool:
        return self.daily_limit == UNLIMITED_DAILY_LIMIT

    def allows(self, used: int) -> bool:
        if self.is_unlimited:
            return True
        return used < self.daily_limit

    def remaining(self, used: int) -> int:
        if self.is_unlimited:
            return UNLIMITED_DAILY_LIMIT
        return max(0, self.daily_limit - used)


class QuotaStatus(BaseModel):
    """Result of a quota check."""
    allowed: bool
    daily_limit: int
    used: int
    remaining: int
    plan_type: Optional[str] = None
    is_trial_override: bool = False
    usage_date: date
    resets_at: datetime
    reason: Optional[str] = None


class IncrementResult(BaseModel):
    """Result of a successful increment."""
    user_id: str
    interactions_used: int = Field(..., description="Count after this increment")
    daily_limit: int
    remaining: int
    usage_date: date
    resets_at: datetime
    replayed: bool = False


class DailyUsage(BaseModel):
    """Today's usage for display."""
    count: int
    limit: int
    resets_at: datetime
    usage_date: date
    plan_type: Optional[str] = None
    is_trial_override: bool = False

