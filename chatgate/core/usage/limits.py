"""
Effective daily limit resolution.

Rules:
- ``active`` or ``trialing`` subscription within its period grants the plan's limit
- a running trial grants the configured trial limit
- both: the more generous limit wins (-1 beats any number)
- neither: limit 0 with reason ``no_active_plan``
"""

from datetime import datetime
from typing import Optional

from chatgate.constants import ACTIVE_SUBSCRIPTION_STATUSES, UNLIMITED_DAILY_LIMIT
from .schemas import EffectiveLimit, PlanDefinition, SubscriptionState

NO_ACTIVE_PLAN = "no_active_plan"


def more_generous(a: int, b: int) -> int:
    """The larger of two limits, treating -1 as infinite."""
    if UNLIMITED_DAILY_LIMIT in (a, b):
        return UNLIMITED_DAILY_LIMIT
    return max(a, b)


def has_active_plan(subscription: SubscriptionState, now: datetime) -> bool:
    if subscription.status not in ACTIVE_SUBSCRIPTION_STATUSES:
        return False
    if not subscription.plan_type:
        return False
    if subscription.current_period_end is not None and subscription.current_period_end < now:
        return False
    return True


def resolve_effective_limit(
    subscription: SubscriptionState,
    plan: Optional[PlanDefinition],
    trial_daily_limit: int,
    now: datetime,
) -> EffectiveLimit:
    """
    Resolve today's limit for a subscription.

    Args:
        subscription: The identity's subscription state
        plan: Definition of ``subscription.plan_type`` (None if unknown)
        trial_daily_limit: Limit granted during a trial
        now: Operation timestamp (naive UTC)
    """
    paid_limit = None
    if plan is not None and has_active_plan(subscription, now):
        paid_limit = plan.daily_interactions_limit

    trialing = subscription.is_trialing(now)

    if paid_limit is None and not trialing:
        return EffectiveLimit(
            daily_limit=0,
            plan_type=subscription.plan_type,
            reason=NO_ACTIVE_PLAN,
        )

    if paid_limit is None:
        return EffectiveLimit(
            daily_limit=trial_daily_limit,
            plan_type=subscription.plan_type,
            is_trial_override=True,
        )

    if not trialing:
        return EffectiveLimit(daily_limit=paid_limit, plan_type=subscription.plan_type)

    limit = more_generous(paid_limit, trial_daily_limit)
    return EffectiveLimit(
        daily_limit=limit,
        plan_type=subscription.plan_type,
        is_trial_override=limit != paid_limit,
    )
