"""
Usage metering module.

Provides:
- UsageLedger: daily interaction counters with plan/trial-aware limits
- DatabasePlanCatalog: cached plan definitions
- resolve_effective_limit: plan vs. trial limit resolution
"""

from .config import UsageConfig, get_usage_config, reset_usage_config
from .ledger import UsageLedger, get_usage_ledger, reset_usage_ledger
from .limits import NO_ACTIVE_PLAN, more_generous, resolve_effective_limit
from .plan_catalog import (
    DatabasePlanCatalog,
    PlanCatalog,
    get_plan_catalog,
    list_available_plans,
    reset_plan_catalog,
)
from .schemas import (
    DailyUsage,
    EffectiveLimit,
    IncrementResult,
    PlanDefinition,
    QuotaStatus,
    SubscriptionState,
)

__all__ = [
    "UsageConfig",
    "get_usage_config",
    "reset_usage_config",
    "UsageLedger",
    "get_usage_ledger",
    "reset_usage_ledger",
    "NO_ACTIVE_PLAN",
    "more_generous",
    "resolve_effective_limit",
    "DatabasePlanCatalog",
    "PlanCatalog",
    "get_plan_catalog",
    "list_available_plans",
    "reset_plan_catalog",
    "DailyUsage",
    "EffectiveLimit",
    "IncrementResult",
    "PlanDefinition",
    "QuotaStatus",
    "SubscriptionState",
]
