"""
Repository layer for database operations.

Provides:
- usage_repository: Atomic daily interaction counters and idempotency keys
- subscription_repository: Subscription state and plan catalog
- admin_session_repository: Admin session storage and retention cleanup
"""

from .usage_repository import UsageRepository, UsageSnapshot, IncrementOutcome
from .subscription_repository import SubscriptionRepository
from .admin_session_repository import AdminSessionRepository

__all__ = [
    "UsageRepository",
    "UsageSnapshot",
    "IncrementOutcome",
    "SubscriptionRepository",
    "AdminSessionRepository",
]
