"""
Database package for chatgate.

Provides:
- SQLAlchemy 2.0 async ORM models
- Connection management (PostgreSQL via asyncpg, SQLite via aiosqlite)
- Repository layer for usage, subscriptions and admin sessions
"""

from .connection import DatabaseConfig, DatabaseManager, db
from .models import (
    Base,
    SubscriptionPlanModel,
    UserSubscriptionModel,
    DailyUsageModel,
    UsageIdempotencyKeyModel,
    AdminSessionModel,
)

__all__ = [
    # Connection management
    "DatabaseConfig",
    "DatabaseManager",
    "db",
    # Models
    "Base",
    "SubscriptionPlanModel",
    "UserSubscriptionModel",
    "DailyUsageModel",
    "UsageIdempotencyKeyModel",
    "AdminSessionModel",
]
