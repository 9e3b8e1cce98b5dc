"""
SQLAlchemy models for admission control state.

Tables:
- subscription_plans: Plan catalog (limits and price references)
- user_subscriptions: Per-identity plan and trial state
- daily_interaction_usage: One counter row per (identity, day)
- usage_idempotency_keys: Replay protection for increments
- admin_sessions: Privileged sessions, stored by token hash

All timestamps are naive UTC.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from chatgate.constants import ADMIN_IP_MAX_LENGTH, ADMIN_USER_AGENT_MAX_LENGTH
from chatgate.utils.time_utils import utc_now


class Base(DeclarativeBase):
    """Declarative base for all chatgate tables."""


class SubscriptionPlanModel(Base):
    __tablename__ = "subscription_plans"

    plan_type: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # -1 means unrestricted
    daily_interactions_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class UserSubscriptionModel(Base):
    __tablename__ = "user_subscriptions"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    plan_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="inactive")
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    current_period_end: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )


class DailyUsageModel(Base):
    __tablename__ = "daily_interaction_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_daily_usage_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    interactions_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_trial_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)


class UsageIdempotencyKeyModel(Base):
    __tablename__ = "usage_idempotency_keys"
    __table_args__ = (
        Index("ix_usage_idempotency_user_date", "user_id", "usage_date"),
    )

    idempotency_key: Mapped[str] = mapped_column(String(300), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    interactions_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)


class AdminSessionModel(Base):
    __tablename__ = "admin_sessions"
    __table_args__ = (
        Index("ix_admin_sessions_expires_at", "expires_at"),
    )

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(ADMIN_USER_AGENT_MAX_LENGTH), nullable=True)
    ip: Mapped[Optional[str]] = mapped_column(String(ADMIN_IP_MAX_LENGTH), nullable=True)


__all__ = [
    "Base",
    "SubscriptionPlanModel",
    "UserSubscriptionModel",
    "DailyUsageModel",
    "UsageIdempotencyKeyModel",
    "AdminSessionModel",
]
