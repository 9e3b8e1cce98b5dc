"""
Subscription and plan catalog repository.

Read-only from the admission core's point of view; the write helpers exist
for seeding scripts and tests.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from chatgate.utils.time_utils import utc_now
from ..connection import DatabaseManager, db
from ..models import SubscriptionPlanModel, UserSubscriptionModel
from ..utils import dialect_insert, with_db_retry

logger = logging.getLogger(__name__)


class SubscriptionRepository:
    """Storage access for subscriptions and plans."""

    def __init__(self, database: Optional[DatabaseManager] = None):
        self._db = database or db

    @with_db_retry
    async def get_subscription(self, user_id: str) -> Optional[UserSubscriptionModel]:
        async with self._db.session() as session:
            result = await session.execute(
                select(UserSubscriptionModel).where(UserSubscriptionModel.user_id == user_id)
            )
            return result.scalar_one_or_none()

    @with_db_retry
    async def get_plan(self, plan_type: str) -> Optional[SubscriptionPlanModel]:
        async with self._db.session() as session:
            result = await session.execute(
                select(SubscriptionPlanModel).where(SubscriptionPlanModel.plan_type == plan_type)
            )
            return result.scalar_one_or_none()

    @with_db_retry
    async def list_plans(self, active_only: bool = True) -> List[SubscriptionPlanModel]:
        """List plans ordered by ``sort_order``."""
        async with self._db.session() as session:
            stmt = select(SubscriptionPlanModel)
            if active_only:
                stmt = stmt.where(SubscriptionPlanModel.active.is_(True))
            stmt = stmt.order_by(SubscriptionPlanModel.sort_order, SubscriptionPlanModel.plan_type)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @with_db_retry
    async def upsert_plan(
        self,
        plan_type: str,
        display_name: str,
        daily_interactions_limit: int,
        price_reference: Optional[str] = None,
        price_cents: int = 0,
        currency: str = "usd",
        active: bool = True,
        sort_order: int = 0,
    ) -> None:
        """Insert or update a plan definition."""
        values = dict(
            plan_type=plan_type,
            display_name=display_name,
            daily_interactions_limit=daily_interactions_limit,
            price_reference=price_reference,
            price_cents=price_cents,
            currency=currency,
            active=active,
            sort_order=sort_order,
        )
        async with self._db.session() as session:
            stmt = dialect_insert(session.bind.dialect.name, SubscriptionPlanModel).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=["plan_type"],
                set_={k: v for k, v in values.items() if k != "plan_type"},
            )
            await session.execute(stmt)
        logger.info(f"Upserted plan {plan_type} (limit={daily_interactions_limit})")

    @with_db_retry
    async def upsert_subscription(
        self,
        user_id: str,
        plan_type: Optional[str],
        status: str,
        trial_ends_at: Optional[datetime] = None,
        current_period_end: Optional[datetime] = None,
    ) -> None:
        """Insert or update an identity's subscription state."""
        now = utc_now()
        async with self._db.session() as session:
            stmt = dialect_insert(session.bind.dialect.name, UserSubscriptionModel).values(
                user_id=user_id,
                plan_type=plan_type,
                status=status,
                trial_ends_at=trial_ends_at,
                current_period_end=current_period_end,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id"],
                set_={
                    "plan_type": plan_type,
                    "status": status,
                    "trial_ends_at": trial_ends_at,
                    "current_period_end": current_period_end,
                    "updated_at": now,
                },
            )
            await session.execute(stmt)
