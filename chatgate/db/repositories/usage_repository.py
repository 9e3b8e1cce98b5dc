"""
Daily interaction usage repository.

The only writer of ``daily_interaction_usage``. Increments are a single
conditional upsert, so the limit comparison and the increment happen in one
statement under the row lock:

    INSERT ... ON CONFLICT (user_id, usage_date)
    DO UPDATE SET interactions_used = interactions_used + 1
    WHERE interactions_used < :limit
    RETURNING interactions_used

No returned row means the cap was already reached.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import delete, select, update

from chatgate.constants import UNLIMITED_DAILY_LIMIT
from ..connection import DatabaseManager, db
from ..models import DailyUsageModel, UsageIdempotencyKeyModel
from ..utils import dialect_insert, with_db_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageSnapshot:
    """Read-only copy of one usage row."""

    user_id: str
    usage_date: date
    interactions_used: int
    daily_limit: int
    is_trial_override: bool


@dataclass(frozen=True)
class IncrementOutcome:
    """Result of a conditional increment.

    ``applied`` is False when the cap was reached; ``interactions_used`` is
    then the count that blocked it. ``replayed`` marks an idempotency key
    seen before, in which case the stored count is returned unchanged.
    """

    applied: bool
    interactions_used: int
    replayed: bool = False


class UsageRepository:
    """Storage access for per-identity daily counters."""

    def __init__(self, database: Optional[DatabaseManager] = None):
        self._db = database or db

    @with_db_retry
    async def get_usage(self, user_id: str, usage_date: date) -> Optional[UsageSnapshot]:
        """Return the usage row for ``(user_id, usage_date)`` or None. Never writes."""
        async with self._db.session() as session:
            stmt = select(DailyUsageModel).where(
                DailyUsageModel.user_id == user_id,
                DailyUsageModel.usage_date == usage_date,
            )
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return UsageSnapshot(
                user_id=row.user_id,
                usage_date=row.usage_date,
                interactions_used=row.interactions_used,
                daily_limit=row.daily_limit,
                is_trial_override=row.is_trial_override,
            )

    @with_db_retry
    async def increment(
        self,
        user_id: str,
        usage_date: date,
        daily_limit: int,
        is_trial_override: bool,
        now: datetime,
        idempotency_key: Optional[str] = None,
    ) -> IncrementOutcome:
        """
        Atomically add one interaction unless the cap is reached.

        Args:
            user_id: Identity to charge
            usage_date: Usage day the interaction belongs to
            daily_limit: Effective limit for the day (-1 = unrestricted, must not be 0)
            is_trial_override: Whether the limit came from a trial
            now: Operation timestamp (naive UTC)
            idempotency_key: Optional replay-protection key, already namespaced
                by user and usage day

        Returns:
            IncrementOutcome
        """
        async with self._db.session() as session:
            dialect = session.bind.dialect.name

            if idempotency_key:
                claim = (
                    dialect_insert(dialect, UsageIdempotencyKeyModel)
                    .values(
                        idempotency_key=idempotency_key,
                        user_id=user_id,
                        usage_date=usage_date,
                        interactions_used=0,
                        created_at=now,
                    )
                    .on_conflict_do_nothing(index_elements=["idempotency_key"])
                    .returning(UsageIdempotencyKeyModel.idempotency_key)
                )
                claimed = (await session.execute(claim)).scalar_one_or_none()
                if claimed is None:
                    stored = await session.execute(
                        select(UsageIdempotencyKeyModel.interactions_used).where(
                            UsageIdempotencyKeyModel.idempotency_key == idempotency_key
                        )
                    )
                    count = stored.scalar_one()
                    logger.info(f"Replayed increment for user={user_id} count={count}")
                    return IncrementOutcome(applied=True, interactions_used=count, replayed=True)

            stmt = dialect_insert(dialect, DailyUsageModel).values(
                user_id=user_id,
                usage_date=usage_date,
                interactions_used=1,
                daily_limit=daily_limit,
                is_trial_override=is_trial_override,
                created_at=now,
                updated_at=now,
            )
            cap = None
            if daily_limit != UNLIMITED_DAILY_LIMIT:
                cap = DailyUsageModel.interactions_used < daily_limit
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "usage_date"],
                set_={
                    "interactions_used": DailyUsageModel.interactions_used + 1,
                    "daily_limit": stmt.excluded.daily_limit,
                    "is_trial_override": stmt.excluded.is_trial_override,
                    "updated_at": stmt.excluded.updated_at,
                },
                where=cap,
            ).returning(DailyUsageModel.interactions_used)

            new_count = (await session.execute(stmt)).scalar_one_or_none()

            if new_count is None:
                # Drop the idempotency claim so a later retry can still succeed
                await session.rollback()
                current = await session.execute(
                    select(DailyUsageModel.interactions_used).where(
                        DailyUsageModel.user_id == user_id,
                        DailyUsageModel.usage_date == usage_date,
                    )
                )
                used = current.scalar_one_or_none() or 0
                return IncrementOutcome(applied=False, interactions_used=used)

            if idempotency_key:
                await session.execute(
                    update(UsageIdempotencyKeyModel)
                    .where(UsageIdempotencyKeyModel.idempotency_key == idempotency_key)
                    .values(interactions_used=new_count)
                )

            return IncrementOutcome(applied=True, interactions_used=new_count)

    @with_db_retry
    async def delete_idempotency_keys_before(self, usage_date: date) -> int:
        """Delete replay keys of days before ``usage_date``. Returns rows deleted."""
        async with self._db.session() as session:
            result = await session.execute(
                delete(UsageIdempotencyKeyModel).where(
                    UsageIdempotencyKeyModel.usage_date < usage_date
                )
            )
            removed = result.rowcount or 0
        if removed:
            logger.info(f"Deleted {removed} idempotency keys older than {usage_date}")
        return removed
