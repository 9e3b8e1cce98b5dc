"""
Usage ledger: per-identity, per-day interaction counters.

Three operations, each evaluated against a single timestamp taken when the
operation starts:

- ``check_quota``: read-only; an absent counter counts as zero
- ``increment_usage``: one conditional upsert, never exceeds the limit
- ``get_daily_usage``: read-only, for display

Idempotency keys are scoped to one usage day; ``prune_idempotency_keys``
deletes the keys of earlier days.

Counters are created only by ``increment_usage``. A new day has no row yet,
so every day starts from zero.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from chatgate.constants import IDEMPOTENCY_KEY_MAX_LENGTH
from chatgate.core.exceptions import (
    QuotaExceededError,
    SubscriptionNotFoundError,
    TransientStorageError,
)
from chatgate.db.repositories import SubscriptionRepository, UsageRepository
from chatgate.utils.time_utils import Clock, as_naive_utc, next_reset_at, usage_day, utc_now
from .config import UsageConfig, get_usage_config
from .limits import resolve_effective_limit
from .plan_catalog import PlanCatalog, get_plan_catalog
from .schemas import (
    DailyUsage,
    EffectiveLimit,
    IncrementResult,
    QuotaStatus,
    SubscriptionState,
)

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


@asynccontextmanager
async def storage_call(operation: str):
    """Translate storage failures (after retries) into TransientStorageError."""
    try:
        yield
    except STORAGE_ERRORS as e:
        logger.error(f"Storage failure during {operation}: {type(e).__name__}: {e}")
        raise TransientStorageError(operation, cause=e) from e


class UsageLedger:
    """
    Plan-aware daily interaction counter.

    All durable state lives in storage; the ledger holds no per-identity
    state, so any number of instances and processes can share a database.
    """

    def __init__(
        self,
        usage_repository: Optional[UsageRepository] = None,
        subscription_repository: Optional[SubscriptionRepository] = None,
        plan_catalog: Optional[PlanCatalog] = None,
        config: Optional[UsageConfig] = None,
        clock: Clock = utc_now,
    ):
        self.usage = usage_repository or UsageRepository()
        self.subscriptions = subscription_repository or SubscriptionRepository()
        self.plans = plan_catalog or get_plan_catalog()
        self.config = config or get_usage_config()
        self._clock = clock

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_naive_utc(now) if now is not None else self._clock()

    async def _effective_limit(self, user_id: str, now: datetime) -> EffectiveLimit:
        async with storage_call("read_subscription"):
            record = await self.subscriptions.get_subscription(user_id)
            if record is None:
                raise SubscriptionNotFoundError(user_id)

            state = SubscriptionState(
                user_id=record.user_id,
                plan_type=record.plan_type,
                status=record.status,
                trial_ends_at=record.trial_ends_at,
                current_period_end=record.current_period_end,
            )
            plan = await self.plans.get_plan(state.plan_type) if state.plan_type else None

        return resolve_effective_limit(state, plan, self.config.trial_daily_limit, now)

    async def _used_today(self, user_id: str, day) -> int:
        async with storage_call("read_usage"):
            snapshot = await self.usage.get_usage(user_id, day)
        return snapshot.interactions_used if snapshot else 0

    async def check_quota(self, user_id: str, now: Optional[datetime] = None) -> QuotaStatus:
        """
        Report whether ``user_id`` may interact now. Does not mutate anything.

        Raises:
            SubscriptionNotFoundError: No subscription record
            TransientStorageError: Storage unreachable
        """
        now = self._now(now)
        tz = self.config.tz
        day = usage_day(now, tz)

        limit = await self._effective_limit(user_id, now)
        used = await self._used_today(user_id, day)
        allowed = limit.allows(used)

        reason = limit.reason
        if not allowed and reason is None:
            reason = "daily_limit_reached"

        return QuotaStatus(
            allowed=allowed,
            daily_limit=limit.daily_limit,
            used=used,
            remaining=limit.remaining(used),
            plan_type=limit.plan_type,
            is_trial_override=limit.is_trial_override,
            usage_date=day,
            resets_at=next_reset_at(day, tz),
            reason=reason,
        )

    async def increment_usage(
        self,
        user_id: str,
        idempotency_key: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> IncrementResult:
        """
        Record one interaction for ``user_id``.

        Args:
            user_id: Identity to charge
            idempotency_key: Client key; a repeated key returns the first
                result without charging again
            now: Operation timestamp (defaults to the clock)

        Raises:
            QuotaExceededError: Limit already reached (or no active plan)
            SubscriptionNotFoundError: No subscription record
            TransientStorageError: Storage unreachable
            ValueError: Idempotency key too long
        """
        now = self._now(now)
        tz = self.config.tz
        day = usage_day(now, tz)
        resets_at = next_reset_at(day, tz)

        key = None
        if idempotency_key is not None and idempotency_key.strip():
            key = idempotency_key.strip()
            if len(key) > IDEMPOTENCY_KEY_MAX_LENGTH:
                raise ValueError(
                    f"Idempotency key exceeds {IDEMPOTENCY_KEY_MAX_LENGTH} characters"
                )
            # Keys only replay within the usage day they were first seen
            key = f"{user_id}:{day.isoformat()}:{key}"

        limit = await self._effective_limit(user_id, now)

        if limit.daily_limit == 0:
            used = await self._used_today(user_id, day)
            logger.info(
                f"Increment denied for user={user_id}: "
                f"{limit.reason or 'daily_limit_reached'} (limit=0)"
            )
            raise QuotaExceededError(
                user_id=user_id,
                daily_limit=0,
                used=used,
                resets_at=resets_at,
                reason=limit.reason or "daily_limit_reached",
            )

        async with storage_call("increment_usage"):
            outcome = await self.usage.increment(
                user_id=user_id,
                usage_date=day,
                daily_limit=limit.daily_limit,
                is_trial_override=limit.is_trial_override,
                now=now,
                idempotency_key=key,
            )

        if not outcome.applied:
            logger.info(
                f"Increment denied for user={user_id}: "
                f"used={outcome.interactions_used} limit={limit.daily_limit}"
            )
            raise QuotaExceededError(
                user_id=user_id,
                daily_limit=limit.daily_limit,
                used=outcome.interactions_used,
                resets_at=resets_at,
            )

        logger.debug(
            f"Increment for user={user_id}: {outcome.interactions_used}/{limit.daily_limit}"
        )
        return IncrementResult(
            user_id=user_id,
            interactions_used=outcome.interactions_used,
            daily_limit=limit.daily_limit,
            remaining=limit.remaining(outcome.interactions_used),
            usage_date=day,
            resets_at=resets_at,
            replayed=outcome.replayed,
        )

    async def get_daily_usage(self, user_id: str, now: Optional[datetime] = None) -> DailyUsage:
        """
        Today's count and limit for display. Pure read; creates no record.

        Raises:
            SubscriptionNotFoundError: No subscription record
            TransientStorageError: Storage unreachable
        """
        now = self._now(now)
        tz = self.config.tz
        day = usage_day(now, tz)

        limit = await self._effective_limit(user_id, now)
        used = await self._used_today(user_id, day)

        return DailyUsage(
            count=used,
            limit=limit.daily_limit,
            resets_at=next_reset_at(day, tz),
            usage_date=day,
            plan_type=limit.plan_type,
            is_trial_override=limit.is_trial_override,
        )

    async def prune_idempotency_keys(self, now: Optional[datetime] = None) -> int:
        """
        Delete replay keys from previous usage days.

        Keys are scoped to their day, so older ones can never match again.
        """
        day = usage_day(self._now(now), self.config.tz)
        async with storage_call("prune_idempotency_keys"):
            return await self.usage.delete_idempotency_keys_before(day)


# Singleton instance
_ledger: Optional[UsageLedger] = None


def get_usage_ledger() -> UsageLedger:
    """Get the usage ledger singleton."""
    global _ledger
    if _ledger is None:
        _ledger = UsageLedger()
    return _ledger


def reset_usage_ledger() -> None:
    """Reset the ledger singleton (for testing)."""
    global _ledger
    _ledger = None
