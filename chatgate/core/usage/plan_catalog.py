"""
Plan catalog with in-memory caching.

The catalog is read-only here. ``list_available_plans`` is the consumer-side
filter: entries without a price reference are not offered for purchase.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Protocol, Tuple

from chatgate.db.repositories import SubscriptionRepository
from .config import get_usage_config
from .schemas import PlanDefinition

logger = logging.getLogger(__name__)


class PlanCatalog(Protocol):
    """Source of plan definitions."""

    async def get_plan(self, plan_type: str) -> Optional[PlanDefinition]: ...

    async def list_plans(self) -> List[PlanDefinition]: ...


class DatabasePlanCatalog:
    """
    Plan catalog backed by ``subscription_plans`` with a TTL cache.

    Plans change rarely, so lookups are cached for ``cache_ttl_seconds``
    to avoid a query on every increment.
    """

    _ALL_KEY = "__all__"

    def __init__(
        self,
        repository: Optional[SubscriptionRepository] = None,
        cache_ttl_seconds: Optional[int] = None,
    ):
        self._repository = repository or SubscriptionRepository()
        self._cache_ttl = (
            cache_ttl_seconds
            if cache_ttl_seconds is not None
            else get_usage_config().plan_cache_ttl_seconds
        )
        self._cache: Dict[str, Tuple[object, float]] = {}  # key -> (value, timestamp)
        self._lock = asyncio.Lock()

    def _cached(self, key: str):
        entry = self._cache.get(key)
        if entry is None:
            return False, None
        value, timestamp = entry
        if (time.monotonic() - timestamp) >= self._cache_ttl:
            return False, None
        return True, value

    def _store(self, key: str, value: object) -> None:
        if self._cache_ttl > 0:
            self._cache[key] = (value, time.monotonic())

    @staticmethod
    def _to_definition(model) -> PlanDefinition:
        return PlanDefinition(
            plan_type=model.plan_type,
            display_name=model.display_name,
            daily_interactions_limit=model.daily_interactions_limit,
            price_reference=model.price_reference,
            price_cents=model.price_cents,
            currency=model.currency,
            sort_order=model.sort_order,
        )

    async def get_plan(self, plan_type: str) -> Optional[PlanDefinition]:
        """Get one active plan by type (cached)."""
        hit, value = self._cached(plan_type)
        if hit:
            return value

        async with self._lock:
            hit, value = self._cached(plan_type)
            if hit:
                return value

            model = await self._repository.get_plan(plan_type)
            plan = self._to_definition(model) if model is not None and model.active else None
            self._store(plan_type, plan)
            return plan

    async def list_plans(self) -> List[PlanDefinition]:
        """List all active plans ordered by ``sort_order`` (cached)."""
        hit, value = self._cached(self._ALL_KEY)
        if hit:
            return list(value)

        async with self._lock:
            hit, value = self._cached(self._ALL_KEY)
            if hit:
                return list(value)

            plans = [self._to_definition(m) for m in await self._repository.list_plans()]
            self._store(self._ALL_KEY, plans)
            logger.debug(f"Loaded {len(plans)} plans from catalog")
            return list(plans)

    def invalidate(self) -> None:
        """Drop all cached plans."""
        self._cache.clear()


async def list_available_plans(catalog: PlanCatalog) -> List[PlanDefinition]:
    """Plans that can be purchased: those carrying a price reference."""
    plans = await catalog.list_plans()
    return [plan for plan in plans if plan.price_reference]


# Singleton instance
_catalog: Optional[DatabasePlanCatalog] = None


def get_plan_catalog() -> DatabasePlanCatalog:
    """Get the plan catalog singleton."""
    global _catalog
    if _catalog is None:
        _catalog = DatabasePlanCatalog()
    return _catalog


def reset_plan_catalog() -> None:
    """Reset the catalog singleton (for testing)."""
    global _catalog
    _catalog = None
