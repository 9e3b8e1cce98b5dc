"""Tests for the plan catalog."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chatgate.core.usage import DatabasePlanCatalog, list_available_plans


def _plan_row(plan_type, limit=10, price=None, active=True, sort_order=0):
    row = MagicMock()
    row.plan_type = plan_type
    row.display_name = plan_type.title()
    row.daily_interactions_limit = limit
    row.price_reference = price
    row.price_cents = 0
    row.currency = "usd"
    row.active = active
    row.sort_order = sort_order
    return row


class TestDatabasePlanCatalog:
    """Tests against a real SQLite catalog."""

    @pytest.mark.asyncio
    async def test_get_plan(self, plan_catalog, basic_plan):
        plan = await plan_catalog.get_plan(basic_plan)

        assert plan.plan_type == "basic"
        assert plan.daily_interactions_limit == 10
        assert plan.price_reference == "price_basic"

    @pytest.mark.asyncio
    async def test_unknown_plan(self, plan_catalog):
        assert await plan_catalog.get_plan("missing") is None

    @pytest.mark.asyncio
    async def test_inactive_plan_hidden(self, plan_catalog, subscription_repository):
        await subscription_repository.upsert_plan(
            plan_type="legacy", display_name="Legacy", daily_interactions_limit=50, active=False
        )

        assert await plan_catalog.get_plan("legacy") is None
        assert [p.plan_type for p in await plan_catalog.list_plans()] == []

    @pytest.mark.asyncio
    async def test_list_plans_sorted(self, plan_catalog, subscription_repository):
        await subscription_repository.upsert_plan("pro", "Pro", 100, "price_pro", sort_order=2)
        await subscription_repository.upsert_plan("free", "Free", 5, None, sort_order=0)
        await subscription_repository.upsert_plan("plus", "Plus", 50, "price_plus", sort_order=1)

        plans = await plan_catalog.list_plans()

        assert [p.plan_type for p in plans] == ["free", "plus", "pro"]

    @pytest.mark.asyncio
    async def test_available_plans_need_price(self, plan_catalog, subscription_repository):
        await subscription_repository.upsert_plan("free", "Free", 5, None)
        await subscription_repository.upsert_plan("pro", "Pro", 100, "price_pro")
        await subscription_repository.upsert_plan("blank", "Blank", 100, "")

        plans = await list_available_plans(plan_catalog)

        assert [p.plan_type for p in plans] == ["pro"]

    @pytest.mark.asyncio
    async def test_upsert_updates_limit(self, plan_catalog, subscription_repository, basic_plan):
        await subscription_repository.upsert_plan(basic_plan, "Basic", 20, "price_basic")

        plan = await plan_catalog.get_plan(basic_plan)
        assert plan.daily_interactions_limit == 20


class TestPlanCaching:
    """Cache behaviour with a mocked repository."""

    @pytest.mark.asyncio
    async def test_get_plan_cached(self):
        repository = MagicMock()
        repository.get_plan = AsyncMock(return_value=_plan_row("basic"))
        catalog = DatabasePlanCatalog(repository, cache_ttl_seconds=300)

        await catalog.get_plan("basic")
        await catalog.get_plan("basic")

        assert repository.get_plan.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_plan_cached(self):
        repository = MagicMock()
        repository.get_plan = AsyncMock(return_value=None)
        catalog = DatabasePlanCatalog(repository, cache_ttl_seconds=300)

        assert await catalog.get_plan("missing") is None
        assert await catalog.get_plan("missing") is None
        assert repository.get_plan.await_count == 1

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self):
        repository = MagicMock()
        repository.list_plans = AsyncMock(return_value=[_plan_row("basic")])
        catalog = DatabasePlanCatalog(repository, cache_ttl_seconds=0)

        await catalog.list_plans()
        await catalog.list_plans()

        assert repository.list_plans.await_count == 2

    @pytest.mark.asyncio
    async def test_invalidate(self):
        repository = MagicMock()
        repository.list_plans = AsyncMock(return_value=[_plan_row("basic")])
        catalog = DatabasePlanCatalog(repository, cache_ttl_seconds=300)

        await catalog.list_plans()
        catalog.invalidate()
        await catalog.list_plans()

        assert repository.list_plans.await_count == 2

    @pytest.mark.asyncio
    async def test_cached_list_is_a_copy(self):
        repository = MagicMock()
        repository.list_plans = AsyncMock(return_value=[_plan_row("basic")])
        catalog = DatabasePlanCatalog(repository, cache_ttl_seconds=300)

        first = await catalog.list_plans()
        first.clear()

        assert len(await catalog.list_plans()) == 1
