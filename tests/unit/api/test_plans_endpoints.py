"""Unit tests for the plan catalog API router."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from chatgate.core.usage import PlanDefinition


@pytest.fixture
def catalog():
    catalog = MagicMock()
    catalog.list_plans = AsyncMock(
        return_value=[
            PlanDefinition(plan_type="free", display_name="Free", daily_interactions_limit=5),
            PlanDefinition(
                plan_type="premium",
                display_name="Premium",
                daily_interactions_limit=1000,
                price_reference="price_premium",
                price_cents=1999,
            ),
            PlanDefinition(
                plan_type="enterprise",
                display_name="Enterprise",
                daily_interactions_limit=-1,
                price_reference="price_enterprise",
                price_cents=9999,
            ),
        ]
    )
    return catalog


@pytest.fixture
def client(catalog):
    from chatgate.api.app import create_app
    from chatgate.api.dependencies import get_catalog

    app = create_app()
    app.dependency_overrides[get_catalog] = lambda: catalog
    return TestClient(app)


class TestListPlans:
    """Tests for GET /api/subscription/plans."""

    def test_only_priced_plans(self, client):
        response = client.get("/api/subscription/plans")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [p["type"] for p in data["plans"]] == ["premium", "enterprise"]

    def test_plan_fields(self, client):
        plan = client.get("/api/subscription/plans").json()["plans"][1]

        assert plan == {
            "type": "enterprise",
            "name": "Enterprise",
            "daily_limit": -1,
            "price_id": "price_enterprise",
            "price_cents": 9999,
            "currency": "usd",
        }

    def test_no_authentication_needed(self, client):
        client.cookies.clear()
        assert client.get("/api/subscription/plans").status_code == 200

    def test_empty_catalog(self, client, catalog):
        catalog.list_plans.return_value = []

        assert client.get("/api/subscription/plans").json()["plans"] == []
