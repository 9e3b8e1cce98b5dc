"""Shared test fixtures and configuration."""

import os
from datetime import datetime, timedelta

import pytest
import pytest_asyncio


# =============================================================================
# Environment Variable Fixtures
# =============================================================================

@pytest.fixture
def identity_env(monkeypatch):
    """Set up identity provider environment variables."""
    monkeypatch.setenv("IDENTITY_PROVIDER_URL", "https://abcdefgh.supabase.co")
    monkeypatch.setenv("IDENTITY_PROVIDER_ANON_KEY", "anon-key")
    monkeypatch.delenv("IDENTITY_SESSION_COOKIE", raising=False)


@pytest.fixture
def clean_identity_env(monkeypatch):
    """Clear identity provider environment variables, including aliases."""
    for key in (
        "IDENTITY_PROVIDER_URL",
        "SUPABASE_URL",
        "IDENTITY_PROVIDER_ANON_KEY",
        "SUPABASE_ANON_KEY",
        "IDENTITY_SESSION_COOKIE",
    ):
        monkeypatch.delenv(key, raising=False)


# =============================================================================
# Singleton Reset
# =============================================================================

@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons before and after each test."""
    from chatgate.core.admin import reset_admin_config, reset_admin_session_manager
    from chatgate.core.auth import IdentityClientHandle, reset_identity_config
    from chatgate.core.usage import reset_plan_catalog, reset_usage_config, reset_usage_ledger

    def reset():
        reset_identity_config()
        IdentityClientHandle.reset_instance()
        reset_usage_config()
        reset_plan_catalog()
        reset_usage_ledger()
        reset_admin_config()
        reset_admin_session_manager()

    reset()
    yield
    reset()


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Manually advanced clock returning naive UTC datetimes."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-15 10:00 UTC."""
    return FakeClock(datetime(2024, 1, 15, 10, 0, 0))


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def database(tmp_path):
    """Throwaway on-disk SQLite database with all tables created."""
    from chatgate.db.connection import DatabaseConfig, DatabaseManager

    manager = DatabaseManager(
        DatabaseConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'chatgate.db'}", enabled=True)
    )
    await manager.create_tables()
    yield manager
    await manager.close_all()


@pytest.fixture
def subscription_repository(database):
    from chatgate.db.repositories import SubscriptionRepository
    return SubscriptionRepository(database)


@pytest.fixture
def usage_repository(database):
    from chatgate.db.repositories import UsageRepository
    return UsageRepository(database)


@pytest.fixture
def admin_session_repository(database):
    from chatgate.db.repositories import AdminSessionRepository
    return AdminSessionRepository(database)


@pytest.fixture
def usage_config():
    from chatgate.core.usage import UsageConfig
    return UsageConfig(usage_timezone="UTC", trial_daily_limit=-1, plan_cache_ttl_seconds=0)


@pytest.fixture
def plan_catalog(subscription_repository):
    from chatgate.core.usage import DatabasePlanCatalog
    return DatabasePlanCatalog(subscription_repository, cache_ttl_seconds=0)


@pytest.fixture
def ledger(usage_repository, subscription_repository, plan_catalog, usage_config, clock):
    from chatgate.core.usage import UsageLedger
    return UsageLedger(
        usage_repository=usage_repository,
        subscription_repository=subscription_repository,
        plan_catalog=plan_catalog,
        config=usage_config,
        clock=clock,
    )


@pytest_asyncio.fixture
async def basic_plan(subscription_repository):
    """A plan with a limit of 10 interactions per day."""
    await subscription_repository.upsert_plan(
        plan_type="basic",
        display_name="Basic",
        daily_interactions_limit=10,
        price_reference="price_basic",
        price_cents=990,
    )
    return "basic"


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION_TESTS is set."""
    if not os.getenv("RUN_INTEGRATION_TESTS"):
        skip_integration = pytest.mark.skip(
            reason="Set RUN_INTEGRATION_TESTS=1 to run integration tests"
        )
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)
