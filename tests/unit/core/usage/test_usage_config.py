"""Tests for usage configuration."""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from chatgate.core.usage import UsageConfig, get_usage_config


class TestUsageConfig:
    def test_defaults(self, monkeypatch):
        for key in ("USAGE_TIMEZONE", "TRIAL_DAILY_LIMIT", "PLAN_CACHE_TTL_SECONDS"):
            monkeypatch.delenv(key, raising=False)

        config = UsageConfig.from_env()

        assert config.usage_timezone == "UTC"
        assert config.trial_daily_limit == -1
        assert config.plan_cache_ttl_seconds == 300

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("USAGE_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("TRIAL_DAILY_LIMIT", "25")
        monkeypatch.setenv("PLAN_CACHE_TTL_SECONDS", "0")

        config = UsageConfig.from_env()

        assert config.tz == ZoneInfo("Europe/Berlin")
        assert config.trial_daily_limit == 25
        assert config.plan_cache_ttl_seconds == 0

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            UsageConfig(usage_timezone="Mars/Olympus_Mons")

    def test_trial_limit_below_unlimited_rejected(self):
        with pytest.raises(ValidationError):
            UsageConfig(trial_daily_limit=-2)

    def test_singleton(self, monkeypatch):
        monkeypatch.delenv("USAGE_TIMEZONE", raising=False)
        assert get_usage_config() is get_usage_config()
