"""
Usage metering configuration.

The usage day is the calendar day in ``USAGE_TIMEZONE``; counters roll over
at local midnight there.
"""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from chatgate.constants import (
    DEFAULT_PLAN_CACHE_TTL_SECONDS,
    DEFAULT_TRIAL_DAILY_LIMIT,
    DEFAULT_USAGE_TIMEZONE,
)
from chatgate.utils.env_utils import parse_int_env, parse_str_env


class UsageConfig(BaseSettings):
    """Configuration for the usage ledger."""

    usage_timezone: str = Field(
        default=DEFAULT_USAGE_TIMEZONE,
        description="IANA timezone that defines the usage day",
    )
    trial_daily_limit: int = Field(
        default=DEFAULT_TRIAL_DAILY_LIMIT,
        description="Daily limit granted while trialing (-1 = unrestricted)",
    )
    plan_cache_ttl_seconds: int = Field(
        default=DEFAULT_PLAN_CACHE_TTL_SECONDS,
        description="How long plan definitions are cached in-process",
    )

    @field_validator("usage_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("trial_daily_limit")
    @classmethod
    def validate_trial_limit(cls, v: int) -> int:
        if v < -1:
            raise ValueError("TRIAL_DAILY_LIMIT must be -1 or >= 0")
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.usage_timezone)

    @classmethod
    def from_env(cls) -> "UsageConfig":
        """Create config from environment variables."""
        return cls(
            usage_timezone=parse_str_env("USAGE_TIMEZONE", DEFAULT_USAGE_TIMEZONE),
            trial_daily_limit=parse_int_env("TRIAL_DAILY_LIMIT", DEFAULT_TRIAL_DAILY_LIMIT),
            plan_cache_ttl_seconds=parse_int_env(
                "PLAN_CACHE_TTL_SECONDS", DEFAULT_PLAN_CACHE_TTL_SECONDS
            ),
        )


# Singleton instance
_config: Optional[UsageConfig] = None


def get_usage_config() -> UsageConfig:
    """Get the usage config singleton."""
    global _config
    if _config is None:
        _config = UsageConfig.from_env()
    return _config


def reset_usage_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
