"""
Admin console configuration.

All settings are read from the environment; ``ADMIN_PASSWORD`` has no
default and login is refused with a configuration error while it is unset.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from chatgate.constants import (
    DEFAULT_ADMIN_CLEANUP_INTERVAL_SECONDS,
    DEFAULT_ADMIN_SESSION_COOKIE,
    DEFAULT_ADMIN_SESSION_TTL_SECONDS,
)
from chatgate.utils.env_utils import parse_bool_env, parse_int_env, parse_str_env


class AdminConfig(BaseSettings):
    """Configuration for admin sessions and the cleanup job."""

    admin_password: Optional[str] = Field(
        default=None,
        repr=False,
        description="Shared secret for admin login",
    )
    admin_session_ttl_seconds: int = Field(
        default=DEFAULT_ADMIN_SESSION_TTL_SECONDS,
        gt=0,
        description="Admin session lifetime (8 hours)",
    )
    admin_session_cookie: str = Field(
        default=DEFAULT_ADMIN_SESSION_COOKIE,
        description="Cookie carrying the admin session token",
    )
    admin_cookie_secure: bool = Field(
        default=True,
        description="Set the Secure attribute on the admin cookie",
    )
    cron_secret: Optional[str] = Field(
        default=None,
        repr=False,
        description="Bearer secret required by the cleanup job endpoint",
    )
    admin_session_cleanup_interval_seconds: int = Field(
        default=DEFAULT_ADMIN_CLEANUP_INTERVAL_SECONDS,
        ge=0,
        description="In-process cleanup sweep interval (0 = disabled)",
    )

    @classmethod
    def from_env(cls) -> "AdminConfig":
        """Create config from environment variables."""
        return cls(
            admin_password=parse_str_env("ADMIN_PASSWORD"),
            admin_session_ttl_seconds=parse_int_env(
                "ADMIN_SESSION_TTL_SECONDS", DEFAULT_ADMIN_SESSION_TTL_SECONDS
            ),
            admin_session_cookie=parse_str_env(
                "ADMIN_SESSION_COOKIE", DEFAULT_ADMIN_SESSION_COOKIE
            ),
            admin_cookie_secure=parse_bool_env("ADMIN_COOKIE_SECURE", True),
            cron_secret=parse_str_env("CRON_SECRET"),
            admin_session_cleanup_interval_seconds=parse_int_env(
                "ADMIN_SESSION_CLEANUP_INTERVAL_SECONDS",
                DEFAULT_ADMIN_CLEANUP_INTERVAL_SECONDS,
            ),
        )


# Singleton instance
_config: Optional[AdminConfig] = None


def get_admin_config() -> AdminConfig:
    """Get the admin config singleton."""
    global _config
    if _config is None:
        _config = AdminConfig.from_env()
    return _config


def reset_admin_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
