"""Identity provider configuration."""

import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from chatgate.constants import DEFAULT_IDENTITY_TIMEOUT_SECONDS
from chatgate.core.exceptions import ConfigurationError
from chatgate.utils.env_utils import parse_float_env, parse_str_env

logger = logging.getLogger(__name__)


class IdentityProviderConfig(BaseModel):
    """Identity provider settings from environment variables."""

    url: Optional[str] = Field(
        default_factory=lambda: parse_str_env(("IDENTITY_PROVIDER_URL", "SUPABASE_URL")),
        validate_default=True,
        description="Base URL of the hosted auth service",
    )

    anon_key: Optional[str] = Field(
        default_factory=lambda: parse_str_env(
            ("IDENTITY_PROVIDER_ANON_KEY", "SUPABASE_ANON_KEY")
        ),
        description="Public API key sent with every provider request",
    )

    timeout_seconds: float = Field(
        default_factory=lambda: parse_float_env(
            "IDENTITY_PROVIDER_TIMEOUT_SECONDS", DEFAULT_IDENTITY_TIMEOUT_SECONDS
        ),
        description="Per-request timeout for provider calls",
    )

    session_cookie_name: Optional[str] = Field(
        default_factory=lambda: parse_str_env("IDENTITY_SESSION_COOKIE"),
        description="Session cookie base name; derived from the URL when unset",
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    def require(self) -> "IdentityProviderConfig":
        """Raise ConfigurationError unless URL and key are both set."""
        if not self.url:
            raise ConfigurationError("IDENTITY_PROVIDER_URL")
        if not self.anon_key:
            raise ConfigurationError("IDENTITY_PROVIDER_ANON_KEY")
        return self

    @property
    def resolved_session_cookie_name(self) -> Optional[str]:
        """
        Name of the provider's session cookie.

        Hosted projects use ``sb-<project-ref>-auth-token`` where the project
        ref is the first label of the URL host.
        """
        if self.session_cookie_name:
            return self.session_cookie_name
        if not self.url:
            return None
        host = self.url.split("://", 1)[-1].split("/", 1)[0]
        project_ref = host.split(".", 1)[0].split(":", 1)[0]
        return f"sb-{project_ref}-auth-token"


_config: Optional[IdentityProviderConfig] = None


def get_identity_config() -> IdentityProviderConfig:
    """Get the identity provider config singleton."""
    global _config
    if _config is None:
        _config = IdentityProviderConfig()
    return _config


def reset_identity_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
