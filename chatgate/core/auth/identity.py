"""
Identity verification.

``IdentityVerifier.verify`` turns a resolved credential into a verified
``Identity`` or ``None``. Every provider-side failure collapses to ``None``
so callers cannot tell (and cannot leak) why verification failed. Missing
provider configuration is the exception: it raises ``ConfigurationError``.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, Field

from chatgate.core.exceptions import ConfigurationError, UnauthenticatedError
from .credentials import Credential, CredentialSource
from .provider import IdentityProviderClient, IdentityProviderError, get_identity_client

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """A verified external user reference."""

    user_id: str = Field(..., description="Provider user id")
    email: Optional[str] = Field(None, description="Email on the provider record")
    verified: bool = Field(True, description="Always true for identities returned by verify()")
    source: Optional[str] = Field(
        None, description="Credential transport, or 'session_cookie' for the fallback path"
    )

    @classmethod
    def from_provider_user(cls, user: Dict[str, Any], source: str) -> "Identity":
        return cls(user_id=str(user["id"]), email=user.get("email"), source=source)


class IdentityVerifier:
    """
    Exchanges credentials for identities via the identity provider.

    With a credential, verification is bearer-scoped. Without one, the
    provider's session cookies are tried instead.
    """

    SESSION_COOKIE_SOURCE = "session_cookie"

    def __init__(
        self,
        client_factory: Callable[[], IdentityProviderClient] = get_identity_client,
    ):
        self._client_factory = client_factory

    async def verify(
        self,
        credential: Optional[Credential],
        cookies: Optional[Mapping[str, str]] = None,
    ) -> Optional[Identity]:
        """
        Verify the caller.

        Args:
            credential: Resolved bearer credential, or None
            cookies: Request cookies for the session-cookie fallback

        Returns:
            Identity, or None if unauthenticated

        Raises:
            ConfigurationError: Provider URL or key is not configured
        """
        client = self._client_factory()

        try:
            if credential is not None:
                user = await client.get_user(credential.token)
                source = credential.source.value
            else:
                user = await client.get_user_from_session_cookies(cookies or {})
                source = self.SESSION_COOKIE_SOURCE
        except ConfigurationError:
            raise
        except IdentityProviderError as e:
            logger.info(f"Identity verification failed (status={e.status_code})")
            return None
        except Exception as e:
            logger.warning(f"Identity verification error: {type(e).__name__}")
            return None

        if not user or not user.get("id"):
            return None

        return Identity.from_provider_user(user, source=source)

    async def require(
        self,
        credential: Optional[Credential],
        cookies: Optional[Mapping[str, str]] = None,
    ) -> Identity:
        """Like :meth:`verify` but raises UnauthenticatedError instead of returning None."""
        identity = await self.verify(credential, cookies)
        if identity is None:
            raise UnauthenticatedError()
        return identity


_verifier: Optional[IdentityVerifier] = None


def get_identity_verifier() -> IdentityVerifier:
    """Get the identity verifier singleton."""
    global _verifier
    if _verifier is None:
        _verifier = IdentityVerifier()
    return _verifier


__all__ = [
    "Identity",
    "IdentityVerifier",
    "get_identity_verifier",
]
