"""
Identity provider client.

Talks to a hosted auth service exposing the GoTrue ``/auth/v1/user``
endpoint. One ``httpx.AsyncClient`` is shared process-wide through
``IdentityClientHandle`` so connections are pooled across requests.

Session cookie layout (set by the provider's browser SDK):
    sb-<ref>-auth-token            whole value, or
    sb-<ref>-auth-token.0, .1 ...  chunks to concatenate in order
The joined value may carry a ``base64-`` prefix and decodes to JSON: either
a session object with ``access_token`` or a legacy array
``[access_token, refresh_token, ...]``.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from chatgate.constants import MAX_SESSION_COOKIE_CHUNKS, SESSION_COOKIE_BASE64_PREFIX
from chatgate.core.patterns import ThreadSafeSingleton
from .config import IdentityProviderConfig, get_identity_config

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """The provider rejected the credential or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def _join_cookie_chunks(cookies: Mapping[str, str], name: str) -> Optional[str]:
    whole = cookies.get(name)
    if whole:
        return whole

    chunks = []
    for index in range(MAX_SESSION_COOKIE_CHUNKS):
        chunk = cookies.get(f"{name}.{index}")
        if chunk is None:
            break
        chunks.append(chunk)
    return "".join(chunks) or None


def _b64decode(value: str) -> str:
    # Browser SDK writes URL-safe base64 without padding
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def decode_session_cookie(cookies: Mapping[str, str], name: str) -> Optional[str]:
    """
    Extract an access token from the provider's session cookie(s).

    Pure function; returns None for a missing or undecodable cookie.
    """
    raw = _join_cookie_chunks(cookies, name)
    if not raw:
        return None

    if raw.startswith(SESSION_COOKIE_BASE64_PREFIX):
        try:
            raw = _b64decode(raw[len(SESSION_COOKIE_BASE64_PREFIX):])
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return None

    try:
        session: Any = json.loads(raw)
    except ValueError:
        return None

    if isinstance(session, dict):
        token = session.get("access_token")
    elif isinstance(session, list) and session:
        token = session[0]
    else:
        token = None

    return token if isinstance(token, str) and token else None


class IdentityProviderClient:
    """Async client for the provider's user endpoint."""

    def __init__(
        self,
        config: IdentityProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config.require()
        self._http = http_client or httpx.AsyncClient(
            base_url=self.config.url,
            timeout=self.config.timeout_seconds,
            headers={"apikey": self.config.anon_key},
        )

    async def get_user(self, access_token: str) -> Dict[str, Any]:
        """
        Return the user record the provider associates with ``access_token``.

        Raises:
            IdentityProviderError: On rejection, transport failure or a body
                without a user id
        """
        try:
            response = await self._http.get(
                "/auth/v1/user",
                headers={
                    "apikey": self.config.anon_key,
                    "Authorization": f"Bearer {access_token}",
                },
            )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Provider request failed: {type(e).__name__}") from e

        if response.status_code != 200:
            raise IdentityProviderError(
                "Provider rejected credential", status_code=response.status_code
            )

        try:
            user = response.json()
        except ValueError as e:
            raise IdentityProviderError("Provider returned invalid JSON") from e

        if not isinstance(user, dict) or not user.get("id"):
            raise IdentityProviderError("Provider response has no user")
        return user

    async def get_user_from_session_cookies(
        self, cookies: Mapping[str, str]
    ) -> Optional[Dict[str, Any]]:
        """
        Recover a user from the provider's own session cookie.

        Returns None when no session cookie is present.
        """
        name = self.config.resolved_session_cookie_name
        if not name:
            return None
        token = decode_session_cookie(cookies, name)
        if not token:
            return None
        return await self.get_user(token)

    async def aclose(self) -> None:
        await self._http.aclose()


class IdentityClientHandle(ThreadSafeSingleton):
    """Process-wide identity provider client, built once on first use."""

    client: IdentityProviderClient

    def _initialize(self) -> None:
        self.client = IdentityProviderClient(get_identity_config())
        logger.info(f"Identity provider client ready: {self.client.config.url}")

    def _cleanup(self) -> None:
        # Pooled connections are dropped with the client; aclose() needs a loop
        self.client = None  # type: ignore[assignment]


def get_identity_client() -> IdentityProviderClient:
    """Get the shared identity provider client."""
    return IdentityClientHandle.get_instance().client


async def close_identity_client() -> None:
    """Close the shared client, if built (application shutdown)."""
    handle = IdentityClientHandle.peek_instance()
    if handle is not None and handle.client is not None:
        await handle.client.aclose()
    IdentityClientHandle.reset_instance()
