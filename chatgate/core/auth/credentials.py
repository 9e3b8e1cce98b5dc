"""
Bearer credential resolution.

Finds the caller's bearer token in the request headers or cookies. Absence
is a normal outcome and is returned as ``None``; nothing here raises.

Precedence:
1. ``Authorization: Bearer <token>`` (header name and scheme case-insensitive)
2. Cookies, first present wins: ``sb-access-token``, ``sb-token``,
   ``supabase-auth-token``
3. A cookie value may be a JSON array whose first element is the token;
   anything that does not parse as JSON is used verbatim
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from chatgate.constants import (
    ACCESS_TOKEN_COOKIE,
    AUTHORIZATION_HEADER,
    BEARER_SCHEME,
    CREDENTIAL_COOKIE_ORDER,
    LEGACY_AUTH_TOKEN_COOKIE,
    LEGACY_TOKEN_COOKIE,
)


class CredentialSource(str, Enum):
    """Where a credential was found."""

    HEADER = "authorization_header"
    ACCESS_TOKEN_COOKIE = ACCESS_TOKEN_COOKIE
    LEGACY_TOKEN_COOKIE = LEGACY_TOKEN_COOKIE
    LEGACY_AUTH_TOKEN_COOKIE = LEGACY_AUTH_TOKEN_COOKIE


@dataclass(frozen=True)
class Credential:
    """A bearer token and the transport it arrived on. Never persisted."""

    token: str
    source: CredentialSource

    def __repr__(self) -> str:
        return f"Credential(source={self.source.value}, token=<redacted>)"


def _header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Starlette's Headers is already case-insensitive; plain dicts are not
    value = headers.get(name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None


def token_from_authorization(value: Optional[str]) -> Optional[str]:
    """Extract the token from an Authorization header value, or None."""
    if not value:
        return None
    parts = value.split()
    if len(parts) < 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    token = " ".join(parts[1:]).strip()
    return token or None


def decode_cookie_token(value: str) -> Optional[str]:
    """
    Decode a credential cookie value.

    ``["abc123"]`` yields ``abc123``; ``not-json`` yields ``not-json``.
    Text that parses as JSON but is not a non-empty array (``[]``, ``"x"``,
    ``42``) carries no token.
    """
    try:
        parsed: Any = json.loads(value)
    except (TypeError, ValueError):
        return value or None

    if isinstance(parsed, list) and parsed and parsed[0]:
        return str(parsed[0])
    return None


def resolve_credential(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
) -> Optional[Credential]:
    """
    Resolve the caller's bearer credential.

    Args:
        headers: Request headers
        cookies: Request cookies

    Returns:
        Credential, or None when the request carries none
    """
    token = token_from_authorization(_header_value(headers, AUTHORIZATION_HEADER))
    if token:
        return Credential(token=token, source=CredentialSource.HEADER)

    for name in CREDENTIAL_COOKIE_ORDER:
        raw = cookies.get(name)
        if raw is None:
            continue
        token = decode_cookie_token(raw)
        if token:
            return Credential(token=token, source=CredentialSource(name))
        # First present cookie decides
        return None

    return None


def extract_bearer_token(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
) -> Optional[str]:
    """Token-only form of :func:`resolve_credential`."""
    credential = resolve_credential(headers, cookies)
    return credential.token if credential else None
