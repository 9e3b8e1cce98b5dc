"""
Caller authentication.

- credentials: find a bearer token in headers/cookies
- provider: shared client for the hosted identity provider
- identity: verify a credential into an Identity
"""

from .config import IdentityProviderConfig, get_identity_config, reset_identity_config
from .credentials import (
    Credential,
    CredentialSource,
    decode_cookie_token,
    extract_bearer_token,
    resolve_credential,
)
from .identity import Identity, IdentityVerifier, get_identity_verifier
from .provider import (
    IdentityClientHandle,
    IdentityProviderClient,
    IdentityProviderError,
    close_identity_client,
    decode_session_cookie,
    get_identity_client,
)

__all__ = [
    "IdentityProviderConfig",
    "get_identity_config",
    "reset_identity_config",
    "Credential",
    "CredentialSource",
    "decode_cookie_token",
    "extract_bearer_token",
    "resolve_credential",
    "Identity",
    "IdentityVerifier",
    "get_identity_verifier",
    "IdentityClientHandle",
    "IdentityProviderClient",
    "IdentityProviderError",
    "close_identity_client",
    "decode_session_cookie",
    "get_identity_client",
]
