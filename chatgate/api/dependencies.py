"""Shared dependencies for API routes.

Identity: every usage endpoint resolves the caller from the Authorization
header or credential cookies and verifies it with the identity provider.
Service objects are module-level singletons so tests can swap them through
``app.dependency_overrides``.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, Request

from chatgate.constants import IDEMPOTENCY_KEY_MAX_LENGTH
from chatgate.core.admin import (
    AdminConfig,
    AdminSessionManager,
    get_admin_config,
    get_admin_session_manager,
)
from chatgate.core.auth import (
    Identity,
    IdentityVerifier,
    get_identity_verifier,
    resolve_credential,
)
from chatgate.core.auth.credentials import token_from_authorization
from chatgate.core.exceptions import UnauthenticatedError
from chatgate.core.usage import (
    PlanCatalog,
    UsageLedger,
    get_plan_catalog,
    get_usage_ledger,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Service Dependencies
# =============================================================================

def get_verifier() -> IdentityVerifier:
    """Get the identity verifier."""
    return get_identity_verifier()


def get_ledger() -> UsageLedger:
    """Get the usage ledger."""
    return get_usage_ledger()


def get_catalog() -> PlanCatalog:
    """Get the plan catalog."""
    return get_plan_catalog()


def get_admin_manager() -> AdminSessionManager:
    """Get the admin session manager."""
    return get_admin_session_manager()


def get_admin_settings() -> AdminConfig:
    """Get admin configuration."""
    return get_admin_config()


# =============================================================================
# Request Context
# =============================================================================

async def get_current_identity(
    request: Request,
    verifier: IdentityVerifier = Depends(get_verifier),
) -> Identity:
    """
    Resolve and verify the caller.

    Header credentials take precedence over cookies; with neither, the
    provider's session cookie is tried.

    Raises:
        UnauthenticatedError: No credential or verification failed
        ConfigurationError: Identity provider not configured
    """
    credential = resolve_credential(request.headers, request.cookies)
    identity = await verifier.verify(credential, request.cookies)
    if identity is None:
        raise UnauthenticatedError()

    request.state.user_id = identity.user_id
    return identity


async def get_idempotency_key(
    idempotency_key: Optional[str] = Header(
        None,
        alias="Idempotency-Key",
        max_length=IDEMPOTENCY_KEY_MAX_LENGTH,
    ),
) -> Optional[str]:
    """Optional client key that makes an increment safe to retry."""
    return idempotency_key


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def require_cron_secret(
    authorization: Optional[str] = Header(None),
    config: AdminConfig = Depends(get_admin_settings),
) -> None:
    """
    Guard for scheduled jobs.

    When CRON_SECRET is set the caller must send ``Authorization: Bearer
    <CRON_SECRET>``; when unset the endpoint is open.
    """
    if not config.cron_secret:
        return

    token = token_from_authorization(authorization) or ""
    if not hmac.compare_digest(token.encode("utf-8"), config.cron_secret.encode("utf-8")):
        logger.warning("Rejected cron request with missing or wrong secret")
        raise UnauthenticatedError("Invalid cron secret")
