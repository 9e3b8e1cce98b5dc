"""
Admin session management.

Admin sessions are independent of end-user identities. A session is an
opaque random token handed to the browser in a cookie; storage keeps only
its SHA-256 digest.

Lifecycle:
    Active -> Expired   (time passes expires_at; no write)
    Active -> Revoked   (destroy(); sets revoked_at)

Expired and revoked rows stay in storage until ``cleanup()`` removes them.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from chatgate.constants import ADMIN_IP_MAX_LENGTH, ADMIN_TOKEN_BYTES, ADMIN_USER_AGENT_MAX_LENGTH
from chatgate.core.exceptions import ConfigurationError, TransientStorageError
from chatgate.db.repositories import AdminSessionRepository
from chatgate.utils.time_utils import Clock, utc_now
from .config import AdminConfig, get_admin_config

logger = logging.getLogger(__name__)


def generate_token() -> str:
    """32 random bytes, hex-encoded."""
    return secrets.token_hex(ADMIN_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a session token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AdminSession(BaseModel):
    """An issued admin session. ``token`` is only populated at creation."""

    token_hash: str
    created_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    token: Optional[str] = Field(default=None, repr=False, exclude=True)

    def is_active(self, now: datetime) -> bool:
        return self.revoked_at is None and now <= self.expires_at


class CleanupResult(BaseModel):
    """Outcome of a retention cleanup run."""

    removed: int = 0
    fallback: bool = False


class AdminSessionManager:
    """Issues, validates, revokes and purges admin sessions."""

    def __init__(
        self,
        repository: Optional[AdminSessionRepository] = None,
        config: Optional[AdminConfig] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository or AdminSessionRepository()
        self.config = config or get_admin_config()
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.config.admin_session_ttl_seconds)

    def verify_password(self, candidate: str) -> bool:
        """
        Constant-time comparison against ``ADMIN_PASSWORD``.

        Raises:
            ConfigurationError: ADMIN_PASSWORD is not set
        """
        expected = self.config.admin_password
        if not expected:
            raise ConfigurationError("ADMIN_PASSWORD")
        return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))

    async def create(
        self,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> AdminSession:
        """
        Issue a new session. Existing sessions are left untouched.

        Raises:
            TransientStorageError: The session could not be persisted
        """
        # Both come straight from request headers
        user_agent = user_agent[:ADMIN_USER_AGENT_MAX_LENGTH] if user_agent else user_agent
        ip = ip[:ADMIN_IP_MAX_LENGTH] if ip else ip

        now = self._clock()
        token = generate_token()
        session = AdminSession(
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + self.ttl,
            user_agent=user_agent,
            ip=ip,
            token=token,
        )

        try:
            await self.repository.insert(
                token_hash=session.token_hash,
                created_at=session.created_at,
                expires_at=session.expires_at,
                user_agent=user_agent,
                ip=ip,
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to persist admin session: {e}")
            raise TransientStorageError("create_admin_session", cause=e) from e

        logger.info(f"Admin session created (ip={ip}, expires_at={session.expires_at.isoformat()})")
        return session

    async def is_valid(self, token: Optional[str]) -> bool:
        """True only for an existing, unrevoked, unexpired session. Fails closed."""
        if not token:
            return False

        try:
            record = await self.repository.get(hash_token(token))
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Admin session lookup failed, treating as invalid: {e}")
            return False

        if record is None:
            return False
        if record.revoked_at is not None:
            return False
        return self._clock() <= record.expires_at

    async def destroy(self, token: Optional[str]) -> None:
        """Revoke a session. Unknown or already-revoked tokens are a no-op."""
        if not token:
            return

        try:
            changed = await self.repository.revoke(hash_token(token), self._clock())
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to revoke admin session: {e}")
            raise TransientStorageError("destroy_admin_session", cause=e) from e

        if changed:
            logger.info("Admin session revoked")

    async def cleanup(self) -> CleanupResult:
        """
        Permanently delete expired or revoked sessions.

        Uses the storage-side cleanup function when installed, otherwise an
        equivalent conditional delete. Sessions created while this runs are
        unexpired and unrevoked, so neither path touches them.

        Raises:
            TransientStorageError: Both paths failed
        """
        try:
            removed = await self.repository.run_cleanup_function()
            logger.info(f"Admin session cleanup removed {removed} rows")
            return CleanupResult(removed=removed, fallback=False)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(
                f"Cleanup function unavailable ({type(e).__name__}), using manual delete"
            )

        try:
            removed = await self.repository.delete_expired_or_revoked(self._clock())
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Admin session cleanup failed: {e}")
            raise TransientStorageError("cleanup_admin_sessions", cause=e) from e

        logger.info(f"Admin session cleanup (fallback) removed {removed} rows")
        return CleanupResult(removed=removed, fallback=True)


_manager: Optional[AdminSessionManager] = None


def get_admin_session_manager() -> AdminSessionManager:
    """Get the admin session manager singleton."""
    global _manager
    if _manager is None:
        _manager = AdminSessionManager()
    return _manager


def reset_admin_session_manager() -> None:
    """Reset the manager singleton (for testing)."""
    global _manager
    _manager = None
