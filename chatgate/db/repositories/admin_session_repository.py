"""
Admin session repository.

Sessions are keyed by the SHA-256 hex digest of their opaque token. Normal
request handling never deletes rows; only the retention cleanup does.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, or_, select, text, update

from chatgate.constants import ADMIN_CLEANUP_FUNCTION
from ..connection import DatabaseManager, db
from ..models import AdminSessionModel
from ..utils import with_db_retry

logger = logging.getLogger(__name__)


class AdminSessionRepository:
    """Storage access for admin sessions."""

    def __init__(self, database: Optional[DatabaseManager] = None):
        self._db = database or db

    @with_db_retry
    async def insert(
        self,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> None:
        async with self._db.session() as session:
            session.add(
                AdminSessionModel(
                    token_hash=token_hash,
                    created_at=created_at,
                    expires_at=expires_at,
                    revoked_at=None,
                    user_agent=user_agent,
                    ip=ip,
                )
            )

    @with_db_retry
    async def get(self, token_hash: str) -> Optional[AdminSessionModel]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AdminSessionModel).where(AdminSessionModel.token_hash == token_hash)
            )
            return result.scalar_one_or_none()

    @with_db_retry
    async def revoke(self, token_hash: str, revoked_at: datetime) -> int:
        """Set ``revoked_at`` unless already set. Returns rows changed (0 or 1)."""
        async with self._db.session() as session:
            result = await session.execute(
                update(AdminSessionModel)
                .where(
                    AdminSessionModel.token_hash == token_hash,
                    AdminSessionModel.revoked_at.is_(None),
                )
                .values(revoked_at=revoked_at)
            )
            return result.rowcount or 0

    async def run_cleanup_function(self) -> int:
        """
        Invoke the storage-side cleanup function.

        Not retried: a missing function is the expected failure on
        databases where it was never installed.
        """
        async with self._db.session() as session:
            result = await session.execute(text(f"SELECT {ADMIN_CLEANUP_FUNCTION}()"))
            removed = result.scalar()
            return int(removed or 0)

    @with_db_retry
    async def delete_expired_or_revoked(self, now: datetime) -> int:
        """Delete rows with ``expires_at < now`` or a revocation. Returns rows deleted."""
        async with self._db.session() as session:
            result = await session.execute(
                delete(AdminSessionModel).where(
                    or_(
                        AdminSessionModel.expires_at < now,
                        AdminSessionModel.revoked_at.is_not(None),
                    )
                )
            )
            return result.rowcount or 0
