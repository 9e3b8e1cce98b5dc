"""Scheduled job endpoints, called by an external scheduler."""

import logging

from fastapi import APIRouter, Depends

from chatgate.core.admin import AdminSessionManager
from chatgate.core.usage import UsageLedger
from ..dependencies import get_admin_manager, get_ledger, require_cron_secret
from ..schemas.admin import CleanupResponse, KeyPruneResponse
from ..schemas.errors import CRON_ERROR_RESPONSES

logger = logging.getLogger(__name__)
router = APIRouter()


@router.api_route(
    "/admin-session-cleanup",
    methods=["GET", "POST"],
    response_model=CleanupResponse,
    responses=CRON_ERROR_RESPONSES,
    dependencies=[Depends(require_cron_secret)],
    summary="Delete expired and revoked admin sessions",
)
async def cleanup_admin_sessions(
    manager: AdminSessionManager = Depends(get_admin_manager),
):
    """
    Idempotent retention cleanup; safe to trigger more than once.

    `fallback` is true when the storage-side cleanup function was not
    available and a direct delete was used instead.
    """
    result = await manager.cleanup()
    return CleanupResponse(ok=True, removed=result.removed, fallback=result.fallback)


@router.api_route(
    "/idempotency-key-cleanup",
    methods=["GET", "POST"],
    response_model=KeyPruneResponse,
    responses=CRON_ERROR_RESPONSES,
    dependencies=[Depends(require_cron_secret)],
    summary="Delete idempotency keys from previous usage days",
)
async def prune_idempotency_keys(ledger: UsageLedger = Depends(get_ledger)):
    """Keys only replay within their own usage day; older ones are dead weight."""
    removed = await ledger.prune_idempotency_keys()
    return KeyPruneResponse(ok=True, removed=removed)
