"""Usage metering API endpoints.

All endpoints act on the authenticated caller; the identity comes from the
verified credential, never from the request body.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from chatgate.core.auth import Identity
from chatgate.core.usage import UsageLedger
from ..dependencies import get_current_identity, get_idempotency_key, get_ledger
from ..schemas.errors import INCREMENT_ERROR_RESPONSES, USAGE_ERROR_RESPONSES
from ..schemas.usage import (
    IncrementResponse,
    LimitResponse,
    QuotaResponse,
    UsageResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/increment",
    response_model=IncrementResponse,
    responses=INCREMENT_ERROR_RESPONSES,
    operation_id="incrementUsage",
    summary="Record one interaction for the caller",
)
async def increment_usage(
    identity: Identity = Depends(get_current_identity),
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
    ledger: UsageLedger = Depends(get_ledger),
):
    """
    Atomically charge one interaction against today's quota.

    Returns 403 with `daily_limit`, `used` and `resets_at` when the limit is
    already reached. Send an `Idempotency-Key` header to make retries safe.
    """
    result = await ledger.increment_usage(identity.user_id, idempotency_key=idempotency_key)
    return IncrementResponse(
        interactions_used=result.interactions_used,
        daily_limit=result.daily_limit,
        remaining=result.remaining,
        usage_date=result.usage_date,
        resets_at=result.resets_at,
        replayed=result.replayed,
    )


@router.api_route(
    "/limit",
    methods=["GET", "POST"],
    response_model=LimitResponse,
    responses=USAGE_ERROR_RESPONSES,
    summary="Get the caller's daily limit",
)
async def get_daily_limit(
    identity: Identity = Depends(get_current_identity),
    ledger: UsageLedger = Depends(get_ledger),
):
    """Today's effective limit (-1 = unrestricted, 0 = no active plan)."""
    status = await ledger.check_quota(identity.user_id)
    return LimitResponse(daily_limit=status.daily_limit)


@router.api_route(
    "/usage",
    methods=["GET", "POST"],
    response_model=UsageResponse,
    responses=USAGE_ERROR_RESPONSES,
    summary="Get the caller's usage for today",
)
async def get_daily_usage(
    identity: Identity = Depends(get_current_identity),
    ledger: UsageLedger = Depends(get_ledger),
):
    """Today's interaction count, limit and reset time."""
    usage = await ledger.get_daily_usage(identity.user_id)
    return UsageResponse(**usage.model_dump())


@router.get(
    "/quota",
    response_model=QuotaResponse,
    responses=USAGE_ERROR_RESPONSES,
    operation_id="checkQuota",
    summary="Check whether the caller may interact now",
)
async def check_quota(
    identity: Identity = Depends(get_current_identity),
    ledger: UsageLedger = Depends(get_ledger),
):
    """Full quota status including the denial reason, if any."""
    status = await ledger.check_quota(identity.user_id)
    return QuotaResponse(**status.model_dump())
