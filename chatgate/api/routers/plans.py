"""Plan catalog API endpoint."""

import logging

from fastapi import APIRouter, Depends

from chatgate.core.usage import PlanCatalog, list_available_plans
from ..dependencies import get_catalog
from ..schemas.errors import BASE_ERROR_RESPONSES
from ..schemas.usage import PlanItem, PlansResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/plans",
    response_model=PlansResponse,
    responses=BASE_ERROR_RESPONSES,
    operation_id="listPlans",
    summary="List purchasable plans",
)
async def list_plans(catalog: PlanCatalog = Depends(get_catalog)):
    """Active plans that carry a price reference, in display order."""
    plans = await list_available_plans(catalog)
    return PlansResponse(
        plans=[
            PlanItem(
                type=plan.plan_type,
                name=plan.display_name,
                daily_limit=plan.daily_interactions_limit,
                price_id=plan.price_reference,
                price_cents=plan.price_cents,
                currency=plan.currency,
            )
            for plan in plans
        ]
    )
