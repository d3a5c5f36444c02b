"""
Treatment-plan endpoint.

Relays a transcript to the planning gateway and returns the generated plans.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from voxplan.api.dependencies import get_planning_client
from voxplan.core.models import ErrorResponse, TreatmentPlanRequest
from voxplan.services.planning import PlanningGatewayClient

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["planning"],
    responses={500: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)


@router.post("/treatment-plans")
async def create_treatment_plans(
    body: TreatmentPlanRequest,
    client: PlanningGatewayClient = Depends(get_planning_client),
) -> dict[str, Any]:
    """Generate treatment plans for a transcript.

    The gateway body is returned as received, including keys and values the
    plan models do not describe.

    Gateway failures surface as ``PLANNING_REQUEST_FAILED`` (504 when every
    attempt timed out).
    """
    plan_set = await client.submit_planning_request(
        session_id=body.session_id,
        user_id=body.user_id,
        slot_id=body.slot_id,
        text=body.treatment_planner_text,
    )
    logger.info(
        "Generated %d treatment plans for session %s",
        len(plan_set.treatment_plans),
        body.session_id,
    )
    return plan_set.raw
