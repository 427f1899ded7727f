"""
AW3 Pricing CVPI API Router Module.

Cost-to-Verified-Impact for a completed campaign:

    CVPI = (campaign budget + service fee + oracle fee) / verified impact score

Endpoints:
    - POST /calculate: CVPI and percentile band from budget, fees and impact
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from aw3_pricing.api.v1.finance import ErrorResponse, success_response
from aw3_pricing.models.cvpi import CVPIRequest
from aw3_pricing.services.cvpi_service import calculate_cvpi


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["cvpi"])


@router.post(
    "/calculate",
    status_code=status.HTTP_200_OK,
    summary="Calculate CVPI",
    responses={
        status.HTTP_400_BAD_REQUEST: {
            "description": "Non-positive impact score or negative amount",
            "model": ErrorResponse,
        },
    },
)
async def calculate(body: CVPIRequest) -> JSONResponse:
    """Return the CVPI score of a campaign; lower is better."""
    score = calculate_cvpi(
        campaign_budget=body.campaign_budget,
        service_fee=body.service_fee,
        oracle_fee=body.oracle_fee,
        verified_impact_score=body.verified_impact_score,
        category=body.category,
    )
    return success_response(score.model_dump(mode="json", by_alias=True))


__all__ = ["router"]
