"""
AW3 Pricing Project Finance API Router Module.

Endpoints a brand project calls before and during campaign creation:

    - POST /estimate-fees: Signed fee quote for a planned campaign
    - POST /redeem-quote: Validate and consume a quote at campaign creation
    - GET /fee-config: Active fee schedule as named options

All pricing rules live in ``FeeCalculationService``; this router only resolves
the requester profile, calls the services and wraps the result in the
``{"success": true, "data": ...}`` envelope. Domain errors are translated to
HTTP responses by the exception handlers in ``aw3_pricing.main``.

Example:
    >>> # Request
    >>> POST /api/v1/project/finance/estimate-fees
    >>> X-Requester-Id: project-42
    >>> {"campaignBudget": 3000, "category": "DeFi", "complexity": "standard"}
    >>>
    >>> # Response
    >>> {
    >>>     "success": true,
    >>>     "data": {"feeEstimateId": "est-1a2b3c4d", "totalFees": "350.00", ...}
    >>> }
"""

import logging

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from aw3_pricing.api.dependencies import get_fee_calculation_service, get_quote_service
from aw3_pricing.core.profiles import REQUESTER_ID_HEADER, get_requester_profile
from aw3_pricing.models.fee_estimate import FeeEstimate, FeeEstimateRequest, RequesterProfile
from aw3_pricing.services.fee_calculation_service import FeeCalculationService
from aw3_pricing.services.quote_service import QuoteService
from aw3_pricing.utils.logger import add_log_context


# Configure module logger for structured logging
logger = logging.getLogger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    tags=["finance"],
    responses={
        status.HTTP_400_BAD_REQUEST: {
            "description": "Invalid input parameters",
        },
    },
)


# =============================================================================
# Request/Response Models
# =============================================================================


class RedeemQuoteRequest(BaseModel):
    """Quote identifier and signature echoed back at campaign creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    fee_estimate_id: str = Field(..., min_length=1, description="Identifier of the issued quote")
    signature: str = Field(..., min_length=1, description="Signature returned with the quote")


class ErrorResponse(BaseModel):
    """
    Error envelope returned for rejected requests.

    Attributes:
        success: Always False.
        error: Human-readable error description.
        errors: Field name to message map for input errors.
    """

    success: bool = False
    error: str
    errors: dict[str, str] = Field(default_factory=dict)


def success_response(data: Any) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content={"success": True, "data": data})


def _quote_payload(estimate: FeeEstimate) -> dict[str, Any]:
    return estimate.model_dump(mode="json", by_alias=True)


# =============================================================================
# API Endpoints
# =============================================================================


@router.post(
    "/estimate-fees",
    status_code=status.HTTP_200_OK,
    summary="Estimate campaign fees",
    description=(
        "Calculate the platform service fee, oracle fee and escrow requirement "
        "for a planned campaign. The returned quote is signed and valid for 15 minutes."
    ),
    responses={
        status.HTTP_400_BAD_REQUEST: {
            "description": "Invalid campaign parameters",
            "model": ErrorResponse,
        },
    },
)
async def estimate_fees(
    body: FeeEstimateRequest,
    request: Request,
    profile: RequesterProfile = Depends(get_requester_profile),
    quote_service: QuoteService = Depends(get_quote_service),
) -> JSONResponse:
    """
    Issue a signed fee quote.

    Args:
        body: Campaign parameters.
        request: Incoming request, used for log context.
        profile: Requester reputation and spend, from ``X-Requester-Id``.
        quote_service: Issues and caches the quote.

    Returns:
        JSONResponse: ``{"success": true, "data": FeeEstimate}``.
    """
    ctx_logger = add_log_context(
        logger,
        requester_id=request.headers.get(REQUESTER_ID_HEADER),
        category=body.category,
    )
    ctx_logger.info(
        "Fee estimate requested: budget=%s complexity=%s token=%s",
        body.campaign_budget,
        body.complexity,
        body.use_aw3_token,
    )

    estimate = await quote_service.issue(body, profile)

    ctx_logger.info(
        "Fee estimate %s issued: total_fees=%s valid_until=%s",
        estimate.fee_estimate_id,
        estimate.total_fees,
        estimate.valid_until.isoformat(),
    )
    return success_response(_quote_payload(estimate))


@router.post(
    "/redeem-quote",
    status_code=status.HTTP_200_OK,
    summary="Redeem a fee quote",
    description=(
        "Validate a previously issued quote by id and signature and consume it. "
        "A quote can be redeemed once, before it expires."
    ),
    responses={
        status.HTTP_404_NOT_FOUND: {"description": "Unknown or already redeemed quote"},
        status.HTTP_409_CONFLICT: {"description": "Quote expired"},
        422: {"description": "Quote or signature tampered"},
    },
)
async def redeem_quote(
    body: RedeemQuoteRequest,
    quote_service: QuoteService = Depends(get_quote_service),
) -> JSONResponse:
    estimate = await quote_service.redeem(body.fee_estimate_id, body.signature)
    return success_response(_quote_payload(estimate))


@router.get(
    "/fee-config",
    status_code=status.HTTP_200_OK,
    summary="Active fee schedule",
    description="List every numeric option of the active fee schedule.",
)
async def get_fee_config(
    calculator: FeeCalculationService = Depends(get_fee_calculation_service),
) -> JSONResponse:
    return success_response(calculator.schedule.as_config_items())


__all__ = ["ErrorResponse", "RedeemQuoteRequest", "router"]
