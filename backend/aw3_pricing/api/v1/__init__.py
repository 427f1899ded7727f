"""
AW3 Pricing API v1 Router Aggregator.

This module combines all v1 endpoint routers into a single APIRouter
for registration with the main FastAPI application under the /api/v1 prefix.

Router Structure:
    - /project/finance: Fee estimation, quote redemption and fee schedule
    - /cvpi: Cost-to-Verified-Impact calculation
"""

import logging

from fastapi import APIRouter

from aw3_pricing.api.v1.cvpi import router as cvpi_router
from aw3_pricing.api.v1.finance import router as finance_router


# Configure logger
logger = logging.getLogger(__name__)

# Create the main API v1 router
api_router = APIRouter()

api_router.include_router(
    finance_router,
    prefix="/project/finance",
    tags=["finance"],
)

api_router.include_router(
    cvpi_router,
    prefix="/cvpi",
    tags=["cvpi"],
)

loaded_routers: list[str] = ["finance", "cvpi"]
logger.debug("API v1 routers loaded: %s", ", ".join(loaded_routers))


__all__ = ["api_router", "loaded_routers"]
