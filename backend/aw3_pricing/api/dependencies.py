"""
FastAPI dependencies wiring the pricing services to configuration and Redis.

Tests replace these through ``app.dependency_overrides``.
"""

from fastapi import Depends

from aw3_pricing.config import Settings, get_settings
from aw3_pricing.core.redis_client import get_redis_client
from aw3_pricing.services.fee_calculation_service import FeeCalculationService
from aw3_pricing.services.quote_service import QuoteService
from aw3_pricing.utils.security import QuoteSigner


def get_fee_calculation_service(
    settings: Settings = Depends(get_settings),
) -> FeeCalculationService:
    return FeeCalculationService(
        signer=QuoteSigner(settings.quote_signing_secret),
        schedule=settings.fee_schedule(),
    )


def get_quote_service(
    calculator: FeeCalculationService = Depends(get_fee_calculation_service),
) -> QuoteService:
    """Quote service backed by the global Redis client, if one is connected."""
    return QuoteService(calculator, cache=get_redis_client())


__all__ = ["get_fee_calculation_service", "get_quote_service"]
