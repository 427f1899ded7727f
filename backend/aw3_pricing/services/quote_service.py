"""
Fee Quote Issuance and Redemption Service for AW3 Pricing.

Issued quotes are held in the ``feeEstimates`` Redis cache for the length of
their remaining validity. At campaign-creation time the caller presents the
``feeEstimateId`` and ``signature`` it received; the quote is loaded, checked
against its signature and expiry, and removed so it cannot be redeemed twice.

Running without Redis is supported: quotes are still issued and signed, but
redemption reports every quote as unknown.
"""

import hmac
import logging
import math

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from aw3_pricing.core.exceptions import QuoteNotFoundError, QuoteSignatureError
from aw3_pricing.core.redis_client import CacheKeys, RedisClient
from aw3_pricing.models.fee_estimate import FeeEstimate, FeeEstimateRequest, RequesterProfile
from aw3_pricing.services.fee_calculation_service import FeeCalculationService


# Configure module logger
logger = logging.getLogger(__name__)


def quote_cache_key(fee_estimate_id: str) -> str:
    return f"{CacheKeys.FEE_ESTIMATE}:{fee_estimate_id}"


def remaining_validity_seconds(estimate: FeeEstimate, now: datetime) -> int:
    """Whole seconds until ``estimate`` expires, rounded up; <= 0 once expired."""
    return math.ceil((estimate.valid_until - now).total_seconds())


class QuoteService:
    """
    Issues fee quotes and verifies them on redemption.

    Attributes:
        calculator: The fee calculator producing signed quotes.
        cache: Redis client holding issued quotes, or None when disabled.
    """

    def __init__(
        self,
        calculator: FeeCalculationService,
        cache: RedisClient | None = None,
    ) -> None:
        self.calculator = calculator
        self.cache = cache

    async def issue(self, request: FeeEstimateRequest, profile: RequesterProfile) -> FeeEstimate:
        """
        Calculate a quote and hold it for later redemption.

        The cache entry lives exactly as long as the quote is valid.

        Raises:
            InvalidInputError: Propagated from the calculator.
        """
        estimate = self.calculator.estimate(request, profile)

        if self.cache is not None:
            ttl = remaining_validity_seconds(estimate, self.calculator.clock())
            if ttl <= 0:
                logger.warning("Quote %s expired on issue; not cached", estimate.fee_estimate_id)
                return estimate

            stored = await self.cache.set_json(
                quote_cache_key(estimate.fee_estimate_id),
                estimate.model_dump(mode="json", by_alias=True),
                ttl=ttl,
            )
            if not stored:
                logger.warning(
                    "Quote %s issued but not cached; it cannot be redeemed",
                    estimate.fee_estimate_id,
                )

        return estimate

    async def redeem(
        self,
        fee_estimate_id: str,
        signature: str,
        now: datetime | None = None,
    ) -> FeeEstimate:
        """
        Validate and consume a previously issued quote.

        The quote is checked before it is consumed, so a wrong signature leaves
        it redeemable. Consumption is an atomic GETDEL: of several concurrent
        redemptions of one quote, exactly one succeeds.

        Args:
            fee_estimate_id: Identifier echoed back by the caller.
            signature: Signature echoed back by the caller.
            now: Reference time for the expiry check.

        Returns:
            FeeEstimate: The quote exactly as issued.

        Raises:
            QuoteNotFoundError: Unknown, already redeemed or evicted quote.
            QuoteSignatureError: Presented signature or cached quote tampered.
            QuoteExpiredError: Validity window has passed.
        """
        if self.cache is None:
            raise QuoteNotFoundError(f"Fee estimate {fee_estimate_id} not found")

        key = quote_cache_key(fee_estimate_id)
        estimate = self._load(fee_estimate_id, await self.cache.get_json(key))
        self._check(estimate, signature, now)

        taken = self._load(fee_estimate_id, await self.cache.getdel_json(key))
        if taken.signature != estimate.signature:
            raise QuoteSignatureError(f"Fee estimate {fee_estimate_id} changed during redemption")

        logger.info("Redeemed fee estimate %s", fee_estimate_id)
        return taken

    def _load(self, fee_estimate_id: str, payload: Any | None) -> FeeEstimate:
        if payload is None:
            raise QuoteNotFoundError(f"Fee estimate {fee_estimate_id} not found")

        try:
            return FeeEstimate.model_validate(payload)
        except ValidationError as exc:
            logger.error("Cached quote %s is unreadable: %s", fee_estimate_id, exc)
            raise QuoteSignatureError(f"Fee estimate {fee_estimate_id} is corrupted") from exc

    def _check(self, estimate: FeeEstimate, signature: str, now: datetime | None) -> None:
        if not hmac.compare_digest(estimate.signature.encode(), signature.encode()):
            raise QuoteSignatureError(
                f"Signature mismatch for fee estimate {estimate.fee_estimate_id}"
            )
        self.calculator.signer.verify(estimate, now=now)


__all__ = ["QuoteService", "quote_cache_key", "remaining_validity_seconds"]
