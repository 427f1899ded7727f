"""
Campaign Fee Calculation Service for AW3 Pricing.

This service implements the dynamic pricing model for sponsored-content
campaigns. Given a campaign request and the requesting project's profile it
produces a fully itemised, signed and time-boxed fee quote:

    base fee            = budget * base_rate(budget tier)
    adjusted fee        = base fee * complexity multiplier
    service fee (pre)   = adjusted fee * (1 - spend-tier discount)
    final service fee   = service fee (pre) * (1 - token discount)
    oracle fee          = base + extra KPIs * increment
                          + (base + KPI fee) * premium rate * complexity multiplier
    total fees          = final service fee + oracle fee
    escrow buffer       = (budget + total fees) * buffer percentage / 100
    escrow required     = budget + total fees + buffer

Economic model reference:
    - Base service fee: 4-10% (budget-tiered, bracket-selected)
    - Spend-tier discount: 0-40%
    - Complexity multiplier: 0.8x-1.5x
    - Native token discount: 20%

The calculation is pure and synchronous: no I/O, no shared mutable state.
A single instance may serve any number of concurrent requests.

Example:
    >>> service = FeeCalculationService(signer=QuoteSigner(secret))
    >>> quote = service.estimate(
    ...     FeeEstimateRequest(campaign_budget=Decimal("3000"), category="DeFi"),
    ...     RequesterProfile(),
    ... )
    >>> quote.fee_breakdown.final_service_fee
    Decimal('300.00')
"""

import logging

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from aw3_pricing.core.exceptions import InvalidInputError
from aw3_pricing.models.fee_estimate import (
    EscrowRequirement,
    FeeBreakdown,
    FeeEstimate,
    FeeEstimateRequest,
    OracleFeeBreakdown,
    RequesterProfile,
)
from aw3_pricing.models.fee_schedule import Complexity, FeeSchedule, SpendTier
from aw3_pricing.utils.security import QuoteSigner, generate_estimate_id


# Configure module logger for structured logging
logger = logging.getLogger(__name__)

# Currency precision (cents)
CENTS = Decimal("0.01")

ZERO = Decimal("0")

# Largest budget whose fee arithmetic stays exact at cent precision
MAX_CAMPAIGN_BUDGET = Decimal("1000000000000")


def _to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _utc_now() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


class FeeCalculationService:
    """
    Fee estimation calculator.

    Attributes:
        schedule: Immutable pricing configuration.
        signer: Quote signer holding the server secret.
        clock: Callable returning the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        signer: QuoteSigner,
        schedule: FeeSchedule | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.schedule = schedule or FeeSchedule.default()
        self.signer = signer
        self.clock = clock or _utc_now
        self.logger = logging.getLogger(__name__)

    # =========================================================================
    # Public API
    # =========================================================================

    def estimate(self, request: FeeEstimateRequest, profile: RequesterProfile) -> FeeEstimate:
        """
        Calculate a signed fee quote for a campaign.

        Args:
            request: Campaign parameters.
            profile: Reputation and cumulative spend of the requester.

        Returns:
            FeeEstimate: Itemised breakdown, total fees, escrow requirement,
            expiry, signature and calculation snapshot.

        Raises:
            InvalidInputError: If any input is out of range; ``field`` names it.
        """
        self.validate_request(request, profile)

        budget = request.campaign_budget
        complexity = Complexity(request.complexity)

        # 1. Bracket-selected base rate
        base_rate = self.determine_base_rate(budget)
        base_fee = _to_cents(budget * base_rate)

        # 2. Complexity multiplier
        multiplier = self.complexity_multiplier(complexity)
        complexity_adjusted_fee = _to_cents(base_fee * multiplier)

        # 3. Spend-tier discount
        spend_tier = self.schedule.spend_tier_for(profile.cumulative_spend)
        discount_rate = self.spend_discount_rate(profile.cumulative_spend)
        discount_amount = _to_cents(complexity_adjusted_fee * discount_rate)
        service_fee_before_token = _to_cents(complexity_adjusted_fee - discount_amount)

        # 4. Native token discount, applied to the already discounted fee
        token_rate = self.schedule.token_discount_rate if request.use_aw3_token else ZERO
        token_discount_amount = _to_cents(service_fee_before_token * token_rate)
        final_service_fee = _to_cents(service_fee_before_token - token_discount_amount)

        # 5. Oracle fee, never discounted
        oracle_breakdown = self.calculate_oracle_fee(request.effective_kpi_count, multiplier)
        oracle_fee = (
            oracle_breakdown.base_fee
            + oracle_breakdown.kpi_fee
            + oracle_breakdown.complexity_premium
        )

        # 6-7. Totals and escrow
        total_fees = final_service_fee + oracle_fee
        escrow = self.calculate_escrow_requirement(budget, final_service_fee, oracle_fee)

        breakdown = FeeBreakdown(
            base_rate=base_rate,
            base_fee=base_fee,
            complexity_multiplier=multiplier,
            complexity_adjusted_fee=complexity_adjusted_fee,
            reputation_score=profile.reputation_score,
            spend_tier=spend_tier.name,
            reputation_discount=discount_rate,
            discount_amount=discount_amount,
            service_fee_before_token=service_fee_before_token,
            aw3_token_discount=token_rate,
            aw3_discount_amount=token_discount_amount,
            final_service_fee=final_service_fee,
            oracle_fee=oracle_fee,
            oracle_fee_breakdown=oracle_breakdown,
        )

        # 8. Quote finalisation
        issued_at = self.clock()
        unsigned = FeeEstimate(
            fee_estimate_id=generate_estimate_id(),
            campaign_budget=budget,
            fee_breakdown=breakdown,
            total_fees=total_fees,
            escrow_requirement=escrow,
            valid_until=issued_at + timedelta(seconds=self.schedule.quote_validity_seconds),
            calculation_snapshot=self._build_calculation_snapshot(
                request, profile, spend_tier, base_rate, multiplier, discount_rate, token_rate
            ),
        )
        estimate = unsigned.model_copy(update={"signature": self.signer.sign(unsigned)})

        self.logger.info(
            "Fee estimate %s: budget=%s complexity=%s total_fees=%s escrow=%s",
            estimate.fee_estimate_id,
            budget,
            complexity.value,
            total_fees,
            escrow.total_required,
        )
        return estimate

    def validate_request(self, request: FeeEstimateRequest, profile: RequesterProfile) -> None:
        """
        Check the ranges the request models leave open.

        Raises:
            InvalidInputError: On the first offending field.
        """
        try:
            self._validate(request, profile)
        except InvalidInputError as exc:
            self.logger.warning("Rejected fee estimate input: %s", exc)
            raise

    # =========================================================================
    # Calculation Steps
    # =========================================================================

    def determine_base_rate(self, budget: Decimal) -> Decimal:
        """Rate of the first tier whose upper bound is >= ``budget``."""
        return self.schedule.base_rate_for(budget)

    def complexity_multiplier(self, complexity: Complexity) -> Decimal:
        return self.schedule.multiplier_for(complexity)

    def spend_discount_rate(self, cumulative_spend: Decimal) -> Decimal:
        """
        Discount rate from the requester's spend tier, capped at the maximum.

        The reputation score does not influence the discount; it is reported in
        the breakdown for transparency only.
        """
        tier = self.schedule.spend_tier_for(cumulative_spend)
        return min(tier.discount_rate, self.schedule.max_spend_discount)

    def calculate_oracle_fee(self, kpi_count: int, multiplier: Decimal) -> OracleFeeBreakdown:
        """
        Oracle verification fee components.

        Args:
            kpi_count: Number of KPIs to verify.
            multiplier: Complexity multiplier of the campaign.

        Returns:
            OracleFeeBreakdown: Base fee, KPIs beyond the included threshold,
            their fee, and the complexity premium.
        """
        schedule = self.schedule
        additional_kpis = max(0, kpi_count - schedule.oracle_included_kpis)
        base_fee = _to_cents(schedule.oracle_base_fee)
        kpi_fee = _to_cents(schedule.oracle_kpi_fee * additional_kpis)
        complexity_premium = _to_cents(
            (base_fee + kpi_fee) * schedule.oracle_complexity_premium_rate * multiplier
        )
        return OracleFeeBreakdown(
            base_fee=base_fee,
            additional_kpis=additional_kpis,
            kpi_fee=kpi_fee,
            complexity_premium=complexity_premium,
        )

    def calculate_escrow_requirement(
        self, budget: Decimal, service_fee: Decimal, oracle_fee: Decimal
    ) -> EscrowRequirement:
        """Escrow to lock: budget, fees and a buffer over both."""
        percentage = self.schedule.buffer_percentage
        total_fees = service_fee + oracle_fee
        buffer = _to_cents((budget + total_fees) * percentage / Decimal("100"))
        return EscrowRequirement(
            campaign_budget=budget,
            service_fee=service_fee,
            oracle_fee=oracle_fee,
            buffer=buffer,
            total_required=budget + total_fees + buffer,
            buffer_percentage=percentage,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _validate(self, request: FeeEstimateRequest, profile: RequesterProfile) -> None:
        budget = request.campaign_budget
        if not budget.is_finite() or budget <= 0:
            raise InvalidInputError("campaignBudget", "Budget must be positive")
        if budget > MAX_CAMPAIGN_BUDGET:
            raise InvalidInputError(
                "campaignBudget", f"Budget cannot exceed {MAX_CAMPAIGN_BUDGET:,}"
            )

        valid = {c.value for c in Complexity}
        if request.complexity not in valid:
            raise InvalidInputError(
                "complexity",
                f"Unrecognized complexity '{request.complexity}'. "
                f"Must be one of: {', '.join(sorted(valid))}",
            )

        if request.requested_creators is not None and request.requested_creators < 1:
            raise InvalidInputError("requestedCreators", "Requested creators must be positive")
        if request.kpi_count is not None and request.kpi_count < 0:
            raise InvalidInputError("kpiCount", "KPI count cannot be negative")
        if request.estimated_duration is not None and request.estimated_duration < 1:
            raise InvalidInputError("estimatedDuration", "Duration must be at least one day")

        for index, metric in enumerate(request.kpi_metrics):
            if metric.target < 0:
                raise InvalidInputError(f"kpiMetrics[{index}].target", "Target cannot be negative")
            if metric.weight < 0:
                raise InvalidInputError(f"kpiMetrics[{index}].weight", "Weight cannot be negative")

        if profile.reputation_score < 0:
            raise InvalidInputError("reputationScore", "Reputation score cannot be negative")
        if profile.cumulative_spend < 0:
            raise InvalidInputError("cumulativeSpend", "Cumulative spend cannot be negative")

    def _build_calculation_snapshot(
        self,
        request: FeeEstimateRequest,
        profile: RequesterProfile,
        spend_tier: SpendTier,
        base_rate: Decimal,
        multiplier: Decimal,
        discount_rate: Decimal,
        token_rate: Decimal,
    ) -> dict[str, Any]:
        schedule = self.schedule
        return {
            "budgetAmount": str(request.campaign_budget),
            "category": request.category,
            "complexity": request.complexity,
            "numberOfCreators": request.requested_creators,
            "estimatedDuration": request.estimated_duration,
            "kpiCount": request.effective_kpi_count,
            "useAW3Token": request.use_aw3_token,
            "projectReputationScore": str(profile.reputation_score),
            "projectCumulativeSpend": str(profile.cumulative_spend),
            "spendTier": spend_tier.name,
            "baseRate": str(base_rate),
            "complexityMultiplier": str(multiplier),
            "reputationDiscount": str(discount_rate),
            "aw3TokenDiscount": str(token_rate),
            "oracleBaseFee": str(schedule.oracle_base_fee),
            "oracleIncludedKpis": schedule.oracle_included_kpis,
            "oracleKpiFee": str(schedule.oracle_kpi_fee),
            "oracleComplexityPremiumRate": str(schedule.oracle_complexity_premium_rate),
            "bufferPercentage": str(schedule.buffer_percentage),
        }


__all__ = ["CENTS", "MAX_CAMPAIGN_BUDGET", "FeeCalculationService"]
