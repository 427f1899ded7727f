"""
CVPI Calculation Service for AW3 Pricing.

    CVPI = (campaign budget + service fee + oracle fee) / verified impact score

Lower CVPI means better cost efficiency. Scores are reported to four decimal
places and placed into a coarse percentile band for display:

    <= 0.30  ->  90 (top 10%)
    <= 0.45  ->  70 (top 30%)
    <= 0.60  ->  50 (median)
    else     ->  30 (below average)
"""

import logging

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from aw3_pricing.core.exceptions import InvalidInputError
from aw3_pricing.models.cvpi import CVPIScore, CVPISummary
from aw3_pricing.models.fee_estimate import FeeEstimate


# Configure module logger
logger = logging.getLogger(__name__)

# CVPI precision (4 decimal places)
CVPI_PRECISION = Decimal("0.0001")

# (upper bound inclusive, percentile rank)
PERCENTILE_BANDS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("0.30"), Decimal("90")),
    (Decimal("0.45"), Decimal("70")),
    (Decimal("0.60"), Decimal("50")),
)
BELOW_AVERAGE_RANK = Decimal("30")


def percentile_rank(cvpi: Decimal) -> Decimal:
    for bound, rank in PERCENTILE_BANDS:
        if cvpi <= bound:
            return rank
    return BELOW_AVERAGE_RANK


def calculate_cvpi(
    campaign_budget: Decimal,
    service_fee: Decimal,
    oracle_fee: Decimal,
    verified_impact_score: Decimal,
    category: str | None = None,
) -> CVPIScore:
    """
    Compute the CVPI of a completed campaign.

    Args:
        campaign_budget: Budget paid out to creators.
        service_fee: Platform service fee charged.
        oracle_fee: Oracle verification fee charged.
        verified_impact_score: Oracle-verified impact, must be positive.
        category: Optional campaign category carried through.

    Returns:
        CVPIScore with total cost, CVPI and percentile band.

    Raises:
        InvalidInputError: On a non-positive impact score or negative cost.
    """
    if not verified_impact_score.is_finite() or verified_impact_score <= 0:
        raise InvalidInputError("verifiedImpactScore", "Verified impact score must be positive")
    for field, amount in (
        ("campaignBudget", campaign_budget),
        ("serviceFee", service_fee),
        ("oracleFee", oracle_fee),
    ):
        if not amount.is_finite() or amount < 0:
            raise InvalidInputError(field, "Amount cannot be negative")

    total_cost = campaign_budget + service_fee + oracle_fee
    try:
        cvpi = (total_cost / verified_impact_score).quantize(
            CVPI_PRECISION, rounding=ROUND_HALF_UP
        )
    except InvalidOperation as exc:
        raise InvalidInputError(
            "verifiedImpactScore", "Cost per impact is too large to score"
        ) from exc

    logger.info("CVPI %s for total cost %s / impact %s", cvpi, total_cost, verified_impact_score)

    return CVPIScore(
        total_cost=total_cost,
        verified_impact_score=verified_impact_score,
        cvpi_score=cvpi,
        percentile_rank=percentile_rank(cvpi),
        category=category,
    )


def cvpi_from_estimate(estimate: FeeEstimate, verified_impact_score: Decimal) -> CVPIScore:
    """CVPI of a campaign priced by ``estimate``."""
    breakdown = estimate.fee_breakdown
    return calculate_cvpi(
        campaign_budget=estimate.campaign_budget,
        service_fee=breakdown.final_service_fee,
        oracle_fee=breakdown.oracle_fee,
        verified_impact_score=verified_impact_score,
        category=estimate.calculation_snapshot.get("category"),
    )


def summarize_history(scores: Iterable[CVPIScore]) -> CVPISummary:
    """Average, best (lowest) and worst (highest) CVPI over a history."""
    values = [score.cvpi_score for score in scores]
    if not values:
        zero = Decimal("0")
        return CVPISummary(average_cvpi=zero, best_cvpi=zero, worst_cvpi=zero, total_campaigns=0)

    average = (sum(values, Decimal("0")) / len(values)).quantize(
        CVPI_PRECISION, rounding=ROUND_HALF_UP
    )
    return CVPISummary(
        average_cvpi=average,
        best_cvpi=min(values),
        worst_cvpi=max(values),
        total_campaigns=len(values),
    )


__all__ = [
    "CVPI_PRECISION",
    "calculate_cvpi",
    "cvpi_from_estimate",
    "percentile_rank",
    "summarize_history",
]
