"""
AW3 Pricing CVPI Test Suite

Tests for the Cost-to-Verified-Impact calculation:

    CVPI = (campaign budget + service fee + oracle fee) / verified impact score

Covers precision, percentile bands, input validation, scoring a priced quote
and history summaries.
"""

from decimal import Decimal

import pytest

from aw3_pricing.core.exceptions import InvalidInputError
from aw3_pricing.models.fee_estimate import RequesterProfile
from aw3_pricing.services.cvpi_service import (
    calculate_cvpi,
    cvpi_from_estimate,
    percentile_rank,
    summarize_history,
)
from aw3_pricing.services.fee_calculation_service import FeeCalculationService

from .test_fee_calculation import make_request


class TestCVPICalculation:
    def test_basic_calculation(self) -> None:
        score = calculate_cvpi(
            campaign_budget=Decimal("10000"),
            service_fee=Decimal("1020"),
            oracle_fee=Decimal("65"),
            verified_impact_score=Decimal("30000"),
            category="DeFi",
        )

        assert score.total_cost == Decimal("11085")
        assert score.cvpi_score == Decimal("0.3695")
        assert score.percentile_rank == Decimal("70")
        assert score.category == "DeFi"

    def test_four_decimal_half_up(self) -> None:
        score = calculate_cvpi(Decimal("1"), Decimal("0"), Decimal("0"), Decimal("3"))

        assert score.cvpi_score == Decimal("0.3333")

    @pytest.mark.parametrize("impact", ["0", "-1"])
    def test_non_positive_impact_rejected(self, impact: str) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculate_cvpi(Decimal("100"), Decimal("0"), Decimal("0"), Decimal(impact))

        assert exc_info.value.field == "verifiedImpactScore"

    def test_unscorable_cost_per_impact_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculate_cvpi(Decimal("1E+30"), Decimal("0"), Decimal("0"), Decimal("1"))

        assert exc_info.value.field == "verifiedImpactScore"

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculate_cvpi(Decimal("100"), Decimal("-1"), Decimal("0"), Decimal("10"))

        assert exc_info.value.field == "serviceFee"


class TestPercentileBands:
    @pytest.mark.parametrize(
        ("cvpi", "rank"),
        [
            ("0.10", "90"),
            ("0.30", "90"),
            ("0.3001", "70"),
            ("0.45", "70"),
            ("0.60", "50"),
            ("0.61", "30"),
            ("5", "30"),
        ],
    )
    def test_bands(self, cvpi: str, rank: str) -> None:
        assert percentile_rank(Decimal(cvpi)) == Decimal(rank)


class TestEstimateScoring:
    def test_uses_quote_budget_and_fees(
        self, calculator: FeeCalculationService, gold_project: RequesterProfile
    ) -> None:
        estimate = calculator.estimate(make_request("10000", "complex"), gold_project)

        score = cvpi_from_estimate(estimate, Decimal("30000"))

        assert score.total_cost == Decimal("11085.00")
        assert score.cvpi_score == Decimal("0.3695")
        assert score.category == "DeFi"


class TestHistorySummary:
    def test_summary(self) -> None:
        scores = [
            calculate_cvpi(Decimal("30"), Decimal("0"), Decimal("0"), Decimal("100")),
            calculate_cvpi(Decimal("50"), Decimal("0"), Decimal("0"), Decimal("100")),
        ]

        summary = summarize_history(scores)

        assert summary.average_cvpi == Decimal("0.4000")
        assert summary.best_cvpi == Decimal("0.3000")
        assert summary.worst_cvpi == Decimal("0.5000")
        assert summary.total_campaigns == 2

    def test_empty_history(self) -> None:
        summary = summarize_history([])

        assert summary.total_campaigns == 0
        assert summary.average_cvpi == Decimal("0")
