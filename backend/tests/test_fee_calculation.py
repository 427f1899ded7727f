"""
AW3 Pricing Fee Calculation Test Suite

Tests for FeeCalculationService covering:
- Budget tier selection, including inclusive tier boundaries
- Complexity multipliers and the enterprise fallback
- Spend-tier discounts and the native token discount
- Oracle fee components
- Escrow requirement arithmetic
- Determinism and quote finalisation (id, expiry, signature, snapshot)
- Input validation with the offending field named
"""

import re

from datetime import timedelta
from decimal import Decimal

import pytest

from aw3_pricing.core.exceptions import InvalidInputError
from aw3_pricing.models.fee_estimate import FeeEstimateRequest, KpiMetric, RequesterProfile
from aw3_pricing.models.fee_schedule import Complexity
from aw3_pricing.services.fee_calculation_service import FeeCalculationService

from .conftest import FIXED_NOW


def make_request(budget: str, complexity: str = "standard", **kwargs) -> FeeEstimateRequest:
    return FeeEstimateRequest(
        campaign_budget=Decimal(budget), category="DeFi", complexity=complexity, **kwargs
    )


def kpis(count: int) -> list[KpiMetric]:
    return [KpiMetric(metric=f"metric-{i}", target=1000, weight=1) for i in range(count)]


# =============================================================================
# Worked Scenarios
# =============================================================================


class TestWorkedScenarios:
    """End-to-end figures for representative campaigns."""

    def test_small_standard_campaign_new_project(
        self,
        calculator: FeeCalculationService,
        basic_request: FeeEstimateRequest,
        new_project: RequesterProfile,
    ) -> None:
        estimate = calculator.estimate(basic_request, new_project)
        breakdown = estimate.fee_breakdown

        assert breakdown.base_rate == Decimal("0.10")
        assert breakdown.base_fee == Decimal("300.00")
        assert breakdown.complexity_adjusted_fee == Decimal("300.00")
        assert breakdown.spend_tier == "bronze"
        assert breakdown.discount_amount == Decimal("0.00")
        assert breakdown.final_service_fee == Decimal("300.00")
        assert breakdown.oracle_fee == Decimal("60.00")
        assert estimate.total_fees == Decimal("360.00")
        assert estimate.escrow_requirement.buffer == Decimal("336.00")
        assert estimate.escrow_requirement.total_required == Decimal("3696.00")

    def test_complex_campaign_gold_project(
        self, calculator: FeeCalculationService, gold_project: RequesterProfile
    ) -> None:
        estimate = calculator.estimate(make_request("10000", "complex"), gold_project)
        breakdown = estimate.fee_breakdown

        assert breakdown.base_rate == Decimal("0.08")
        assert breakdown.base_fee == Decimal("800.00")
        assert breakdown.complexity_multiplier == Decimal("1.5")
        assert breakdown.complexity_adjusted_fee == Decimal("1200.00")
        assert breakdown.spend_tier == "gold"
        assert breakdown.reputation_discount == Decimal("0.15")
        assert breakdown.discount_amount == Decimal("180.00")
        assert breakdown.service_fee_before_token == Decimal("1020.00")
        assert breakdown.final_service_fee == Decimal("1020.00")
        assert breakdown.oracle_fee_breakdown.complexity_premium == Decimal("15.00")
        assert breakdown.oracle_fee == Decimal("65.00")
        assert estimate.total_fees == Decimal("1085.00")
        assert estimate.escrow_requirement.buffer == Decimal("1108.50")
        assert estimate.escrow_requirement.total_required == Decimal("12193.50")

    def test_token_discount_applies_after_spend_discount(
        self, calculator: FeeCalculationService, gold_project: RequesterProfile
    ) -> None:
        request = make_request("10000", "complex", use_aw3_token=True)

        breakdown = calculator.estimate(request, gold_project).fee_breakdown

        assert breakdown.aw3_token_discount == Decimal("0.20")
        assert breakdown.aw3_discount_amount == Decimal("204.00")
        assert breakdown.final_service_fee == Decimal("816.00")

    def test_oracle_fee_is_never_discounted(
        self, calculator: FeeCalculationService, gold_project: RequesterProfile
    ) -> None:
        plain = calculator.estimate(make_request("10000", "complex"), gold_project)
        with_token = calculator.estimate(
            make_request("10000", "complex", use_aw3_token=True), gold_project
        )

        assert plain.fee_breakdown.oracle_fee == with_token.fee_breakdown.oracle_fee


# =============================================================================
# Base Rate Tiers
# =============================================================================


class TestBaseRateTiers:
    @pytest.mark.parametrize(
        ("budget", "expected_rate"),
        [
            ("100", "0.10"),
            ("5000", "0.10"),
            ("5000.01", "0.08"),
            ("20000", "0.08"),
            ("20000.01", "0.06"),
            ("50000", "0.06"),
            ("50001", "0.04"),
            ("1000000", "0.04"),
        ],
    )
    def test_tier_selection(
        self, calculator: FeeCalculationService, budget: str, expected_rate: str
    ) -> None:
        assert calculator.determine_base_rate(Decimal(budget)) == Decimal(expected_rate)

    def test_boundary_budget_uses_lower_tier_rate(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        estimate = calculator.estimate(make_request("5000"), new_project)

        assert estimate.fee_breakdown.base_rate == Decimal("0.10")
        assert estimate.fee_breakdown.base_fee == Decimal("500.00")

    def test_monetary_figures_rounded_half_up_to_cents(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        estimate = calculator.estimate(make_request("1234.56", "simple"), new_project)

        assert estimate.fee_breakdown.base_fee == Decimal("123.46")
        assert estimate.fee_breakdown.complexity_adjusted_fee == Decimal("98.77")


# =============================================================================
# Complexity Multipliers
# =============================================================================


class TestComplexityMultipliers:
    @pytest.mark.parametrize(
        ("complexity", "expected"),
        [
            (Complexity.SIMPLE, "0.8"),
            (Complexity.STANDARD, "1.0"),
            (Complexity.COMPLEX, "1.5"),
            (Complexity.ENTERPRISE, "1.5"),
        ],
    )
    def test_multiplier_values(
        self, calculator: FeeCalculationService, complexity: Complexity, expected: str
    ) -> None:
        assert calculator.complexity_multiplier(complexity) == Decimal(expected)

    def test_simple_campaign_reduces_fee(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        breakdown = calculator.estimate(make_request("1000", "simple"), new_project).fee_breakdown

        assert breakdown.base_fee == Decimal("100.00")
        assert breakdown.complexity_adjusted_fee == Decimal("80.00")

    def test_complexity_is_case_insensitive(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        breakdown = calculator.estimate(make_request("1000", "COMPLEX"), new_project).fee_breakdown

        assert breakdown.complexity_multiplier == Decimal("1.5")

    def test_missing_complexity_defaults_to_standard(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        request = FeeEstimateRequest.model_validate({"campaignBudget": "1000", "category": "NFT"})

        breakdown = calculator.estimate(request, new_project).fee_breakdown

        assert breakdown.complexity_multiplier == Decimal("1.0")


# =============================================================================
# Spend Tier Discounts
# =============================================================================


class TestSpendTierDiscounts:
    @pytest.mark.parametrize(
        ("spend", "expected_rate"),
        [
            ("0", "0"),
            ("9999.99", "0"),
            ("10000", "0.05"),
            ("49999", "0.05"),
            ("50000", "0.15"),
            ("100000", "0.25"),
            ("1000000000", "0.25"),
        ],
    )
    def test_discount_by_cumulative_spend(
        self, calculator: FeeCalculationService, spend: str, expected_rate: str
    ) -> None:
        assert calculator.spend_discount_rate(Decimal(spend)) == Decimal(expected_rate)

    def test_discount_never_exceeds_cap(self, calculator: FeeCalculationService) -> None:
        rate = calculator.spend_discount_rate(Decimal("99999999999"))

        assert rate <= calculator.schedule.max_spend_discount

    def test_reputation_score_alone_grants_no_discount(
        self, calculator: FeeCalculationService
    ) -> None:
        profile = RequesterProfile(reputation_score=Decimal("95"), cumulative_spend=Decimal("0"))

        breakdown = calculator.estimate(make_request("3000"), profile).fee_breakdown

        assert breakdown.reputation_score == Decimal("95")
        assert breakdown.reputation_discount == Decimal("0")
        assert breakdown.discount_amount == Decimal("0.00")

    def test_no_token_discount_without_token_payment(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        breakdown = calculator.estimate(make_request("3000"), new_project).fee_breakdown

        assert breakdown.aw3_token_discount == Decimal("0")
        assert breakdown.aw3_discount_amount == Decimal("0.00")
        assert breakdown.final_service_fee == breakdown.service_fee_before_token


# =============================================================================
# Oracle Fee
# =============================================================================


class TestOracleFee:
    def test_zero_kpis_charges_base_fee_and_premium(
        self, calculator: FeeCalculationService
    ) -> None:
        oracle = calculator.calculate_oracle_fee(0, Decimal("1.0"))

        assert oracle.base_fee == Decimal("50.00")
        assert oracle.additional_kpis == 0
        assert oracle.kpi_fee == Decimal("0.00")
        assert oracle.complexity_premium == Decimal("10.00")

    def test_included_kpis_cost_nothing_extra(self, calculator: FeeCalculationService) -> None:
        oracle = calculator.calculate_oracle_fee(3, Decimal("1.0"))

        assert oracle.additional_kpis == 0
        assert oracle.kpi_fee == Decimal("0.00")

    def test_kpis_beyond_threshold_are_charged(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        request = make_request("3000", kpi_metrics=kpis(5))

        breakdown = calculator.estimate(request, new_project).fee_breakdown

        assert breakdown.oracle_fee_breakdown.additional_kpis == 2
        assert breakdown.oracle_fee_breakdown.kpi_fee == Decimal("20.00")
        assert breakdown.oracle_fee_breakdown.complexity_premium == Decimal("14.00")
        assert breakdown.oracle_fee == Decimal("84.00")

    def test_metric_list_wins_over_declared_count(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        request = make_request("3000", kpi_count=10, kpi_metrics=kpis(2))

        estimate = calculator.estimate(request, new_project)

        assert estimate.fee_breakdown.oracle_fee_breakdown.additional_kpis == 0
        assert estimate.calculation_snapshot["kpiCount"] == 2

    def test_declared_count_used_without_metrics(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        estimate = calculator.estimate(make_request("3000", kpi_count=4), new_project)

        assert estimate.fee_breakdown.oracle_fee_breakdown.additional_kpis == 1

    def test_premium_scales_with_complexity(self, calculator: FeeCalculationService) -> None:
        simple = calculator.calculate_oracle_fee(0, Decimal("0.8"))
        complex_ = calculator.calculate_oracle_fee(0, Decimal("1.5"))

        assert simple.complexity_premium == Decimal("8.00")
        assert complex_.complexity_premium == Decimal("15.00")


# =============================================================================
# Escrow Requirement
# =============================================================================


class TestEscrowRequirement:
    def test_buffer_is_percentage_of_budget_and_fees(
        self, calculator: FeeCalculationService
    ) -> None:
        escrow = calculator.calculate_escrow_requirement(
            Decimal("10000"), Decimal("1020.00"), Decimal("65.00")
        )

        assert escrow.buffer_percentage == Decimal("10")
        assert escrow.buffer == Decimal("1108.50")
        assert escrow.total_required == Decimal("12193.50")

    @pytest.mark.parametrize("budget", ["1", "4999.99", "20000", "73210.55", "250000"])
    def test_total_required_is_exact_sum(
        self,
        calculator: FeeCalculationService,
        gold_project: RequesterProfile,
        budget: str,
    ) -> None:
        estimate = calculator.estimate(
            make_request(budget, "enterprise", kpi_metrics=kpis(6)), gold_project
        )
        escrow = estimate.escrow_requirement
        breakdown = estimate.fee_breakdown

        assert estimate.total_fees == breakdown.final_service_fee + breakdown.oracle_fee
        assert escrow.total_required == (
            escrow.campaign_budget + escrow.service_fee + escrow.oracle_fee + escrow.buffer
        )
        assert escrow.service_fee == breakdown.final_service_fee
        assert escrow.oracle_fee == breakdown.oracle_fee


# =============================================================================
# Quote Finalisation
# =============================================================================


class TestQuoteFinalisation:
    def test_estimate_id_format(
        self,
        calculator: FeeCalculationService,
        basic_request: FeeEstimateRequest,
        new_project: RequesterProfile,
    ) -> None:
        estimate = calculator.estimate(basic_request, new_project)

        assert re.fullmatch(r"est-[0-9a-f]{8}", estimate.fee_estimate_id)

    def test_quote_valid_for_fifteen_minutes(
        self,
        calculator: FeeCalculationService,
        basic_request: FeeEstimateRequest,
        new_project: RequesterProfile,
    ) -> None:
        estimate = calculator.estimate(basic_request, new_project)

        assert estimate.valid_until == FIXED_NOW + timedelta(seconds=900)

    def test_quote_is_signed(
        self,
        calculator: FeeCalculationService,
        basic_request: FeeEstimateRequest,
        new_project: RequesterProfile,
    ) -> None:
        estimate = calculator.estimate(basic_request, new_project)

        assert re.fullmatch(r"0x[0-9a-f]{64}", estimate.signature)
        assert calculator.signer.verify_signature(estimate)

    def test_identical_inputs_give_identical_figures(
        self,
        calculator: FeeCalculationService,
        gold_project: RequesterProfile,
    ) -> None:
        request = make_request("42000", "complex", use_aw3_token=True, kpi_metrics=kpis(4))

        first = calculator.estimate(request, gold_project)
        second = calculator.estimate(request, gold_project)

        assert first.fee_breakdown == second.fee_breakdown
        assert first.total_fees == second.total_fees
        assert first.escrow_requirement == second.escrow_requirement
        assert first.calculation_snapshot == second.calculation_snapshot
        assert first.fee_estimate_id != second.fee_estimate_id

    def test_snapshot_records_inputs_and_rates(
        self, calculator: FeeCalculationService, gold_project: RequesterProfile
    ) -> None:
        request = make_request("10000", "complex", requested_creators=5, estimated_duration=30)

        snapshot = calculator.estimate(request, gold_project).calculation_snapshot

        assert snapshot["budgetAmount"] == "10000"
        assert snapshot["category"] == "DeFi"
        assert snapshot["complexity"] == "complex"
        assert snapshot["numberOfCreators"] == 5
        assert snapshot["estimatedDuration"] == 30
        assert snapshot["spendTier"] == "gold"
        assert snapshot["baseRate"] == "0.08"
        assert snapshot["complexityMultiplier"] == "1.5"
        assert snapshot["reputationDiscount"] == "0.15"
        assert snapshot["aw3TokenDiscount"] == "0"
        assert snapshot["projectCumulativeSpend"] == "60000"


# =============================================================================
# Input Validation
# =============================================================================


class TestInputValidation:
    @pytest.mark.parametrize("budget", ["0", "-5", "-0.01"])
    def test_non_positive_budget_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile, budget: str
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request(budget), new_project)

        assert exc_info.value.field == "campaignBudget"

    @pytest.mark.parametrize("budget", ["1000000000000.01", "1E+30"])
    def test_budget_above_maximum_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile, budget: str
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request(budget), new_project)

        assert exc_info.value.field == "campaignBudget"

    def test_maximum_budget_priced_to_the_cent(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        estimate = calculator.estimate(make_request("1000000000000"), new_project)

        assert estimate.fee_breakdown.base_fee == Decimal("40000000000.00")
        assert estimate.escrow_requirement.total_required > Decimal("1000000000000")

    def test_unknown_complexity_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request("3000", "ultra"), new_project)

        assert exc_info.value.field == "complexity"
        assert "ultra" in exc_info.value.message

    def test_zero_creators_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request("3000", requested_creators=0), new_project)

        assert exc_info.value.field == "requestedCreators"

    def test_negative_kpi_count_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request("3000", kpi_count=-1), new_project)

        assert exc_info.value.field == "kpiCount"

    def test_negative_kpi_weight_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        metrics = [KpiMetric(metric="impressions", target=100, weight=-1)]

        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request("3000", kpi_metrics=metrics), new_project)

        assert exc_info.value.field == "kpiMetrics[0].weight"

    def test_negative_kpi_target_rejected(
        self, calculator: FeeCalculationService, new_project: RequesterProfile
    ) -> None:
        metrics = kpis(1) + [KpiMetric(metric="clicks", target=-10, weight=1)]

        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request("3000", kpi_metrics=metrics), new_project)

        assert exc_info.value.field == "kpiMetrics[1].target"

    def test_negative_cumulative_spend_rejected(
        self, calculator: FeeCalculationService
    ) -> None:
        profile = RequesterProfile(cumulative_spend=Decimal("-1"))

        with pytest.raises(InvalidInputError) as exc_info:
            calculator.estimate(make_request("3000"), profile)

        assert exc_info.value.field == "cumulativeSpend"

    def test_error_map_names_field(self) -> None:
        error = InvalidInputError("complexity", "Unrecognized complexity 'ultra'")

        assert error.to_error_map() == {"complexity": "Unrecognized complexity 'ultra'"}
