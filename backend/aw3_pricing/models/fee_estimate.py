"""
Fee Estimate Models for AW3 Pricing.

Pydantic models for the fee estimation contract:

- ``FeeEstimateRequest`` / ``KpiMetric``: campaign parameters sent by a project
- ``RequesterProfile``: reputation and spend figures resolved by the caller
- ``FeeEstimate`` with ``FeeBreakdown``, ``OracleFeeBreakdown`` and
  ``EscrowRequirement``: the signed, time-boxed quote

Wire names are camelCase (``campaignBudget``, ``useAW3Token``, ...); Python
attributes are snake_case. Output models are frozen and serialise Decimals as
strings so no precision is lost in JSON.

Request models only check structure. Range and enum checks are performed by
``FeeCalculationService.validate_request`` so that they surface as
``InvalidInputError`` with the offending field named.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Request Models
# =============================================================================


class KpiMetric(BaseModel):
    """
    KPI the oracle will verify for a campaign.

    Attributes:
        metric: KPI name, e.g. ``impressions``.
        source: Data source, normalised to upper case (TWITTER, ONCHAIN, ...).
        target: Numeric target for the KPI.
        weight: Relative weight of the KPI in the impact score.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    metric: str = Field(..., min_length=1, description="KPI name")
    source: str = Field(default="TWITTER", description="Data source for oracle verification")
    target: float = Field(default=0.0, description="Numeric KPI target")
    weight: float = Field(default=1.0, description="Relative KPI weight")

    @field_validator("source", mode="before")
    @classmethod
    def normalize_source(cls, value: Any) -> str:
        if value is None:
            return "TWITTER"
        return str(value).strip().upper()


class FeeEstimateRequest(BaseModel):
    """
    Campaign parameters for a fee estimate.

    Example:
        >>> FeeEstimateRequest.model_validate(
        ...     {"campaignBudget": "10000", "category": "DeFi", "complexity": "complex"}
        ... )
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )

    campaign_budget: Decimal = Field(..., description="Campaign budget, must be positive")
    category: str = Field(..., description="Campaign category, e.g. DeFi or NFT")
    complexity: str = Field(
        default="standard", description="simple | standard | complex | enterprise"
    )
    estimated_duration: int | None = Field(default=None, description="Duration in days")
    kpi_count: int | None = Field(default=None, description="Declared number of KPIs")
    requested_creators: int | None = Field(
        default=None, description="Number of creators requested, positive when given"
    )
    use_aw3_token: bool = Field(
        default=False, alias="useAW3Token", description="Pay fees in the native AW3 token"
    )
    kpi_metrics: list[KpiMetric] = Field(default_factory=list, description="KPIs to verify")

    @field_validator("complexity", mode="before")
    @classmethod
    def normalize_complexity(cls, value: Any) -> str:
        if value is None:
            return "standard"
        return str(value).strip().lower()

    @field_validator("kpi_metrics", mode="before")
    @classmethod
    def default_kpi_metrics(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def effective_kpi_count(self) -> int:
        """KPI count used for pricing: the metric list wins over the declared count."""
        if self.kpi_metrics:
            return len(self.kpi_metrics)
        return self.kpi_count or 0


class RequesterProfile(BaseModel):
    """Reputation and spend figures of the requesting project."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    reputation_score: Decimal = Field(default=Decimal("0"), description="Reputation score")
    cumulative_spend: Decimal = Field(
        default=Decimal("0"), description="Total historical spend on the platform"
    )


# =============================================================================
# Output Models
# =============================================================================


class _QuoteModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class OracleFeeBreakdown(_QuoteModel):
    """Components of the oracle verification fee."""

    base_fee: Decimal
    additional_kpis: int = Field(..., alias="additionalKPIs")
    kpi_fee: Decimal
    complexity_premium: Decimal


class FeeBreakdown(_QuoteModel):
    """
    Itemised service and oracle fee computation.

    Rates and multipliers are reported as configured; amounts are rounded to
    cents. ``reputation_discount`` is the spend-tier discount rate.
    """

    base_rate: Decimal
    base_fee: Decimal
    complexity_multiplier: Decimal
    complexity_adjusted_fee: Decimal
    reputation_score: Decimal
    spend_tier: str
    reputation_discount: Decimal
    discount_amount: Decimal
    service_fee_before_token: Decimal
    aw3_token_discount: Decimal
    aw3_discount_amount: Decimal
    final_service_fee: Decimal
    oracle_fee: Decimal
    oracle_fee_breakdown: OracleFeeBreakdown


class EscrowRequirement(_QuoteModel):
    """Funds a project must lock in escrow before the campaign starts."""

    campaign_budget: Decimal
    service_fee: Decimal
    oracle_fee: Decimal
    buffer: Decimal
    total_required: Decimal
    buffer_percentage: Decimal


class FeeEstimate(_QuoteModel):
    """
    Signed, time-boxed fee quote.

    Everything except ``fee_estimate_id``, ``valid_until`` and ``signature`` is
    a deterministic function of the request, the requester profile and the
    fee schedule.
    """

    fee_estimate_id: str
    campaign_budget: Decimal
    fee_breakdown: FeeBreakdown
    total_fees: Decimal
    escrow_requirement: EscrowRequirement
    valid_until: datetime
    signature: str = ""
    calculation_snapshot: dict[str, Any] = Field(default_factory=dict)

    def signing_payload(self) -> str:
        """
        Canonical string bound by the quote signature.

        Covers the estimate id, expiry and every monetary figure of the quote.
        The signature field itself is excluded.
        """
        breakdown = self.fee_breakdown
        oracle = breakdown.oracle_fee_breakdown
        escrow = self.escrow_requirement
        parts = [
            self.fee_estimate_id,
            self.valid_until.isoformat(),
            self.campaign_budget,
            breakdown.base_rate,
            breakdown.base_fee,
            breakdown.complexity_multiplier,
            breakdown.complexity_adjusted_fee,
            breakdown.reputation_discount,
            breakdown.discount_amount,
            breakdown.service_fee_before_token,
            breakdown.aw3_token_discount,
            breakdown.aw3_discount_amount,
            breakdown.final_service_fee,
            breakdown.oracle_fee,
            oracle.base_fee,
            oracle.additional_kpis,
            oracle.kpi_fee,
            oracle.complexity_premium,
            self.total_fees,
            escrow.campaign_budget,
            escrow.service_fee,
            escrow.oracle_fee,
            escrow.buffer,
            escrow.total_required,
            escrow.buffer_percentage,
        ]
        return "|".join(str(part) for part in parts)


__all__ = [
    "EscrowRequirement",
    "FeeBreakdown",
    "FeeEstimate",
    "FeeEstimateRequest",
    "KpiMetric",
    "OracleFeeBreakdown",
    "RequesterProfile",
]
