"""
Fee Schedule Configuration Models for AW3 Pricing.

This module defines the immutable pricing configuration consumed by the fee
calculator. A ``FeeSchedule`` bundles every numeric option of the economic
model into one validated value object:

- Budget-tiered base rates (bracket-selected, not marginal)
- Complexity multipliers (simple / standard / complex / enterprise)
- Cumulative-spend discount tiers (bronze / silver / gold / platinum)
- Native token payment discount
- Oracle verification fee parameters
- Escrow buffer percentage and quote validity window

The schedule is built once at startup (see ``Settings.fee_schedule``) and
passed into ``FeeCalculationService`` at construction.

Example:
    >>> schedule = FeeSchedule.default()
    >>> schedule.base_rate_for(Decimal("5000"))
    Decimal('0.10')
"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Constants
# =============================================================================

# Upper limit for the combined spend-based discount (40%)
MAX_SPEND_DISCOUNT = Decimal("0.40")

# Quote validity window in seconds (15 minutes)
DEFAULT_QUOTE_VALIDITY_SECONDS = 900


# =============================================================================
# Enumerations
# =============================================================================


class Complexity(str, Enum):
    """
    Qualitative campaign-difficulty classification driving the fee multiplier.

    Attributes:
        SIMPLE: Single deliverable, light coordination.
        STANDARD: Typical multi-creator campaign.
        COMPLEX: Heavy coordination or many deliverables.
        ENTERPRISE: Complex campaigns with bespoke terms.
    """

    SIMPLE = "simple"
    STANDARD = "standard"
    COMPLEX = "complex"
    ENTERPRISE = "enterprise"


# =============================================================================
# Tier Models
# =============================================================================


class BaseRateTier(BaseModel):
    """
    One budget bracket of the base service-fee schedule.

    A budget belongs to the first tier whose ``upper_bound`` is greater than or
    equal to it. The final tier has no upper bound and catches everything else.
    """

    model_config = ConfigDict(frozen=True)

    upper_bound: Decimal | None = Field(
        default=None, description="Inclusive budget ceiling; None for the uncapped tier"
    )
    rate: Decimal = Field(..., ge=0, le=1, description="Base service-fee rate for the bracket")


class SpendTier(BaseModel):
    """Cumulative-spend loyalty tier granting a service-fee discount."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Tier label, e.g. bronze or gold")
    min_spend: Decimal = Field(..., ge=0, description="Cumulative spend needed to enter the tier")
    discount_rate: Decimal = Field(..., ge=0, le=1, description="Discount applied to the fee")


# =============================================================================
# Fee Schedule
# =============================================================================


class FeeSchedule(BaseModel):
    """
    Immutable pricing configuration for campaign fee estimation.

    All monetary options are Decimals. Instances are frozen, so a single
    schedule can be shared across concurrent requests without copying.

    Attributes:
        base_rate_tiers: Budget brackets in ascending order, last one uncapped.
        complexity_multipliers: Multiplier per complexity level. Enterprise may
            be omitted, in which case the complex multiplier is used.
        spend_tiers: Spend tiers in ascending ``min_spend`` order, first at 0.
        max_spend_discount: Cap on the spend-tier discount rate.
        token_discount_rate: Discount for paying in the native token.
        oracle_base_fee: Flat oracle verification fee.
        oracle_included_kpis: KPIs covered by the base oracle fee.
        oracle_kpi_fee: Fee per KPI beyond the included threshold.
        oracle_complexity_premium_rate: Premium on the oracle base + KPI fee,
            scaled by the complexity multiplier.
        buffer_percentage: Escrow buffer as a percentage of budget + fees.
        quote_validity_seconds: How long an issued quote may be redeemed.
    """

    model_config = ConfigDict(frozen=True)

    base_rate_tiers: tuple[BaseRateTier, ...]
    complexity_multipliers: dict[Complexity, Decimal]
    spend_tiers: tuple[SpendTier, ...]
    max_spend_discount: Decimal = Field(default=MAX_SPEND_DISCOUNT, ge=0, le=1)
    token_discount_rate: Decimal = Field(default=Decimal("0.20"), ge=0, le=1)
    oracle_base_fee: Decimal = Field(default=Decimal("50.00"), ge=0)
    oracle_included_kpis: int = Field(default=3, ge=0)
    oracle_kpi_fee: Decimal = Field(default=Decimal("10.00"), ge=0)
    oracle_complexity_premium_rate: Decimal = Field(default=Decimal("0.20"), ge=0)
    buffer_percentage: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    quote_validity_seconds: int = Field(default=DEFAULT_QUOTE_VALIDITY_SECONDS, gt=0)

    @model_validator(mode="after")
    def _check_tiers(self) -> "FeeSchedule":
        tiers = self.base_rate_tiers
        if not tiers:
            raise ValueError("At least one base rate tier is required")
        if tiers[-1].upper_bound is not None:
            raise ValueError("The last base rate tier must be uncapped")
        bounds = [tier.upper_bound for tier in tiers[:-1]]
        if any(bound is None for bound in bounds):
            raise ValueError("Only the last base rate tier may be uncapped")
        if any(lower >= upper for lower, upper in zip(bounds, bounds[1:])):
            raise ValueError("Base rate tier bounds must be strictly ascending")

        for required in (Complexity.SIMPLE, Complexity.STANDARD, Complexity.COMPLEX):
            if required not in self.complexity_multipliers:
                raise ValueError(f"Missing complexity multiplier for '{required.value}'")

        spend = self.spend_tiers
        if not spend or spend[0].min_spend != 0:
            raise ValueError("The first spend tier must start at zero spend")
        if any(a.min_spend >= b.min_spend for a, b in zip(spend, spend[1:])):
            raise ValueError("Spend tier thresholds must be strictly ascending")
        for tier in spend:
            if tier.discount_rate > self.max_spend_discount:
                raise ValueError(
                    f"Spend tier '{tier.name}' discount exceeds the "
                    f"{self.max_spend_discount} cap"
                )
        return self

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def base_rate_for(self, budget: Decimal) -> Decimal:
        """Return the rate of the first tier whose bound is >= ``budget``."""
        for tier in self.base_rate_tiers:
            if tier.upper_bound is None or budget <= tier.upper_bound:
                return tier.rate
        return self.base_rate_tiers[-1].rate

    def multiplier_for(self, complexity: Complexity) -> Decimal:
        """Return the fee multiplier for ``complexity``; enterprise falls back to complex."""
        multiplier = self.complexity_multipliers.get(complexity)
        if multiplier is None and complexity is Complexity.ENTERPRISE:
            return self.complexity_multipliers[Complexity.COMPLEX]
        if multiplier is None:
            raise KeyError(complexity)
        return multiplier

    def spend_tier_for(self, cumulative_spend: Decimal) -> SpendTier:
        """Return the highest spend tier whose threshold ``cumulative_spend`` reaches."""
        selected = self.spend_tiers[0]
        for tier in self.spend_tiers:
            if cumulative_spend >= tier.min_spend:
                selected = tier
        return selected

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def as_config_items(self) -> list[dict[str, Any]]:
        """
        Flatten the schedule into named numeric options.

        Option keys follow the external configuration naming (``tier1Max``,
        ``tier1Rate``, ...). The uncapped tier only reports its rate.

        Returns:
            List of ``{"key", "value", "description"}`` dictionaries.
        """
        items: list[dict[str, Any]] = []
        for index, tier in enumerate(self.base_rate_tiers, start=1):
            if tier.upper_bound is not None:
                items.append(
                    {
                        "key": f"tier{index}Max",
                        "value": str(tier.upper_bound),
                        "description": f"Inclusive budget ceiling of tier {index}",
                    }
                )
            items.append(
                {
                    "key": f"tier{index}Rate",
                    "value": str(tier.rate),
                    "description": f"Base service-fee rate of tier {index}",
                }
            )

        for complexity in Complexity:
            if complexity in self.complexity_multipliers:
                items.append(
                    {
                        "key": f"complexity{complexity.value.capitalize()}Multiplier",
                        "value": str(self.complexity_multipliers[complexity]),
                        "description": f"Fee multiplier for {complexity.value} campaigns",
                    }
                )

        for tier in self.spend_tiers:
            items.append(
                {
                    "key": f"spend{tier.name.capitalize()}Min",
                    "value": str(tier.min_spend),
                    "description": f"Cumulative spend required for the {tier.name} tier",
                }
            )
            items.append(
                {
                    "key": f"spend{tier.name.capitalize()}Discount",
                    "value": str(tier.discount_rate),
                    "description": f"Service-fee discount for the {tier.name} tier",
                }
            )

        scalar_options = [
            ("maxSpendDiscount", self.max_spend_discount, "Cap on the spend-tier discount"),
            ("tokenDiscountRate", self.token_discount_rate, "Discount for native token payment"),
            ("oracleBaseFee", self.oracle_base_fee, "Flat oracle verification fee"),
            ("oracleIncludedKpis", self.oracle_included_kpis, "KPIs covered by the base fee"),
            ("oracleKpiFee", self.oracle_kpi_fee, "Fee per KPI beyond the included count"),
            (
                "oracleComplexityPremiumRate",
                self.oracle_complexity_premium_rate,
                "Oracle premium rate, scaled by the complexity multiplier",
            ),
            ("bufferPercentage", self.buffer_percentage, "Escrow buffer percentage"),
            ("quoteValiditySeconds", self.quote_validity_seconds, "Quote validity window"),
        ]
        for key, value, description in scalar_options:
            items.append({"key": key, "value": str(value), "description": description})

        return items

    @classmethod
    def default(cls) -> "FeeSchedule":
        """Return the schedule with the platform's documented default values."""
        return cls(
            base_rate_tiers=(
                BaseRateTier(upper_bound=Decimal("5000"), rate=Decimal("0.10")),
                BaseRateTier(upper_bound=Decimal("20000"), rate=Decimal("0.08")),
                BaseRateTier(upper_bound=Decimal("50000"), rate=Decimal("0.06")),
                BaseRateTier(upper_bound=None, rate=Decimal("0.04")),
            ),
            complexity_multipliers={
                Complexity.SIMPLE: Decimal("0.8"),
                Complexity.STANDARD: Decimal("1.0"),
                Complexity.COMPLEX: Decimal("1.5"),
            },
            spend_tiers=(
                SpendTier(name="bronze", min_spend=Decimal("0"), discount_rate=Decimal("0.00")),
                SpendTier(name="silver", min_spend=Decimal("10000"), discount_rate=Decimal("0.05")),
                SpendTier(name="gold", min_spend=Decimal("50000"), discount_rate=Decimal("0.15")),
                SpendTier(
                    name="platinum", min_spend=Decimal("100000"), discount_rate=Decimal("0.25")
                ),
            ),
        )


__all__ = [
    "DEFAULT_QUOTE_VALIDITY_SECONDS",
    "MAX_SPEND_DISCOUNT",
    "BaseRateTier",
    "Complexity",
    "FeeSchedule",
    "SpendTier",
]
