"""
CVPI (Cost-to-Verified-Impact) models for AW3 Pricing.

CVPI = total campaign cost / oracle-verified impact score. Lower is better.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CVPIRequest(BaseModel):
    """Inputs of a CVPI calculation for one completed campaign."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    campaign_budget: Decimal = Field(..., description="Campaign budget paid to creators")
    service_fee: Decimal = Field(default=Decimal("0"), description="Final platform service fee")
    oracle_fee: Decimal = Field(default=Decimal("0"), description="Oracle verification fee")
    verified_impact_score: Decimal = Field(..., description="Oracle-verified impact, positive")
    category: str | None = Field(default=None, description="Campaign category")


class CVPIScore(BaseModel):
    """
    Cost efficiency of a campaign.

    Attributes:
        total_cost: Budget plus service and oracle fees.
        verified_impact_score: Impact reported by the oracle.
        cvpi_score: ``total_cost / verified_impact_score`` to 4 decimals.
        percentile_rank: Coarse percentile band (90, 70, 50 or 30).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    total_cost: Decimal
    verified_impact_score: Decimal
    cvpi_score: Decimal = Field(..., alias="cvpiScore")
    percentile_rank: Decimal
    category: str | None = None


class CVPISummary(BaseModel):
    """Aggregate of a creator's CVPI history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    average_cvpi: Decimal = Field(..., alias="averageCVPI")
    best_cvpi: Decimal = Field(..., alias="bestCVPI")
    worst_cvpi: Decimal = Field(..., alias="worstCVPI")
    total_campaigns: int


__all__ = ["CVPIRequest", "CVPIScore", "CVPISummary"]
