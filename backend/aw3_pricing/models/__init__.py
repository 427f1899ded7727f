"""
Models Package for AW3 Pricing.

Pydantic models for the pricing domain. Wire names are camelCase
(``campaignBudget``, ``feeEstimateId``); Python attributes are snake_case.

Models Overview:
    - FeeSchedule: Immutable pricing configuration (tiers, multipliers, fees)
    - FeeEstimateRequest: Campaign parameters submitted for a quote
    - RequesterProfile: Reputation score and cumulative spend of the requester
    - FeeEstimate: Signed quote with fee breakdown and escrow requirement
    - CVPIScore: Cost-to-Verified-Impact of a completed campaign
"""

from aw3_pricing.models.cvpi import CVPIRequest, CVPIScore, CVPISummary
from aw3_pricing.models.fee_estimate import (
    EscrowRequirement,
    FeeBreakdown,
    FeeEstimate,
    FeeEstimateRequest,
    KpiMetric,
    OracleFeeBreakdown,
    RequesterProfile,
)
from aw3_pricing.models.fee_schedule import (
    MAX_SPEND_DISCOUNT,
    BaseRateTier,
    Complexity,
    FeeSchedule,
    SpendTier,
)


__all__ = [
    "MAX_SPEND_DISCOUNT",
    "BaseRateTier",
    "CVPIRequest",
    "CVPIScore",
    "CVPISummary",
    "Complexity",
    "EscrowRequirement",
    "FeeBreakdown",
    "FeeEstimate",
    "FeeEstimateRequest",
    "FeeSchedule",
    "KpiMetric",
    "OracleFeeBreakdown",
    "RequesterProfile",
    "SpendTier",
]
