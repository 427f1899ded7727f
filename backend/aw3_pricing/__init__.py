"""
AW3 Pricing Backend Application Package

This package contains the AW3 pricing FastAPI application for creator
marketing campaigns. It provides:

- Fee estimation (tiered service fee, complexity multiplier, spend-tier and
  native-token discounts, oracle verification fee, escrow requirement)
- Signed, time-limited fee quotes and single-use quote redemption
- Cost-to-Verified-Impact (CVPI) scoring of completed campaigns

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (exceptions, redis, requester profiles)
- models/: Pydantic data models for fee schedules, quotes and CVPI
- services/: Pricing logic
- utils/: Logging and quote signing helpers
"""

__version__ = "1.0.0"
__app_name__ = "AW3-Pricing"
