"""
Services module for the AW3 pricing backend application.

- fee_calculation_service: Deterministic fee quote calculation and signing
- quote_service: Quote caching and single-use redemption
- cvpi_service: Cost-to-Verified-Impact scoring

Services are constructed per request through FastAPI dependencies in
``aw3_pricing.api.dependencies``.
"""
