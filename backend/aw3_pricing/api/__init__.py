"""
AW3 Pricing API Package.

API endpoints are organized by version under /api/v1, /api/v2, etc.

Package Structure:
    - dependencies.py: Service dependencies (calculator, quote service)
    - v1/: Version 1 API endpoints
        - finance.py: Fee estimation, quote redemption, fee schedule
        - cvpi.py: Cost-to-Verified-Impact calculation
"""
