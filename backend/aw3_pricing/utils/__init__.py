"""
Utilities Package for the AW3 Pricing Backend Application.

Modules:
--------
logger:
    Structured logging configuration (JSON and text formatters,
    application-wide setup with Uvicorn integration, context adapters).

security:
    Fee quote signing with HMAC-SHA256 and estimate id generation.
"""
