"""
Core infrastructure for the AW3 pricing backend application.

- exceptions: Domain errors raised by the pricing services
- profiles: Requester profile provider and its FastAPI dependency
- redis_client: Redis async client holding issued quotes
"""
