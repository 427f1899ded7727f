"""
AW3 Pricing API - FastAPI Application Entry Point.

This module initializes the FastAPI application for the AW3 pricing service:

- Application lifespan: logging setup, Redis quote cache connect/close
- CORS middleware for the brand dashboard
- Request logging middleware with timing headers
- Exception handlers mapping pricing errors to HTTP responses
- API router registration under the /api/v1 prefix
- Root and health check endpoints

API Structure:
    /api/v1/project/finance - Fee estimation, quote redemption, fee schedule
    /api/v1/cvpi            - Cost-to-Verified-Impact calculation

Usage:
    # Run with uvicorn directly
    uvicorn aw3_pricing.main:app --host 0.0.0.0 --port 8000 --reload

    # Run as Python module
    python -m aw3_pricing.main
"""

import logging
import time

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aw3_pricing import __version__
from aw3_pricing.api.v1 import api_router
from aw3_pricing.config import get_settings
from aw3_pricing.core.exceptions import (
    InvalidInputError,
    QuoteExpiredError,
    QuoteNotFoundError,
    QuoteSignatureError,
)
from aw3_pricing.core.redis_client import close_redis, get_redis_client, init_redis
from aw3_pricing.utils.logger import setup_logging


# Configure module logger
logger = logging.getLogger(__name__)

# HTTP status code constants
HTTP_ERROR_THRESHOLD = 400  # Status codes >= 400 indicate errors

# Request sections stripped from validation error locations
_LOCATION_SECTIONS = {"body", "query", "path", "header"}


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Manage application startup and shutdown.

    Startup configures logging and connects the Redis quote cache when it is
    enabled. A Redis outage at startup is not fatal: quotes are still issued,
    they just cannot be redeemed until the service restarts with Redis up.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info("AW3 Pricing API starting")
    logger.info("Application: %s (%s)", settings.app_name, settings.app_env)
    logger.info("Host: %s:%s", settings.host, settings.port)

    if settings.quote_cache_enabled:
        try:
            await init_redis(settings)
        except RuntimeError:
            logger.exception("Failed to initialize Redis quote cache")
            logger.warning("Quotes will be issued but cannot be redeemed")
    else:
        logger.info("Quote cache disabled by configuration")

    yield

    logger.info("AW3 Pricing API shutting down")
    await close_redis()
    logger.info("AW3 Pricing API shutdown complete")


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title="AW3 Pricing API",
    description=(
        "Fee estimation for creator marketing campaigns: service fee, oracle "
        "verification fee and escrow requirement, returned as a signed quote."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Log each request with method, path, status and duration.

    Adds ``X-Process-Time`` and ``X-Request-ID`` headers to the response.
    """
    request_id = f"{time.time_ns()}"
    start_time = time.perf_counter()

    logger.debug(
        "Request started: %s %s [Request-ID: %s]", request.method, request.url.path, request_id
    )

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed: %s %s [Request-ID: %s]",
            request.method,
            request.url.path,
            request_id,
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)

    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.INFO if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s [Status: %s] [Time: %sms] [Request-ID: %s]",
        request.method,
        request.url.path,
        response.status_code,
        process_time_ms,
        request_id,
    )

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


def error_response(
    status_code: int, error: str, errors: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "errors": errors or {}},
    )


def _field_name(location: tuple[Any, ...] | list[Any]) -> str:
    """Render a pydantic error location as ``kpiMetrics[0].target``."""
    parts = list(location)
    if parts and parts[0] in _LOCATION_SECTIONS:
        parts = parts[1:]
    name = ""
    for part in parts:
        if isinstance(part, int):
            name += f"[{part}]"
        else:
            name += f".{part}" if name else str(part)
    return name or "body"


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.warning("Invalid input on %s: %s", request.url.path, exc)
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message, exc.to_error_map())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error.get("loc", ())), error.get("msg", "Invalid value"))
    logger.warning("Request validation failed on %s: %s", request.url.path, errors)
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", errors)


@app.exception_handler(QuoteNotFoundError)
async def quote_not_found_handler(_request: Request, exc: QuoteNotFoundError) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(QuoteExpiredError)
async def quote_expired_handler(_request: Request, exc: QuoteExpiredError) -> JSONResponse:
    return error_response(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(QuoteSignatureError)
async def quote_signature_handler(request: Request, exc: QuoteSignatureError) -> JSONResponse:
    logger.warning("Rejected quote on %s: %s", request.url.path, exc)
    return error_response(422, str(exc))


# =============================================================================
# API Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# Core Endpoints
# =============================================================================


@app.get(
    "/",
    response_class=JSONResponse,
    tags=["root"],
    summary="API Root",
    description="Returns API welcome message and version information",
)
async def root() -> dict[str, Any]:
    return {
        "name": "AW3 Pricing API",
        "version": __version__,
        "description": "Campaign fee estimation and signed fee quotes",
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "api_prefix": "/api/v1",
        "endpoints": {
            "finance": "/api/v1/project/finance",
            "cvpi": "/api/v1/cvpi",
        },
    }


@app.get(
    "/health",
    response_class=JSONResponse,
    tags=["health"],
    summary="Health Check",
    description="Returns health status, quote cache state and server timestamp",
)
async def health_check() -> dict[str, Any]:
    """
    Health check endpoint for monitoring and load balancer integration.

    The service is healthy without Redis; ``quote_cache`` reports whether
    issued quotes can currently be redeemed.

    Returns:
        dict: Health status with timestamp
            - status: "healthy" when server is operational
            - quote_cache: "connected", "unavailable" or "disabled"
            - timestamp: Current UTC time in ISO 8601 format
    """
    settings = get_settings()
    redis_client = get_redis_client()

    if not settings.quote_cache_enabled:
        quote_cache = "disabled"
    elif redis_client is not None and await redis_client.ping():
        quote_cache = "connected"
    else:
        quote_cache = "unavailable"

    return {
        "status": "healthy",
        "quote_cache": quote_cache,
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "service": "AW3 Pricing API",
    }


# =============================================================================
# Main Execution Block
# =============================================================================

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "aw3_pricing.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
        access_log=settings.debug,
    )
