"""
Pytest Configuration and Test Fixtures for the AW3 Pricing Backend

This module provides shared fixtures including:
- Test Settings with a valid quote signing secret
- Quote signer, default fee schedule and a fixed-clock calculator
- An in-memory stand-in for the Redis quote cache built on AsyncMock
- FastAPI TestClient with service dependencies overridden
- Sample requests and requester profiles
"""

from collections.abc import Generator
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from fastapi.testclient import TestClient

from aw3_pricing.api.dependencies import get_fee_calculation_service, get_quote_service
from aw3_pricing.config import Settings
from aw3_pricing.core.profiles import StaticRequesterProfileProvider, get_profile_provider
from aw3_pricing.core.redis_client import RedisClient
from aw3_pricing.main import app
from aw3_pricing.models.fee_estimate import FeeEstimateRequest, RequesterProfile
from aw3_pricing.models.fee_schedule import FeeSchedule
from aw3_pricing.services.fee_calculation_service import FeeCalculationService
from aw3_pricing.services.quote_service import QuoteService
from aw3_pricing.utils.security import QuoteSigner


TEST_SECRET = "test-quote-signing-secret-minimum-32-chars"

# Issue time used by the fixed-clock calculator
FIXED_NOW = datetime(2025, 1, 15, 10, 30, tzinfo=UTC)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings for an isolated test environment (Redis DB 1, text logs)."""
    return Settings(
        app_env="testing",
        app_name="AW3-Pricing-Test",
        debug=True,
        json_logs=False,
        quote_signing_secret=TEST_SECRET,
        redis_url="redis://localhost:6379/1",
    )


# ==============================================================================
# Pricing Fixtures
# ==============================================================================


@pytest.fixture
def signer() -> QuoteSigner:
    return QuoteSigner(TEST_SECRET)


@pytest.fixture
def schedule() -> FeeSchedule:
    return FeeSchedule.default()


@pytest.fixture
def calculator(signer: QuoteSigner, schedule: FeeSchedule) -> FeeCalculationService:
    """Calculator whose quotes are always issued at ``FIXED_NOW``."""
    return FeeCalculationService(signer=signer, schedule=schedule, clock=lambda: FIXED_NOW)


@pytest.fixture
def live_calculator(signer: QuoteSigner, schedule: FeeSchedule) -> FeeCalculationService:
    """Calculator using the wall clock, for quotes redeemed through the API."""
    return FeeCalculationService(signer=signer, schedule=schedule)


@pytest.fixture
def basic_request() -> FeeEstimateRequest:
    return FeeEstimateRequest(
        campaign_budget=Decimal("3000"), category="DeFi", complexity="standard"
    )


@pytest.fixture
def new_project() -> RequesterProfile:
    return RequesterProfile()


@pytest.fixture
def gold_project() -> RequesterProfile:
    return RequesterProfile(reputation_score=Decimal("80"), cumulative_spend=Decimal("60000"))


# ==============================================================================
# Redis Fixtures
# ==============================================================================


@pytest.fixture
def cache_store() -> dict[str, Any]:
    """Backing dict of the mocked quote cache."""
    return {}


@pytest.fixture
def mock_redis_client(cache_store: dict[str, Any]) -> MagicMock:
    """
    RedisClient stand-in keeping JSON values in ``cache_store``.

    ``set_json``, ``get_json``, ``getdel_json`` and ``delete`` are AsyncMocks so tests can
    assert on their calls.
    """

    async def _set_json(key: str, value: Any, ttl: int | None = None) -> bool:
        cache_store[key] = value
        return True

    async def _get_json(key: str) -> Any | None:
        return cache_store.get(key)

    async def _getdel_json(key: str) -> Any | None:
        return cache_store.pop(key, None)

    async def _delete(key: str) -> bool:
        return cache_store.pop(key, None) is not None

    client = MagicMock(spec=RedisClient)
    client.set_json = AsyncMock(side_effect=_set_json)
    client.get_json = AsyncMock(side_effect=_get_json)
    client.getdel_json = AsyncMock(side_effect=_getdel_json)
    client.delete = AsyncMock(side_effect=_delete)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def quote_service(
    calculator: FeeCalculationService, mock_redis_client: MagicMock
) -> QuoteService:
    return QuoteService(calculator, cache=mock_redis_client)


# ==============================================================================
# FastAPI Client Fixtures
# ==============================================================================


@pytest.fixture
def profile_provider(gold_project: RequesterProfile) -> StaticRequesterProfileProvider:
    return StaticRequesterProfileProvider({"gold-project": gold_project})


@pytest.fixture
def client(
    live_calculator: FeeCalculationService,
    mock_redis_client: MagicMock,
    profile_provider: StaticRequesterProfileProvider,
) -> Generator[TestClient, None, None]:
    """
    TestClient with the pricing services wired to the mocked cache.

    The lifespan is not entered, so no real Redis connection is attempted.
    """
    api_quote_service = QuoteService(live_calculator, cache=mock_redis_client)

    app.dependency_overrides[get_fee_calculation_service] = lambda: live_calculator
    app.dependency_overrides[get_quote_service] = lambda: api_quote_service
    app.dependency_overrides[get_profile_provider] = lambda: profile_provider

    yield TestClient(app)

    app.dependency_overrides.clear()
