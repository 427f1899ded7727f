"""
AW3 Pricing Configuration Management Module

This module provides configuration management for the AW3 pricing service
using Pydantic Settings. It loads and validates all environment variables
required for:
- Application settings (name, environment, debug mode, logging)
- Quote signing secret and validity window
- Redis quote cache connection
- Fee schedule options (tier bounds and rates, complexity multipliers,
  spend-tier discounts, token discount, oracle fees, escrow buffer)

All settings support environment variable overrides and .env file loading
with validation and type safety. Fee options are flat fields with a ``fee_``
prefix (``FEE_TIER1_MAX=5000``, ``FEE_TIER1_RATE=0.10``, ...) and are assembled
into an immutable ``FeeSchedule`` by ``Settings.fee_schedule()``.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, PrivateAttr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from aw3_pricing.models.fee_schedule import (
    BaseRateTier,
    Complexity,
    FeeSchedule,
    SpendTier,
)


class Settings(BaseSettings):
    """
    Configuration settings for the AW3 pricing service.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - Quote signing: HMAC secret and validity window for fee quotes
    - Redis: Quote cache connection
    - Fee schedule: Every numeric option of the pricing model

    Example usage:
        ```python
        from aw3_pricing.config import get_settings

        settings = get_settings()
        schedule = settings.fee_schedule()
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="AW3-Pricing",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON logs instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8000, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # Quote Signing
    # =========================================================================

    quote_signing_secret: str = Field(
        default="development-quote-signing-secret-change-me",
        description="HMAC secret used to sign fee quotes. Must be a secure random string.",
        min_length=32,
    )

    quote_validity_seconds: int = Field(
        default=900, description="Fee quote validity window in seconds (15 minutes)", gt=0
    )

    # =========================================================================
    # Redis Configuration
    # =========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL (e.g., redis://localhost:6379)",
    )

    quote_cache_enabled: bool = Field(
        default=True, description="Hold issued quotes in Redis for redemption"
    )

    # =========================================================================
    # Fee Schedule: Budget Tiers
    # =========================================================================

    fee_tier1_max: Decimal = Field(default=Decimal("5000"), gt=0)
    fee_tier1_rate: Decimal = Field(default=Decimal("0.10"), ge=0, le=1)
    fee_tier2_max: Decimal = Field(default=Decimal("20000"), gt=0)
    fee_tier2_rate: Decimal = Field(default=Decimal("0.08"), ge=0, le=1)
    fee_tier3_max: Decimal = Field(default=Decimal("50000"), gt=0)
    fee_tier3_rate: Decimal = Field(default=Decimal("0.06"), ge=0, le=1)
    fee_tier4_rate: Decimal = Field(default=Decimal("0.04"), ge=0, le=1)

    # =========================================================================
    # Fee Schedule: Complexity Multipliers
    # =========================================================================

    fee_complexity_simple: Decimal = Field(default=Decimal("0.8"), gt=0)
    fee_complexity_standard: Decimal = Field(default=Decimal("1.0"), gt=0)
    fee_complexity_complex: Decimal = Field(default=Decimal("1.5"), gt=0)
    fee_complexity_enterprise: Decimal | None = Field(
        default=None, description="Enterprise multiplier; falls back to complex when unset"
    )

    # =========================================================================
    # Fee Schedule: Spend-Tier Discounts
    # =========================================================================

    fee_spend_silver_min: Decimal = Field(default=Decimal("10000"), gt=0)
    fee_spend_silver_discount: Decimal = Field(default=Decimal("0.05"), ge=0, le=1)
    fee_spend_gold_min: Decimal = Field(default=Decimal("50000"), gt=0)
    fee_spend_gold_discount: Decimal = Field(default=Decimal("0.15"), ge=0, le=1)
    fee_spend_platinum_min: Decimal = Field(default=Decimal("100000"), gt=0)
    fee_spend_platinum_discount: Decimal = Field(default=Decimal("0.25"), ge=0, le=1)
    fee_max_spend_discount: Decimal = Field(default=Decimal("0.40"), ge=0, le=1)

    # =========================================================================
    # Fee Schedule: Token, Oracle and Escrow
    # =========================================================================

    fee_token_discount_rate: Decimal = Field(default=Decimal("0.20"), ge=0, le=1)
    fee_oracle_base_fee: Decimal = Field(default=Decimal("50.00"), ge=0)
    fee_oracle_included_kpis: int = Field(default=3, ge=0)
    fee_oracle_kpi_fee: Decimal = Field(default=Decimal("10.00"), ge=0)
    fee_oracle_complexity_premium_rate: Decimal = Field(default=Decimal("0.20"), ge=0)
    fee_buffer_percentage: Decimal = Field(default=Decimal("10"), ge=0, le=100)

    _fee_schedule: FeeSchedule | None = PrivateAttr(default=None)

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def validate_tier_bounds(self) -> "Settings":
        """Budget tier and spend tier thresholds must be strictly ascending."""
        if not self.fee_tier1_max < self.fee_tier2_max < self.fee_tier3_max:
            raise ValueError("Fee tier bounds must be strictly ascending (tier1 < tier2 < tier3)")
        if not (
            self.fee_spend_silver_min < self.fee_spend_gold_min < self.fee_spend_platinum_min
        ):
            raise ValueError("Spend tier thresholds must be strictly ascending")
        return self

    @model_validator(mode="after")
    def validate_fee_schedule(self) -> "Settings":
        """Assemble the fee schedule once so a bad ``FEE_*`` option fails at load."""
        try:
            self._fee_schedule = self._build_fee_schedule()
        except ValidationError as exc:
            raise ValueError(f"Invalid fee schedule configuration: {exc}") from exc
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    def fee_schedule(self) -> FeeSchedule:
        """
        The immutable fee schedule assembled from the flat ``fee_`` options.

        Built and validated when the settings are loaded; every call returns
        the same instance.

        Returns:
            FeeSchedule: Validated schedule for ``FeeCalculationService``.
        """
        if self._fee_schedule is None:
            self._fee_schedule = self._build_fee_schedule()
        return self._fee_schedule

    def _build_fee_schedule(self) -> FeeSchedule:
        multipliers = {
            Complexity.SIMPLE: self.fee_complexity_simple,
            Complexity.STANDARD: self.fee_complexity_standard,
            Complexity.COMPLEX: self.fee_complexity_complex,
        }
        if self.fee_complexity_enterprise is not None:
            multipliers[Complexity.ENTERPRISE] = self.fee_complexity_enterprise

        return FeeSchedule(
            base_rate_tiers=(
                BaseRateTier(upper_bound=self.fee_tier1_max, rate=self.fee_tier1_rate),
                BaseRateTier(upper_bound=self.fee_tier2_max, rate=self.fee_tier2_rate),
                BaseRateTier(upper_bound=self.fee_tier3_max, rate=self.fee_tier3_rate),
                BaseRateTier(upper_bound=None, rate=self.fee_tier4_rate),
            ),
            complexity_multipliers=multipliers,
            spend_tiers=(
                SpendTier(name="bronze", min_spend=Decimal("0"), discount_rate=Decimal("0")),
                SpendTier(
                    name="silver",
                    min_spend=self.fee_spend_silver_min,
                    discount_rate=self.fee_spend_silver_discount,
                ),
                SpendTier(
                    name="gold",
                    min_spend=self.fee_spend_gold_min,
                    discount_rate=self.fee_spend_gold_discount,
                ),
                SpendTier(
                    name="platinum",
                    min_spend=self.fee_spend_platinum_min,
                    discount_rate=self.fee_spend_platinum_discount,
                ),
            ),
            max_spend_discount=self.fee_max_spend_discount,
            token_discount_rate=self.fee_token_discount_rate,
            oracle_base_fee=self.fee_oracle_base_fee,
            oracle_included_kpis=self.fee_oracle_included_kpis,
            oracle_kpi_fee=self.fee_oracle_kpi_fee,
            oracle_complexity_premium_rate=self.fee_oracle_complexity_premium_rate,
            buffer_percentage=self.fee_buffer_percentage,
            quote_validity_seconds=self.quote_validity_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    ``lru_cache`` makes this a singleton: the environment and ``.env`` file are
    read once on first call and the same instance is returned afterwards.
    """
    return Settings()
