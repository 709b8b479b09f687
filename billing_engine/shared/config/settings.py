# 📄 File: billing_engine/shared/config/settings.py
#
# 🧭 Purpose (Layman Explanation):
# The main configuration center that reads all billing settings from environment variables
# (who the administrator is, where platform fees go, how pause fees are split).
#
# 🧪 Purpose (Technical Summary):
# Pydantic-based settings management with environment variable loading,
# validation, and type safety for all billing engine configuration parameters.
#
# 🔗 Dependencies:
# - pydantic-settings for configuration management
# - typing for type hints
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap (engine wiring)
# - Logging setup
# - Pause settlement and subscription state machine policies
# - HTTP payment gateway adapter

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Billing engine settings loaded from environment variables.

    Uses Pydantic for validation and type safety. Settings are loaded
    from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================

    APP_NAME: str = Field(default="Recurring Billing Engine", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    DEBUG: bool = Field(default=False, description="Debug mode flag")

    # =========================================================================
    # LOGGING
    # =========================================================================

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json/text)")
    LOG_FILE: Optional[str] = Field(default=None, description="Optional log file path")

    # =========================================================================
    # ACCESS CONTROL
    # =========================================================================

    BILLING_ADMIN_ID: str = Field(
        default="billing-admin",
        description="Identity of the single global administrator"
    )
    PLATFORM_FEE_ACCOUNT: str = Field(
        default="platform-fee-account",
        description="Payee of the platform share of pause settlements"
    )

    # =========================================================================
    # BILLING POLICY
    # =========================================================================

    # Basis points of price_per_cycle (10_000 = 100%)
    PAUSE_TOTAL_FEE_BPS: int = Field(default=1250, ge=0, le=10_000, description="Total pause fee")
    PAUSE_MERCHANT_FEE_BPS: int = Field(default=1000, ge=0, le=10_000, description="Merchant share of pause fee")
    PAUSE_FEE_FOLLOWS_MERCHANT_RAIL: bool = Field(
        default=False,
        description="Pay the platform fee leg on the merchant leg's rail instead of the token rail"
    )
    ADVANCE_SCHEDULE_ON_FAILED_CHARGE: bool = Field(
        default=True,
        description="Commit the advanced next billing time when a charge fails"
    )

    # =========================================================================
    # PAYMENT GATEWAY
    # =========================================================================

    PAYMENT_GATEWAY_URL: str = Field(
        default="http://localhost:8080/v1/payments",
        description="Payment gateway endpoint used by the HTTP adapter"
    )
    PAYMENT_GATEWAY_API_KEY: Optional[str] = Field(default=None, description="Payment gateway API key")
    PAYMENT_GATEWAY_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="HTTP timeout for gateway calls (None waits indefinitely)"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known logging level name."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(allowed)}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v.lower()

    @model_validator(mode="after")
    def validate_pause_fee_split(self) -> "Settings":
        """Merchant share of the pause fee can never exceed the total fee."""
        if self.PAUSE_MERCHANT_FEE_BPS > self.PAUSE_TOTAL_FEE_BPS:
            raise ValueError("PAUSE_MERCHANT_FEE_BPS cannot exceed PAUSE_TOTAL_FEE_BPS")
        return self

    @property
    def debug(self) -> bool:
        """Alias for DEBUG to allow access as settings.debug"""
        return self.DEBUG

    def get_pause_fee_config(self) -> dict:
        """Get pause settlement configuration."""
        return {
            "total_fee_bps": self.PAUSE_TOTAL_FEE_BPS,
            "merchant_fee_bps": self.PAUSE_MERCHANT_FEE_BPS,
            "platform_fee_account": self.PLATFORM_FEE_ACCOUNT,
            "fee_follows_merchant_rail": self.PAUSE_FEE_FOLLOWS_MERCHANT_RAIL,
        }


# ============================================================================
# SETTINGS FACTORY
# ============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Uses lru_cache to ensure settings are loaded only once
    and reused throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
