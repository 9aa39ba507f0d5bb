"""
Configuration Management for the Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunables live here.
Collection names, the retry budget for conflicting attempts and the
storage precision of amounts are validated once at startup.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from LEDGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Store layout
    accounts_collection: str = Field(
        default="categories",
        min_length=1,
        description="Collection holding balance-carrying accounts"
    )
    transactions_collection: str = Field(
        default="transactions",
        min_length=1,
        description="Collection holding transaction records"
    )

    # Conflict retry policy
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Attempts per operation before giving up with Conflict"
    )
    backoff_multiplier: float = Field(
        default=0.05,
        ge=0.0,
        description="Exponential backoff multiplier in seconds"
    )
    backoff_min: float = Field(
        default=0.0,
        ge=0.0,
        description="Lower bound of a single backoff wait in seconds"
    )
    backoff_max: float = Field(
        default=1.0,
        ge=0.0,
        description="Upper bound of a single backoff wait in seconds"
    )

    # Amounts
    amount_places: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Decimal places used when writing balances to the store"
    )
    max_transfer_amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Upper limit for a single transfer (None = unlimited)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level for the ledger loggers"
    )
    log_json: bool = Field(
        default=True,
        description="Render log lines as JSON (False = console renderer)"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing, reject unknown levels."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode='after')
    def validate_backoff_bounds(self) -> 'LedgerSettings':
        if self.backoff_max < self.backoff_min:
            raise ValueError("backoff_max cannot be below backoff_min")
        if self.accounts_collection == self.transactions_collection:
            raise ValueError("Accounts and transactions need separate collections")
        return self


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get ledger settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
