"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.constants import (
    INVITE_CODE_LENGTH,
    ORDER_DEFAULT_EXPIRATION_SECONDS,
    ORDER_EXPIRATION_MAX_SECONDS,
    ORDER_EXPIRATION_MIN_SECONDS,
    ORDER_MAX_OPEN_PER_PRODUCT,
)
from app.config.operational_constants import (
    EXPIRATION_SWEEP_BATCH_SIZE,
    FULFILLMENT_BATCH_SIZE,
    PAYMENT_POLL_BATCH_SIZE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(default=10, ge=1)
    database_max_overflow: int = Field(default=20, ge=0)

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/storefront.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Referral graph
    referral_query_depth: int | None = Field(
        default=None,
        ge=1,
        description="Default depth limit for ancestor/descendant queries (None = unlimited)",
    )

    # Invite codes
    invite_code_length: int = Field(default=INVITE_CODE_LENGTH, ge=6, le=32)
    invite_code_ttl_seconds: int | None = Field(
        default=None,
        gt=0,
        description="Default TTL for newly issued invite codes (None = no expiry)",
    )

    # Orders
    order_default_expiration: int = Field(
        default=ORDER_DEFAULT_EXPIRATION_SECONDS,
        ge=ORDER_EXPIRATION_MIN_SECONDS,
        le=ORDER_EXPIRATION_MAX_SECONDS,
        description="Default rate-lock and expiration window in seconds",
    )
    order_max_open_per_product: int = Field(
        default=ORDER_MAX_OPEN_PER_PRODUCT,
        gt=0,
        description="Maximum open orders per user and product",
    )

    # Scheduled jobs
    expiration_sweep_interval_seconds: int = Field(default=60, gt=0)
    payment_poll_interval_seconds: int = Field(default=60, gt=0)
    fulfillment_interval_seconds: int = Field(default=30, gt=0)
    sweep_batch_size: int = Field(default=EXPIRATION_SWEEP_BATCH_SIZE, gt=0)
    payment_poll_batch_size: int = Field(default=PAYMENT_POLL_BATCH_SIZE, gt=0)
    fulfillment_batch_size: int = Field(default=FULFILLMENT_BATCH_SIZE, gt=0)

    # Payment providers
    payment_provider_modules: str = ""  # Comma-separated import paths

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// '
                '(or sqlite+aiosqlite:// for local testing)'
            )
        if v.startswith('postgresql://'):
            # Async engine requires the asyncpg driver
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f'Unknown log level: {v}')
        return level

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )

            if self.database_url.startswith('sqlite'):
                raise ValueError(
                    'SQLite is only supported for local testing. '
                    'Set DATABASE_URL to a PostgreSQL database in production.'
                )

            if self.database_echo:
                logger.warning(
                    'DATABASE_ECHO is enabled in production; '
                    'SQL statements (including payment data) will be logged.'
                )

        return self

    def get_payment_provider_modules(self) -> list[str]:
        """Parse provider module paths from comma-separated string."""
        if not self.payment_provider_modules:
            return []
        return [
            path.strip()
            for path in self.payment_provider_modules.split(",")
            if path.strip()
        ]

    @property
    def is_sqlite(self) -> bool:
        """True when running against a SQLite database."""
        return self.database_url.startswith('sqlite')


# Global settings instance
settings = Settings()
