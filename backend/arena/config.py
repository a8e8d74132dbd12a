"""Application configuration."""
from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings.

    Business toggles editable from the admin panel (bonus amounts, game win
    rates, reward tables) are stored in the database, see
    ``arena.services.settings``. Only deployment-level values live here.
    """

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_debug: bool = True
    log_level: str = "DEBUG"
    app_name: str = "Arena Ace"

    # Database - required
    database_url: str = Field(
        ...,
        description="Database connection URL (required)",
    )
    db_pool_size: int = Field(default=20, description="DB connection pool size")
    db_max_overflow: int = Field(default=10, description="Max overflow connections")

    # Redis - required
    redis_url: str = Field(
        ...,
        description="Redis connection URL (required)",
    )
    redis_max_connections: int = 50
    redis_socket_timeout: float = 5.0

    # JWT - required
    jwt_secret_key: str = Field(
        ...,
        description="JWT secret key (required, minimum 32 characters)",
    )
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    jwt_refresh_token_expire_days: int = 7

    # Sentry
    sentry_dsn: str | None = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )
    sentry_traces_sample_rate: float = 0.05

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Wallet
    currency_label: str = "Rs"
    wallet_lock_ttl: int = Field(default=10, description="Wallet lock timeout in seconds")
    balance_cache_ttl: int = Field(default=300, description="Balance cache TTL in seconds")
    min_withdrawal_amount: Decimal = Field(default=Decimal("300"))
    min_mobile_load_amount: Decimal = Field(default=Decimal("50"))
    withdrawal_fee_rate: Decimal = Field(
        default=Decimal("0.05"),
        description="Share of each approved withdrawal paid to the fee recipient",
    )

    # Rewards are day-bucketed in this timezone
    reward_timezone: str = "Asia/Karachi"

    # Games
    spin_wheel_min_bet: Decimal = Decimal("10")
    duel_admin_fee_rate: Decimal = Decimal("0.05")
    duel_starting_health: int = 3

    # LLM content generation (Gemini REST API)
    llm_api_key: str | None = Field(default=None, description="Generative model API key")
    llm_model: str = "gemini-2.0-flash"
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    llm_timeout_seconds: float = 20.0

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate JWT secret key length and strength."""
        if len(v) < 32:
            raise ValueError("jwt_secret_key must be at least 32 characters long")

        weak_patterns = ["change-this", "password", "12345", "qwerty"]
        lower_v = v.lower()
        for pattern in weak_patterns:
            if pattern in lower_v:
                raise ValueError(
                    f"jwt_secret_key contains weak pattern '{pattern}'. "
                    "Use a strong, random secret key."
                )
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate settings for production environment."""
        if self.app_env == "production":
            if self.app_debug:
                raise ValueError("app_debug must be False in production environment")

            origins = [o.strip() for o in self.cors_origins.split(",")]
            if "*" in origins:
                raise ValueError(
                    "CORS wildcard '*' is not allowed in production environment. "
                    "Specify explicit allowed origins."
                )
        return self

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
