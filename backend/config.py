"""Application configuration using pydantic-settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./portfolio.db"

    # Market data
    QUOTE_SYMBOL_SUFFIX: str = ".NS"  # NSE listing suffix on Yahoo Finance
    QUOTE_TIMEOUT_SECONDS: float = 10.0
    QUOTE_MAX_WORKERS: int = 8
    MARKET_TIMEZONE: str = "Asia/Kolkata"

    # Auth
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_TTL_HOURS: int = 24 * 7
    BCRYPT_ROUNDS: int = 12

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("QUOTE_MAX_WORKERS")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """A refresh batch needs at least one worker."""
        if v < 1:
            raise ValueError(f"QUOTE_MAX_WORKERS must be at least 1, got {v}")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        """bcrypt accepts cost factors 4 to 31."""
        if not 4 <= v <= 31:
            raise ValueError(f"BCRYPT_ROUNDS must be between 4 and 31, got {v}")
        return v


settings = Settings()
