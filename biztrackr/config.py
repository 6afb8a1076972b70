"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Security
    jwt_secret: str = Field(
        default="change-this-to-a-secure-random-string-in-production",
        description="JWT signing secret",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_minutes: int = Field(default=1440, description="JWT expiration (24h)")

    # Database
    db_type: str = Field(default="duckdb", description="Database type")
    db_path: str = Field(default="./data/biztrackr.duckdb", description="DuckDB file path")
    db_threads: int = Field(default=4, description="DuckDB thread count")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # AI text generation
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514", description="Model used for insights and chat"
    )
    ai_enabled: bool = Field(default=True, description="Call the LLM when a key is configured")
    ai_max_tokens: int = Field(default=1024, ge=64, le=8192, description="Max tokens per report")
    ai_chat_max_tokens: int = Field(default=200, ge=32, le=2048, description="Max tokens per chat reply")
    ai_temperature: float = Field(default=0.7, ge=0.0, le=1.0, description="Sampling temperature")
    ai_timeout_seconds: float = Field(default=60.0, gt=0, description="LLM HTTP timeout")

    # Engine Configuration
    default_range_days: int = Field(
        default=30, ge=1, le=365, description="Trailing window used when no date range is given"
    )
    salary_proration_days: int = Field(
        default=30, ge=1, description="Divisor turning monthly salaries into a daily cost"
    )
    activity_default_limit: int = Field(default=10, ge=1, description="Default activity feed size")
    activity_max_limit: int = Field(default=50, ge=1, description="Maximum activity feed size")

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def check_activity_limits(self) -> "Settings":
        if self.activity_default_limit > self.activity_max_limit:
            raise ValueError("activity_default_limit must not exceed activity_max_limit")
        return self

    @property
    def ai_configured(self) -> bool:
        """True when the LLM connector can be constructed."""
        return self.ai_enabled and bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
