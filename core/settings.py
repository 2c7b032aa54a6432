"""
Application settings and configuration management using Pydantic Settings.
"""
from datetime import time
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    app_name: str = Field(default="SlotBook API", description="Application name")
    app_env: str = Field(default="development", description="Environment (development, staging, production)")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    api_prefix: str = Field(default="/api/v1", description="Prefix for versioned API routes")

    # Database Configuration
    database_url: str = Field(default="sqlite:///./slotbook.db", description="Database connection URL")
    db_pool_size: int = Field(default=5, ge=1, description="Connections kept in the pool")
    db_max_overflow: int = Field(default=10, ge=0, description="Connections allowed beyond pool size")
    db_pool_timeout: int = Field(default=30, ge=1, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=3600, ge=1, description="Seconds before a connection is recycled")
    db_echo: bool = Field(default=False, description="Log all SQL statements")

    # CORS Settings
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # Authentication Provider
    auth_jwt_secret: str = Field(default="change-me", description="Shared secret used to verify bearer tokens")
    auth_jwt_algorithm: str = Field(default="HS256", description="Bearer token signing algorithm")
    auth_jwt_audience: Optional[str] = Field(default="authenticated", description="Expected token audience")

    # Phone Policy
    default_country_code: str = Field(default="55", pattern=r"^\d{1,3}$", description="Country code prepended to national numbers")
    min_phone_digits: int = Field(default=8, ge=1, description="Minimum digits of a normalized phone")

    # Plan Policy
    default_plan_type: str = Field(default="free", description="Plan assumed when a tenant has no subscription")
    free_plan_customer_limit: int = Field(default=50, ge=0, description="Customer ceiling on the free plan")

    # Tenant Schedule Defaults
    default_opening_time: time = Field(default=time(8, 0), description="Opening time when a tenant sets none")
    default_closing_time: time = Field(default=time(20, 0), description="Closing time when a tenant sets none")
    default_slot_interval_minutes: int = Field(default=30, ge=1, description="Slot grid interval when a tenant sets none")
    default_lead_time_minutes: int = Field(default=120, ge=0, description="Minimum notice when a tenant sets none")
    default_timezone: str = Field(default="America/Sao_Paulo", description="Tenant timezone when a tenant sets none")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v_upper

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(f"app_env must be one of {allowed_envs}")
        return v_lower

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


# Global settings instance
settings = Settings()
