"""
OEE Floor Dashboard - Configuration Management

This module handles all configuration settings for the OEE Floor Dashboard.
It uses Pydantic Settings for environment variable management and validation.
"""

import os
from datetime import date
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LINE_AREA_MAP: Dict[str, str] = {
    "31": "Area Stamping",
    "32": "Area Assembly",
    "41": "Area Painting",
    "42": "Area Painting",
    "51": "Area Finishing",
}


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Settings
    APP_NAME: str = "OEE Floor Dashboard API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    LOG_LEVEL: str = Field(default="INFO")

    # CORS Settings
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Aggregation Settings
    TREND_DAYS: int = Field(default=7, ge=1)
    TOP_N: int = Field(default=5, ge=1)
    LINE_AREA_MAP: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LINE_AREA_MAP))
    OEE_ALERT_THRESHOLD: float = Field(default=0.85, ge=0, le=1)

    # Maintenance Settings
    MAINTENANCE_REMINDER_DAYS: int = Field(default=7, ge=0)
    MTTR_ALERT_MINUTES: float = Field(default=120.0, gt=0)
    MTTR_WARNING_MINUTES: float = Field(default=60.0, gt=0)

    # Demo Data Settings
    SEED_DEMO_DATA: bool = Field(default=True)
    SEED_END_DATE: date = Field(default=date(2025, 10, 30))
    SEED_DAYS: int = Field(default=30, ge=1)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse comma-separated origins string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "staging", "production", "testing"]
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level setting."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()


# Environment-specific configurations
class DevelopmentSettings(Settings):
    """Development environment settings."""
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"


class StagingSettings(Settings):
    """Staging environment settings."""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


class ProductionSettings(Settings):
    """Production environment settings."""
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"
    SEED_DEMO_DATA: bool = False


class TestingSettings(Settings):
    """Testing environment settings."""
    ENVIRONMENT: str = "testing"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"
    SEED_DEMO_DATA: bool = False


def get_settings(environment: Optional[str] = None) -> Settings:
    """Get settings based on environment."""
    env = environment or os.getenv("ENVIRONMENT", "development")

    if env == "development":
        return DevelopmentSettings()
    elif env == "staging":
        return StagingSettings()
    elif env == "production":
        return ProductionSettings()
    elif env == "testing":
        return TestingSettings()
    else:
        return Settings()


# Export the appropriate settings instance
settings = get_settings()
