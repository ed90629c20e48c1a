"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from CALCGRAPH_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CALCGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Configuration store
    config_id_prefix: str = Field(
        default="calc", min_length=1, description="Prefix for generated configuration IDs"
    )
    export_indent: int = Field(
        default=2, ge=0, le=8, description="JSON indentation for exported configurations"
    )

    # Impact analysis
    impact_high_risk_threshold: int = Field(
        default=5, ge=0, description="Total impacts above which risk is HIGH"
    )
    impact_medium_risk_threshold: int = Field(
        default=2, ge=0, description="Total impacts above which risk is MEDIUM"
    )
    impact_coordination_threshold: int = Field(
        default=3,
        ge=0,
        description="Total impacts above which downstream owners must be coordinated",
    )

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")

    @model_validator(mode="after")
    def validate_risk_thresholds(self) -> "Settings":
        """Ensure the risk thresholds are ordered."""
        if self.impact_medium_risk_threshold > self.impact_high_risk_threshold:
            raise ValueError(
                "impact_medium_risk_threshold must not exceed impact_high_risk_threshold"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
