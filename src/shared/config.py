"""
Centralized configuration for the Fusion Engine.

Uses pydantic-settings for environment variable management.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_fusion_summary: bool = False

    # ==========================================================================
    # Correlation Configuration
    # ==========================================================================

    # 0.1 degrees is roughly 10 km at mid-latitudes
    fusion_proximity_threshold_deg: float = 0.1
    fusion_min_strength: float = 0.1

    # Fixed factors for proximity-derived correlations
    fusion_default_temporal_factor: float = 0.5
    fusion_default_semantic_factor: float = 0.3

    # Fill-in for authoritative correlations that omit their factors
    fusion_default_factor: float = 0.5

    # ==========================================================================
    # Threat Area Configuration
    # ==========================================================================

    threat_area_min_points: int = 3
    threat_area_min_radius_m: float = 5000.0
    meters_per_degree: float = 111000.0

    # ==========================================================================
    # Data Quality
    # ==========================================================================

    # Restores the leading "4" dropped from theatre latitudes upstream
    latitude_repair_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
