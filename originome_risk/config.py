"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "originome-risk"
    debug: bool = False
    log_level: str = "INFO"

    # Retention
    buffer_capacity: int = 20
    alert_capacity: int = 20
    dedup_bucket_seconds: float = 30.0

    # Derivatives: 60 = velocities are per minute
    rate_unit_seconds: float = 60.0

    # Tick cadences
    derivative_tick_seconds: float = 2.0
    pattern_scan_seconds: float = 30.0
    slow_domain_seconds: float = 900.0

    # Forecast
    forecast_min_samples: int = 5
    forecast_default_confidence: float = 0.5
    forecast_band_fraction: float = 0.05
    forecast_default_horizon_minutes: float = 60.0

    model_config = {"env_prefix": "ORIGINOME_"}


settings = Settings()
