"""Centralised application settings loaded from environment / .env file."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Movement simulator
    tick_interval_ms: int = 40  # minimum gap between acted ticks (25 Hz)
    poll_interval_ms: int = 10  # scheduler polling rate
    spawn_offset_deg: float = 0.02  # full span; +/-0.01 deg (~1 km) per axis
    heading_epsilon: float = 1e-6
    completed_reset_delay_seconds: Optional[float] = 3.0

    # Routing
    routing_backend: Literal["osrm", "straight"] = "osrm"
    osrm_base_url: str = "https://router.project-osrm.org/route/v1/driving"
    routing_timeout_seconds: float = 10.0
    straight_line_step_m: float = 25.0
    city_minutes_per_km: float = 4.5

    # Driver bookkeeping
    driver_earnings_share: float = 0.85
    initial_earnings: float = 0.0
    diagnostics_buffer_size: int = 100

    # Randomness (spawn offset, surge multiplier)
    random_seed: Optional[int] = None

    # API
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
