"""
Centralized configuration with environment variable overrides.

Slot granularity, reschedule limits, pricing fees, and routing thresholds
are configurable here. Nothing is hardcoded in scheduling or routing logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and appointment policy settings."""

    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "30")
    max_reschedules: int = _safe_int("MAX_RESCHEDULES", "3")
    default_travel_buffer_minutes: int = _safe_int("DEFAULT_TRAVEL_BUFFER_MINUTES", "15")
    min_lead_minutes: int = _safe_int("MIN_LEAD_MINUTES", "120")
    missed_grace_minutes: int = _safe_int("MISSED_GRACE_MINUTES", "5")


@dataclass(frozen=True)
class PricingConfig:
    """Cart quote settings."""

    transaction_fee_percent: float = _safe_float("TRANSACTION_FEE_PERCENT", "4.0")
    luxury_extra_time_percent: float = _safe_float("LUXURY_EXTRA_TIME_PERCENT", "20")


@dataclass(frozen=True)
class RoutingConfig:
    """Directions collaborator and arrival detection settings."""

    directions_base_url: str = os.getenv(
        "DIRECTIONS_BASE_URL", "https://router.project-osrm.org"
    )
    directions_timeout_seconds: float = _safe_float("DIRECTIONS_TIMEOUT_SECONDS", "5.0")
    arrival_radius_miles: float = _safe_float("ARRIVAL_RADIUS_MILES", "0.1")
    average_speed_mph: float = _safe_float("AVERAGE_SPEED_MPH", "25")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "detailing-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    granularity = config.scheduling.slot_granularity_minutes
    if granularity < 1 or 60 % granularity != 0:
        raise ValueError(
            f"SLOT_GRANULARITY_MINUTES must divide 60 evenly, got {granularity}"
        )
    if config.scheduling.max_reschedules < 0:
        raise ValueError(
            f"MAX_RESCHEDULES must be >= 0, got {config.scheduling.max_reschedules}"
        )
    for name, value in [
        ("DEFAULT_TRAVEL_BUFFER_MINUTES", config.scheduling.default_travel_buffer_minutes),
        ("MIN_LEAD_MINUTES", config.scheduling.min_lead_minutes),
        ("MISSED_GRACE_MINUTES", config.scheduling.missed_grace_minutes),
    ]:
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")

    for pct_name, pct_value in [
        ("TRANSACTION_FEE_PERCENT", config.pricing.transaction_fee_percent),
        ("LUXURY_EXTRA_TIME_PERCENT", config.pricing.luxury_extra_time_percent),
    ]:
        if not 0.0 <= pct_value <= 100.0:
            raise ValueError(f"{pct_name} must be between 0 and 100, got {pct_value}")

    if config.routing.directions_timeout_seconds <= 0:
        raise ValueError(
            "DIRECTIONS_TIMEOUT_SECONDS must be > 0, "
            f"got {config.routing.directions_timeout_seconds}"
        )
    if config.routing.arrival_radius_miles <= 0:
        raise ValueError(
            f"ARRIVAL_RADIUS_MILES must be > 0, got {config.routing.arrival_radius_miles}"
        )
    if config.routing.average_speed_mph <= 0:
        raise ValueError(
            f"AVERAGE_SPEED_MPH must be > 0, got {config.routing.average_speed_mph}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
