"""Tests for configuration loading and validation."""

import pytest

from src.config import AppConfig, _validate_config


def _config_with(**sections) -> AppConfig:
    from src.config import PricingConfig, RoutingConfig, SchedulingConfig

    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "scheduling", sections.get("scheduling", SchedulingConfig()))
    object.__setattr__(config, "pricing", sections.get("pricing", PricingConfig()))
    object.__setattr__(config, "routing", sections.get("routing", RoutingConfig()))
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "app_name", "test")
    return config


def _scheduling(**overrides):
    from src.config import SchedulingConfig

    scheduling = SchedulingConfig.__new__(SchedulingConfig)
    values = {
        "slot_granularity_minutes": 30,
        "max_reschedules": 3,
        "default_travel_buffer_minutes": 15,
        "min_lead_minutes": 120,
        "missed_grace_minutes": 5,
    }
    values.update(overrides)
    for name, value in values.items():
        object.__setattr__(scheduling, name, value)
    return scheduling


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.scheduling.slot_granularity_minutes == 30
        assert config.scheduling.max_reschedules == 3
        assert config.pricing.transaction_fee_percent == pytest.approx(4.0)
        assert config.routing.arrival_radius_miles == pytest.approx(0.1)

    @pytest.mark.parametrize("granularity", [0, 7, 45])
    def test_granularity_must_divide_hour(self, granularity):
        config = _config_with(scheduling=_scheduling(slot_granularity_minutes=granularity))
        with pytest.raises(ValueError, match="SLOT_GRANULARITY_MINUTES"):
            _validate_config(config)

    def test_negative_reschedule_limit(self):
        config = _config_with(scheduling=_scheduling(max_reschedules=-1))
        with pytest.raises(ValueError, match="MAX_RESCHEDULES"):
            _validate_config(config)

    def test_negative_lead_time(self):
        config = _config_with(scheduling=_scheduling(min_lead_minutes=-10))
        with pytest.raises(ValueError, match="MIN_LEAD_MINUTES"):
            _validate_config(config)

    def test_fee_above_100_percent(self):
        from src.config import PricingConfig

        pricing = PricingConfig.__new__(PricingConfig)
        object.__setattr__(pricing, "transaction_fee_percent", 150.0)
        object.__setattr__(pricing, "luxury_extra_time_percent", 20.0)

        with pytest.raises(ValueError, match="TRANSACTION_FEE_PERCENT"):
            _validate_config(_config_with(pricing=pricing))

    def test_non_positive_directions_timeout(self):
        from src.config import RoutingConfig

        routing = RoutingConfig.__new__(RoutingConfig)
        object.__setattr__(routing, "directions_base_url", "http://osrm.test")
        object.__setattr__(routing, "directions_timeout_seconds", 0.0)
        object.__setattr__(routing, "arrival_radius_miles", 0.1)
        object.__setattr__(routing, "average_speed_mph", 25.0)

        with pytest.raises(ValueError, match="DIRECTIONS_TIMEOUT_SECONDS"):
            _validate_config(_config_with(routing=routing))

    def test_safe_int_parsing(self):
        from src.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from src.config import _safe_int

        monkeypatch.setenv("SCHEDULER_TEST_INT", "thirty")
        with pytest.raises(ValueError, match="SCHEDULER_TEST_INT"):
            _safe_int("SCHEDULER_TEST_INT", "30")

    def test_safe_float_parsing(self):
        from src.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)
