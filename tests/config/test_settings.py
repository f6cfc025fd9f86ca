"""
Tests for engine settings: schema validation, YAML loading and the
SHIFTPAY_CONFIG_TRACE audit record.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
import yaml

from shiftpay_config import EngineSettings, get_active_settings
from shiftpay_config.loader import compute_checksum, parse_settings


def write_yaml(tmp_path, data):
    path = tmp_path / "engine.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestEngineSettings:
    """EngineSettings schema."""

    def test_defaults(self):
        settings = EngineSettings()

        assert settings.business_timezone == "Europe/Berlin"
        assert settings.cache_max_age == timedelta(hours=1)
        assert settings.cost_trend_months == 6
        assert settings.representative_day == 15
        assert settings.planned_hours_factor == Decimal("4.35")
        assert settings.tz.key == "Europe/Berlin"

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="business_timezone"):
            EngineSettings(business_timezone="Mars/Olympus_Mons")

    @pytest.mark.parametrize(
        "field, value",
        [
            ("cache_max_age_seconds", 0),
            ("cost_trend_months", 0),
            ("cost_trend_months", 25),
            ("representative_day", 29),
            ("representative_day", 0),
            ("planned_hours_factor", Decimal("0")),
            ("vacation_block_days", 0),
            ("trailing_vacation_cap", -1),
            ("vacation_bonus_month_index", 12),
            ("christmas_bonus_month_index", -1),
        ],
    )
    def test_out_of_range_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            EngineSettings(**{field: value})

    def test_settings_are_frozen(self):
        settings = EngineSettings()

        with pytest.raises(AttributeError):
            settings.cost_trend_months = 3


class TestLoader:
    """parse_settings and get_active_settings."""

    def test_default_file_loads(self):
        settings = get_active_settings()

        assert settings.config_id == "default"
        assert settings == EngineSettings(config_id="default", config_version=1)

    def test_sections_are_flattened(self, tmp_path):
        path = write_yaml(
            tmp_path,
            {
                "config_id": "site-a",
                "config_version": 3,
                "engine": {"business_timezone": "Europe/Vienna", "representative_day": 1},
                "cache": {"cache_max_age_seconds": 60, "cost_trend_months": 12},
                "time_account": {"planned_hours_factor": "4.33"},
            },
        )

        settings = get_active_settings(path)

        assert settings.config_id == "site-a"
        assert settings.config_version == 3
        assert settings.business_timezone == "Europe/Vienna"
        assert settings.representative_day == 1
        assert settings.cache_max_age_seconds == 60
        assert settings.cost_trend_months == 12
        assert settings.planned_hours_factor == Decimal("4.33")

    def test_float_factor_keeps_its_decimal_digits(self):
        settings = parse_settings({"time_account": {"planned_hours_factor": 4.35}})

        assert settings.planned_hours_factor == Decimal("4.35")

    def test_unknown_keys_are_rejected(self, tmp_path):
        path = write_yaml(tmp_path, {"cache": {"cache_max_age": 60}})

        with pytest.raises(ValueError, match="Unknown settings keys: cache_max_age"):
            get_active_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "missing.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("")

        assert get_active_settings(path) == EngineSettings()

    def test_checksum_is_stable_and_value_sensitive(self):
        assert compute_checksum(EngineSettings()) == compute_checksum(EngineSettings())
        assert compute_checksum(EngineSettings()) != compute_checksum(EngineSettings(cost_trend_months=3))

    def test_config_trace_is_logged(self, captured_logs):
        settings = get_active_settings()

        traces = [r for r in captured_logs() if r["message"] == "SHIFTPAY_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "default"
        assert traces[0]["checksum"] == compute_checksum(settings)
