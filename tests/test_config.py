import datetime

import pytest

from aqiglobe.config import ConfigError, EngineConfig


def test_defaults():
    config = EngineConfig()
    assert config.reference_year == datetime.date.today().year
    assert (config.min_year, config.max_year) == (2023, 2035)
    assert (config.min_speed, config.max_speed, config.default_speed) == (0.1, 10000.0, 1000.0)
    assert not config.start_real_time
    assert not config.prediction_enabled


def test_from_env_reads_recognized_options():
    config = EngineConfig.from_env(
        {
            "WAQI_TOKEN": "abc",
            "PREDICTION_API_KEY": "k",
            "REFERENCE_YEAR": "2026",
            "MAX_PREDICTION_YEAR": "2040",
            "DEFAULT_SPEED": "250",
            "REAL_TIME_ROTATION": "yes",
            "REFRESH_INTERVAL_SECONDS": "60",
            "UNRELATED": "ignored",
        }
    )
    assert config.waqi_token == "abc"
    assert config.prediction_enabled
    assert config.reference_year == 2026
    assert config.max_year == 2040
    assert config.default_speed == 250.0
    assert config.start_real_time
    assert config.refresh_interval == 60.0


def test_blank_values_keep_defaults():
    config = EngineConfig.from_env({"WAQI_TOKEN": "  ", "GLOBE_RADIUS": ""})
    assert config.waqi_token == ""
    assert config.globe_radius == 5.0


@pytest.mark.parametrize(
    "env",
    [
        {"REFERENCE_YEAR": "next year"},
        {"MAX_SPEED": "fast"},
        {"REAL_TIME_ROTATION": "maybe"},
        {"MIN_PREDICTION_YEAR": "2040", "MAX_PREDICTION_YEAR": "2030"},
        {"MIN_SPEED": "0"},
        {"DEFAULT_SPEED": "20000"},
        {"REFRESH_INTERVAL_SECONDS": "0"},
        {"GLOBE_RADIUS": "-1"},
    ],
)
def test_bad_values_raise_config_error(env):
    with pytest.raises(ConfigError):
        EngineConfig.from_env(env)


def test_public_view_hides_secrets():
    view = EngineConfig(waqi_token="secret-token", prediction_api_key="secret-key").public_view()
    assert view["has_waqi_token"] and view["has_prediction_key"]
    assert "secret-token" not in repr(view)
    assert "secret-key" not in repr(view)


@pytest.mark.parametrize("year,expected", [(1990, 2023), (2023, 2023), (2030, 2030), (2100, 2035)])
def test_clamp_year(year, expected):
    assert EngineConfig(reference_year=2025).clamp_year(year) == expected
