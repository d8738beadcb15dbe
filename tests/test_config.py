from __future__ import annotations

import logging

import pytest

from fittrack_analytics.config import AnalyticsConfig, Config
from fittrack_analytics.errors import ConfigurationError

_ENV_VARS = (
    "FITTRACK_WEEKLY_GOAL",
    "FITTRACK_CALORIE_MODE",
    "FITTRACK_CALORIES_PER_WORKOUT",
    "FITTRACK_STRENGTH_CALORIES_PER_MINUTE",
    "FITTRACK_CARDIO_CALORIES_PER_MINUTE",
    "FITTRACK_DAILY_CALORIE_TARGET",
    "FITTRACK_CASE_SENSITIVE_EXERCISES",
    "FITTRACK_RECENT_RECORD_DAYS",
    "FITTRACK_STRENGTH_REFERENCE_KG",
    "FITTRACK_WORKOUTS_PER_LEVEL",
    "FITTRACK_HEATMAP_WEEKS",
    "FITTRACK_TIMEZONE",
    "FITTRACK_LOG_FORMAT",
    "FITTRACK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_analytics_config_defaults_from_env() -> None:
    cfg = AnalyticsConfig.from_env()
    assert cfg == AnalyticsConfig()
    assert cfg.weekly_workout_goal == 5
    assert cfg.calories_per_workout == 250.0
    assert cfg.case_sensitive_exercise_names is True


def test_analytics_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FITTRACK_WEEKLY_GOAL", "3")
    monkeypatch.setenv("FITTRACK_CALORIE_MODE", "per_minute")
    monkeypatch.setenv("FITTRACK_CARDIO_CALORIES_PER_MINUTE", "12.5")
    monkeypatch.setenv("FITTRACK_CASE_SENSITIVE_EXERCISES", "false")
    monkeypatch.setenv("FITTRACK_TIMEZONE", "Europe/Berlin")

    cfg = AnalyticsConfig.from_env()
    assert cfg.weekly_workout_goal == 3
    assert cfg.calorie_estimate_mode == "per_minute"
    assert cfg.calories_per_minute["cardio"] == 12.5
    assert cfg.case_sensitive_exercise_names is False
    assert cfg.default_timezone == "Europe/Berlin"


def test_analytics_config_reads_display_knobs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FITTRACK_STRENGTH_REFERENCE_KG", "120")
    monkeypatch.setenv("FITTRACK_WORKOUTS_PER_LEVEL", "25")
    monkeypatch.setenv("FITTRACK_HEATMAP_WEEKS", "26")

    cfg = AnalyticsConfig.from_env()
    assert cfg.strength_profile_reference_kg == 120.0
    assert cfg.workouts_per_level == 25
    assert cfg.heatmap_weeks == 26


def test_analytics_config_rejects_zero_heatmap_weeks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FITTRACK_HEATMAP_WEEKS", "0")
    with pytest.raises(ConfigurationError, match="heatmap_weeks"):
        AnalyticsConfig.from_env()


def test_analytics_config_rejects_non_numeric_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FITTRACK_WEEKLY_GOAL", "five")
    with pytest.raises(ConfigurationError, match="FITTRACK_"):
        AnalyticsConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"weekly_workout_goal": 0},
        {"calorie_estimate_mode": "per_hour"},
        {"calories_per_workout": -1},
        {"calories_per_minute": {"strength": -2.0}},
        {"recent_record_days": 0},
        {"workouts_per_level": 0},
        {"default_timezone": "Nowhere/Land"},
    ],
)
def test_analytics_config_validation(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        AnalyticsConfig(**kwargs)


def test_calorie_rates_are_read_only() -> None:
    rates = {"strength": 5.0, "cardio": 9.0}
    cfg = AnalyticsConfig(calories_per_minute=rates)
    rates["strength"] = 100.0
    assert cfg.calories_per_minute["strength"] == 5.0
    with pytest.raises(TypeError):
        cfg.calories_per_minute["cardio"] = 1.0  # type: ignore[index]


def test_runtime_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FITTRACK_LOG_FORMAT", "text")
    monkeypatch.setenv("FITTRACK_LOG_LEVEL", "debug")

    cfg = Config.from_env()
    assert cfg.log_format == "text"
    assert cfg.log_level == logging.DEBUG


def test_runtime_config_rejects_unknown_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FITTRACK_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError, match="FITTRACK_LOG_LEVEL"):
        Config.from_env()
