import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .errors import ConfigurationError
from .utils import normalize_timezone_name

CALORIE_ESTIMATE_MODES: tuple[str, ...] = ("per_workout", "per_minute")

_DEFAULT_CALORIES_PER_MINUTE: Mapping[str, float] = MappingProxyType(
    {"strength": 6.0, "cardio": 10.0}
)


@dataclass(frozen=True)
class AnalyticsConfig:
    """Heuristics and defaults injected into the period and achievement code.

    Calorie figures are rough estimates, not measured data.
    ``default_timezone`` (FITTRACK_TIMEZONE) applies when a request carries
    no timezone preference.
    """

    weekly_workout_goal: int = 5
    calorie_estimate_mode: str = "per_workout"
    calories_per_workout: float = 250.0
    calories_per_minute: Mapping[str, float] = field(
        default_factory=lambda: _DEFAULT_CALORIES_PER_MINUTE, hash=False
    )
    daily_calorie_target: int = 2000
    case_sensitive_exercise_names: bool = True
    recent_record_days: int = 30
    strength_profile_reference_kg: float = 150.0
    workouts_per_level: int = 10
    heatmap_weeks: int = 12
    default_timezone: str = "UTC"

    def __post_init__(self) -> None:
        if self.weekly_workout_goal <= 0:
            raise ConfigurationError("weekly_workout_goal must be positive")
        if self.calorie_estimate_mode not in CALORIE_ESTIMATE_MODES:
            allowed = ", ".join(CALORIE_ESTIMATE_MODES)
            raise ConfigurationError(f"calorie_estimate_mode must be one of: {allowed}")
        if self.calories_per_workout < 0:
            raise ConfigurationError("calories_per_workout must not be negative")
        if any(rate < 0 for rate in self.calories_per_minute.values()):
            raise ConfigurationError("calories_per_minute rates must not be negative")
        if self.daily_calorie_target <= 0:
            raise ConfigurationError("daily_calorie_target must be positive")
        if self.recent_record_days <= 0:
            raise ConfigurationError("recent_record_days must be positive")
        if self.strength_profile_reference_kg <= 0:
            raise ConfigurationError("strength_profile_reference_kg must be positive")
        if self.workouts_per_level <= 0:
            raise ConfigurationError("workouts_per_level must be positive")
        if self.heatmap_weeks <= 0:
            raise ConfigurationError("heatmap_weeks must be positive")
        if normalize_timezone_name(self.default_timezone) is None:
            raise ConfigurationError(f"Unknown default_timezone: {self.default_timezone!r}")
        # Freeze caller-supplied dicts so the config stays immutable.
        object.__setattr__(
            self, "calories_per_minute", MappingProxyType(dict(self.calories_per_minute))
        )

    @classmethod
    def from_env(cls) -> "AnalyticsConfig":
        try:
            return cls(
                weekly_workout_goal=int(os.environ.get("FITTRACK_WEEKLY_GOAL", "5")),
                calorie_estimate_mode=os.environ.get("FITTRACK_CALORIE_MODE", "per_workout"),
                calories_per_workout=float(
                    os.environ.get("FITTRACK_CALORIES_PER_WORKOUT", "250")
                ),
                calories_per_minute={
                    "strength": float(
                        os.environ.get("FITTRACK_STRENGTH_CALORIES_PER_MINUTE", "6.0")
                    ),
                    "cardio": float(
                        os.environ.get("FITTRACK_CARDIO_CALORIES_PER_MINUTE", "10.0")
                    ),
                },
                daily_calorie_target=int(
                    os.environ.get("FITTRACK_DAILY_CALORIE_TARGET", "2000")
                ),
                case_sensitive_exercise_names=os.environ.get(
                    "FITTRACK_CASE_SENSITIVE_EXERCISES", "true"
                ).strip().lower() in {"1", "true", "yes"},
                recent_record_days=int(os.environ.get("FITTRACK_RECENT_RECORD_DAYS", "30")),
                strength_profile_reference_kg=float(
                    os.environ.get("FITTRACK_STRENGTH_REFERENCE_KG", "150")
                ),
                workouts_per_level=int(os.environ.get("FITTRACK_WORKOUTS_PER_LEVEL", "10")),
                heatmap_weeks=int(os.environ.get("FITTRACK_HEATMAP_WEEKS", "12")),
                default_timezone=os.environ.get("FITTRACK_TIMEZONE", "UTC"),
            )
        except ValueError as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid FITTRACK_* environment value: {exc}") from exc


@dataclass(frozen=True)
class Config:
    """Runtime settings for the command line entry point."""

    log_format: str = "json"
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls) -> "Config":
        level_name = os.environ.get("FITTRACK_LOG_LEVEL", "INFO").strip().upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ConfigurationError(f"Unknown FITTRACK_LOG_LEVEL: {level_name!r}")
        return cls(
            log_format=os.environ.get("FITTRACK_LOG_FORMAT", "json"),
            log_level=level,
        )
