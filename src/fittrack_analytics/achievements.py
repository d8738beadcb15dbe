"""Achievement engine.

Milestones are declared as data: each definition names the metric it reads
and a positive threshold. Evaluation turns the streak, workout, record,
compound-lift and account-age metrics into progress (clamped to 0-100), an
earned flag, and, for earned milestones, the moment it was unlocked
(e.g. the date of the 100th workout).

Definitions are validated when they are created, so evaluation itself never
raises for well-typed input.
"""

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from .config import AnalyticsConfig
from .errors import ConfigurationError
from .models import PersonalRecordEvent, WorkoutEvent, parse_personal_records, parse_workouts
from .records import aggregate_records, compound_lift_total, is_compound_exercise
from .streaks import streak_from_days, streak_milestone_day
from .utils import as_utc, day_key, parse_timestamp, require_timezone

logger = logging.getLogger(__name__)

RARITIES: tuple[str, ...] = ("common", "rare", "epic", "legendary")

METRICS: tuple[str, ...] = (
    "streak_days",
    "workout_count",
    "record_count",
    "compound_total_kg",
    "months_active",
)

DAYS_PER_ACTIVE_MONTH = 30


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    rarity: str
    metric: str
    threshold: float

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ConfigurationError("achievement id must not be empty")
        if self.rarity not in RARITIES:
            allowed = ", ".join(RARITIES)
            raise ConfigurationError(
                f"achievement {self.id!r}: rarity must be one of: {allowed}"
            )
        if self.metric not in METRICS:
            allowed = ", ".join(METRICS)
            raise ConfigurationError(
                f"achievement {self.id!r}: metric must be one of: {allowed}"
            )
        if (
            not isinstance(self.threshold, (int, float))
            or isinstance(self.threshold, bool)
            or not math.isfinite(self.threshold)
            or self.threshold <= 0
        ):
            raise ConfigurationError(
                f"achievement {self.id!r}: threshold must be a positive number"
            )


@dataclass(frozen=True)
class AchievementMetrics:
    current_streak: int = 0
    longest_streak: int = 0
    workout_count: int = 0
    record_count: int = 0
    compound_total_kg: float = 0.0
    months_active: int = 0

    def value_for(self, metric: str) -> float:
        if metric == "streak_days":
            return float(self.longest_streak)
        return float(getattr(self, metric))


@dataclass(frozen=True)
class AchievementStatus:
    id: str
    title: str
    description: str
    rarity: str
    metric: str
    threshold: float
    value: float
    progress: float
    earned: bool
    unlocked_at: datetime | None = None


DEFAULT_ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        "30-day-streak", "30 Day Streak", "Completed 30 consecutive days",
        "rare", "streak_days", 30,
    ),
    AchievementDefinition(
        "100-workouts", "100 Workouts", "Completed 100 total workouts",
        "epic", "workout_count", 100,
    ),
    AchievementDefinition(
        "pr-master", "PR Master", "Set 10 personal records",
        "legendary", "record_count", 10,
    ),
    AchievementDefinition(
        "500kg-club", "500kg Club", "Total 500kg in compound lifts",
        "legendary", "compound_total_kg", 500,
    ),
    AchievementDefinition(
        "6-month-warrior", "6 Month Warrior", "Active for 6 months",
        "epic", "months_active", 6,
    ),
    AchievementDefinition(
        "consistency-king", "Consistency King", "90 day streak",
        "legendary", "streak_days", 90,
    ),
    AchievementDefinition(
        "first-workout", "First Workout", "Completed your first workout",
        "common", "workout_count", 1,
    ),
    AchievementDefinition(
        "first-pr", "First PR", "Set your first personal record",
        "common", "record_count", 1,
    ),
    AchievementDefinition(
        "7-day-streak", "7 Day Streak", "Completed 7 consecutive days",
        "common", "streak_days", 7,
    ),
    AchievementDefinition(
        "50-workouts", "50 Workouts", "Completed 50 total workouts",
        "rare", "workout_count", 50,
    ),
)


def validate_definitions(
    definitions: Iterable[AchievementDefinition],
) -> tuple[AchievementDefinition, ...]:
    """Reject duplicate ids; individual definitions validate themselves."""
    validated = tuple(definitions)
    seen: set[str] = set()
    for definition in validated:
        if definition.id in seen:
            raise ConfigurationError(f"Duplicate achievement id={definition.id!r}")
        seen.add(definition.id)
    return validated


def achievement_progress(value: float, threshold: float) -> float:
    """Progress percentage clamped to [0, 100]."""
    if threshold <= 0:
        raise ConfigurationError("threshold must be positive")
    return max(0.0, min(value / threshold * 100.0, 100.0))


def months_active(account_created_at: datetime | None, now: datetime) -> int:
    """Whole 30-day months since account creation (0 when unknown)."""
    if account_created_at is None:
        return 0
    elapsed = as_utc(now) - as_utc(account_created_at)
    return max(elapsed.days // DAYS_PER_ACTIVE_MONTH, 0)


def level_progress(workout_count: int, workouts_per_level: int = 10) -> dict[str, Any]:
    """Level grows by one every ``workouts_per_level`` workouts."""
    if workouts_per_level <= 0:
        raise ConfigurationError("workouts_per_level must be positive")
    count = max(workout_count, 0)
    into_level = count % workouts_per_level
    return {
        "level": count // workouts_per_level + 1,
        "xp_progress": into_level * 100 / workouts_per_level,
        "workouts_to_next_level": workouts_per_level - into_level,
    }


@dataclass(frozen=True)
class _UnlockContext:
    workouts: tuple[WorkoutEvent, ...]
    records: tuple[PersonalRecordEvent, ...]
    days: frozenset[date]
    timezone_name: str
    account_created_at: datetime | None
    case_sensitive: bool


def _nth(items: Sequence[Any], threshold: float) -> Any | None:
    n = math.ceil(threshold)
    if len(items) < n:
        return None
    return items[n - 1]


def _unlock_workout_count(ctx: _UnlockContext, threshold: float) -> datetime | None:
    workout = _nth(ctx.workouts, threshold)
    return workout.occurred_at if workout is not None else None


def _unlock_record_count(ctx: _UnlockContext, threshold: float) -> datetime | None:
    record = _nth(ctx.records, threshold)
    return record.occurred_at if record is not None else None


def _unlock_streak(ctx: _UnlockContext, threshold: float) -> datetime | None:
    milestone = streak_milestone_day(set(ctx.days), math.ceil(threshold))
    if milestone is None:
        return None
    return next(
        (
            w.occurred_at
            for w in ctx.workouts
            if day_key(w.occurred_at, ctx.timezone_name) == milestone
        ),
        None,
    )


def _unlock_compound_total(ctx: _UnlockContext, threshold: float) -> datetime | None:
    best_by_exercise: dict[str, float] = {}
    for record in ctx.records:
        if not is_compound_exercise(record.exercise_name):
            continue
        key = record.exercise_name if ctx.case_sensitive else record.exercise_name.casefold()
        if record.weight > best_by_exercise.get(key, 0.0):
            best_by_exercise[key] = record.weight
            if sum(best_by_exercise.values()) >= threshold:
                return record.occurred_at
    return None


def _unlock_months_active(ctx: _UnlockContext, threshold: float) -> datetime | None:
    if ctx.account_created_at is None:
        return None
    return ctx.account_created_at + timedelta(
        days=DAYS_PER_ACTIVE_MONTH * math.ceil(threshold)
    )


_UNLOCK_RESOLVERS: dict[str, Callable[[_UnlockContext, float], datetime | None]] = {
    "streak_days": _unlock_streak,
    "workout_count": _unlock_workout_count,
    "record_count": _unlock_record_count,
    "compound_total_kg": _unlock_compound_total,
    "months_active": _unlock_months_active,
}


def evaluate_definition(
    definition: AchievementDefinition,
    metrics: AchievementMetrics,
    unlock_context: _UnlockContext | None = None,
) -> AchievementStatus:
    value = metrics.value_for(definition.metric)
    earned = value >= definition.threshold
    unlocked_at = None
    if earned and unlock_context is not None:
        unlocked_at = _UNLOCK_RESOLVERS[definition.metric](unlock_context, definition.threshold)
    return AchievementStatus(
        id=definition.id,
        title=definition.title,
        description=definition.description,
        rarity=definition.rarity,
        metric=definition.metric,
        threshold=definition.threshold,
        value=value,
        progress=achievement_progress(value, definition.threshold),
        earned=earned,
        unlocked_at=unlocked_at,
    )


def _status_sort_key(status: AchievementStatus) -> tuple[Any, ...]:
    if status.earned:
        if status.unlocked_at is not None:
            return (0, -status.unlocked_at.timestamp())
        return (1, 0.0)
    return (2, -status.progress)


def _prepare(
    workouts: Iterable[WorkoutEvent | Any],
    records: Iterable[PersonalRecordEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
    account_created_at: Any,
    config: AnalyticsConfig,
) -> tuple[AchievementMetrics, _UnlockContext]:
    timezone_name = require_timezone(timezone_name)
    now = as_utc(now)
    parsed_workouts = tuple(
        sorted(parse_workouts(workouts), key=lambda w: (w.occurred_at, w.id or ""))
    )
    parsed_records = tuple(
        sorted(parse_personal_records(records), key=lambda r: (r.occurred_at, r.id or ""))
    )
    created_at = parse_timestamp(account_created_at)
    days = frozenset(day_key(w.occurred_at, timezone_name) for w in parsed_workouts)
    streak = streak_from_days(set(days), day_key(now, timezone_name))
    summaries = aggregate_records(
        parsed_records, case_sensitive=config.case_sensitive_exercise_names
    )

    metrics = AchievementMetrics(
        current_streak=streak.current,
        longest_streak=streak.longest,
        workout_count=len(parsed_workouts),
        record_count=len(parsed_records),
        compound_total_kg=compound_lift_total(summaries),
        months_active=months_active(created_at, now),
    )
    context = _UnlockContext(
        workouts=parsed_workouts,
        records=parsed_records,
        days=days,
        timezone_name=timezone_name,
        account_created_at=created_at,
        case_sensitive=config.case_sensitive_exercise_names,
    )
    return metrics, context


def achievement_metrics(
    workouts: Iterable[WorkoutEvent | Any],
    records: Iterable[PersonalRecordEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
    account_created_at: Any = None,
    config: AnalyticsConfig | None = None,
) -> AchievementMetrics:
    metrics, _ = _prepare(
        workouts,
        records,
        now=now,
        timezone_name=timezone_name,
        account_created_at=account_created_at,
        config=config or AnalyticsConfig(),
    )
    return metrics


def evaluate_achievements(
    workouts: Iterable[WorkoutEvent | Any],
    records: Iterable[PersonalRecordEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
    account_created_at: Any = None,
    definitions: Iterable[AchievementDefinition] | None = None,
    config: AnalyticsConfig | None = None,
) -> list[AchievementStatus]:
    """Evaluate every definition; earned (newest unlock first), then by progress."""
    catalogue = validate_definitions(
        DEFAULT_ACHIEVEMENTS if definitions is None else definitions
    )
    metrics, context = _prepare(
        workouts,
        records,
        now=now,
        timezone_name=timezone_name,
        account_created_at=account_created_at,
        config=config or AnalyticsConfig(),
    )
    statuses = [evaluate_definition(d, metrics, context) for d in catalogue]
    statuses.sort(key=_status_sort_key)
    return statuses
