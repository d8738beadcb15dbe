"""Period aggregator.

Resolves a named period or explicit window to a half-open ``[start, end)``
interval in the caller's timezone, then computes volume, duration, set and
frequency totals over the workouts inside it. Also builds the chart series
the UI surfaces render: daily series, monthly activity, the weekly goal
ring and the activity heatmap.

Empty input always yields zeroed output.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from .config import AnalyticsConfig
from .errors import ConfigurationError
from .models import WorkoutEvent, parse_workouts
from .utils import (
    add_months,
    as_utc,
    day_key,
    iso_week_start,
    local_day_start,
    require_timezone,
)

logger = logging.getLogger(__name__)

# Rolling periods: N local calendar days ending with today.
ROLLING_PERIOD_DAYS: dict[str, int] = {"week": 7, "month": 30, "year": 365}
CALENDAR_PERIODS: tuple[str, ...] = ("this_week", "this_month", "this_year")
PERIODS: tuple[str, ...] = (*ROLLING_PERIOD_DAYS, "all", *CALENDAR_PERIODS)

_WEEKDAY_LABELS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class Window:
    """Half-open interval; ``None`` bounds are unbounded."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        # Naive bounds are UTC, like every other timestamp.
        if self.start is not None:
            object.__setattr__(self, "start", as_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", as_utc(self.end))
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ConfigurationError("window start must not be after window end")

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts >= self.end:
            return False
        return True


@dataclass(frozen=True)
class PeriodSummary:
    total_workouts: int = 0
    total_volume: float = 0.0
    total_duration: float = 0.0
    average_duration: float = 0.0
    total_sets: int = 0
    total_reps: int = 0
    training_days: int = 0
    estimated_calories: float = 0.0


@dataclass(frozen=True)
class DailyPoint:
    day: date
    summary: PeriodSummary


def validate_period(period: str) -> str:
    if period not in PERIODS:
        allowed = ", ".join(PERIODS)
        raise ConfigurationError(f"Unknown period {period!r}. Expected one of: {allowed}")
    return period


def resolve_window(
    period: "str | Window",
    *,
    now: datetime,
    timezone_name: str,
) -> Window:
    """Turn a named period into a concrete window ending after today."""
    if isinstance(period, Window):
        return period
    validate_period(period)
    timezone_name = require_timezone(timezone_name)
    if period == "all":
        return Window()

    today = day_key(now, timezone_name)
    end = local_day_start(today + timedelta(days=1), timezone_name)
    if period in ROLLING_PERIOD_DAYS:
        first_day = today - timedelta(days=ROLLING_PERIOD_DAYS[period] - 1)
    elif period == "this_week":
        first_day = iso_week_start(today)
    elif period == "this_month":
        first_day = today.replace(day=1)
    else:
        first_day = date(today.year, 1, 1)
    return Window(start=local_day_start(first_day, timezone_name), end=end)


def estimate_calories(workouts: list[WorkoutEvent], config: AnalyticsConfig) -> float:
    """Rough calorie estimate; the constants live in AnalyticsConfig."""
    if config.calorie_estimate_mode == "per_minute":
        return sum(
            config.calories_per_minute.get(w.kind, 0.0) * w.duration_minutes for w in workouts
        )
    return len(workouts) * config.calories_per_workout


def summarize_workouts(
    workouts: Iterable[WorkoutEvent | Any],
    *,
    timezone_name: str,
    config: AnalyticsConfig | None = None,
) -> PeriodSummary:
    """Totals over every workout given, without window filtering."""
    config = config or AnalyticsConfig()
    timezone_name = require_timezone(timezone_name)
    parsed = parse_workouts(workouts)
    if not parsed:
        return PeriodSummary()

    total_duration = sum(w.duration_minutes for w in parsed)
    return PeriodSummary(
        total_workouts=len(parsed),
        total_volume=sum(w.volume for w in parsed),
        total_duration=total_duration,
        average_duration=round(total_duration / len(parsed), 2),
        total_sets=sum(w.set_count for w in parsed),
        total_reps=sum(w.rep_count for w in parsed),
        training_days=len({day_key(w.occurred_at, timezone_name) for w in parsed}),
        estimated_calories=estimate_calories(parsed, config),
    )


def workouts_in_window(
    workouts: Iterable[WorkoutEvent | Any],
    window: Window,
) -> list[WorkoutEvent]:
    return [w for w in parse_workouts(workouts) if window.contains(w.occurred_at)]


def aggregate_period(
    workouts: Iterable[WorkoutEvent | Any],
    period: "str | Window",
    *,
    now: datetime,
    timezone_name: str,
    config: AnalyticsConfig | None = None,
) -> PeriodSummary:
    """Volume/duration/set/frequency summary for one period."""
    window = resolve_window(period, now=now, timezone_name=timezone_name)
    return summarize_workouts(
        workouts_in_window(workouts, window),
        timezone_name=timezone_name,
        config=config,
    )


def daily_series(
    workouts: Iterable[WorkoutEvent | Any],
    period: "str | Window",
    *,
    now: datetime,
    timezone_name: str,
    config: AnalyticsConfig | None = None,
) -> list[DailyPoint]:
    """One summary per local day in the window, for charting.

    Unbounded ends are clamped to the first workout day and today.
    """
    window = resolve_window(period, now=now, timezone_name=timezone_name)
    timezone_name = require_timezone(timezone_name)
    selected = workouts_in_window(workouts, window)

    by_day: dict[date, list[WorkoutEvent]] = {}
    for w in selected:
        by_day.setdefault(day_key(w.occurred_at, timezone_name), []).append(w)

    if window.start is not None:
        first_day = day_key(window.start, timezone_name)
    elif by_day:
        first_day = min(by_day)
    else:
        return []
    if window.end is not None:
        last_day = day_key(window.end - timedelta(microseconds=1), timezone_name)
    else:
        last_day = max([day_key(now, timezone_name), *by_day])

    series: list[DailyPoint] = []
    current = first_day
    while current <= last_day:
        series.append(DailyPoint(
            day=current,
            summary=summarize_workouts(
                by_day.get(current, []), timezone_name=timezone_name, config=config
            ),
        ))
        current += timedelta(days=1)
    return series


def monthly_activity(
    workouts: Iterable[WorkoutEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
    months: int = 6,
) -> list[dict[str, Any]]:
    """Workout count and duration per calendar month, oldest first."""
    timezone_name = require_timezone(timezone_name)
    this_month = day_key(now, timezone_name).replace(day=1)
    buckets: dict[date, list[WorkoutEvent]] = {
        add_months(this_month, -offset): [] for offset in range(months - 1, -1, -1)
    }
    for w in parse_workouts(workouts):
        month = day_key(w.occurred_at, timezone_name).replace(day=1)
        if month in buckets:
            buckets[month].append(w)

    result = []
    for month, items in buckets.items():
        duration = sum(w.duration_minutes for w in items)
        result.append({
            "month": month.strftime("%Y-%m"),
            "workouts": len(items),
            "duration": duration,
            "average_duration": round(duration / len(items), 2) if items else 0.0,
        })
    return result


def weekly_goal_progress(
    workouts: Iterable[WorkoutEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
    config: AnalyticsConfig | None = None,
) -> dict[str, Any]:
    """Workouts this ISO week against the configured weekly goal."""
    config = config or AnalyticsConfig()
    timezone_name = require_timezone(timezone_name)
    monday = iso_week_start(day_key(now, timezone_name))
    counts = [0] * 7
    for w in parse_workouts(workouts):
        offset = (day_key(w.occurred_at, timezone_name) - monday).days
        if 0 <= offset < 7:
            counts[offset] += 1

    current = sum(counts)
    target = config.weekly_workout_goal
    return {
        "week_start": monday.isoformat(),
        "current": current,
        "target": target,
        "percentage": min(current * 100 / target, 100.0),
        "days": [
            {"day": label, "workouts": count}
            for label, count in zip(_WEEKDAY_LABELS, counts)
        ],
    }


def heatmap_level(count: int) -> int:
    """0 (none), 1, 2, or 3 (three or more workouts)."""
    return min(max(count, 0), 3)


def activity_heatmap(
    workouts: Iterable[WorkoutEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
    weeks: int = 12,
) -> list[dict[str, Any]]:
    """Per-day workout counts for the last ``weeks * 7`` days, oldest first."""
    timezone_name = require_timezone(timezone_name)
    today = day_key(now, timezone_name)
    counts = Counter(day_key(w.occurred_at, timezone_name) for w in parse_workouts(workouts))

    cells = []
    for offset in range(weeks * 7 - 1, -1, -1):
        d = today - timedelta(days=offset)
        count = counts.get(d, 0)
        cells.append({"date": d.isoformat(), "count": count, "level": heatmap_level(count)})
    return cells


def top_exercises(
    workouts: Iterable[WorkoutEvent | Any],
    *,
    limit: int = 5,
) -> list[tuple[str, int]]:
    """Most frequently logged exercise names, ties broken alphabetically."""
    counts = Counter(
        ex.name for w in parse_workouts(workouts) for ex in w.exercises if ex.name
    )
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]
