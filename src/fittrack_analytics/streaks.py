"""Streak calculator.

Workouts are reduced to a set of unique local calendar days before any
counting, so several workouts on one day count once regardless of input
order. "now" is always injected by the caller.

- Day streaks: current run ending today (or yesterday) and longest run
- Week streaks: consecutive ISO weeks with at least one training day
- Training frequency: rolling average training days per week
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from .models import WorkoutEvent, parse_workouts
from .utils import day_key, days_between, iso_week_start, require_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakSummary:
    current: int
    longest: int
    last_active_day: date | None = None
    longest_start: date | None = None
    longest_end: date | None = None


def training_days(workouts: Iterable[WorkoutEvent | Any], timezone_name: str) -> set[date]:
    """Unique local days with at least one workout."""
    timezone_name = require_timezone(timezone_name)
    return {day_key(w.occurred_at, timezone_name) for w in parse_workouts(workouts)}


def _runs(days: set[date]) -> list[tuple[date, date]]:
    """Maximal consecutive-day runs as (start, end), ascending."""
    runs: list[tuple[date, date]] = []
    run_start: date | None = None
    previous: date | None = None
    for d in sorted(days):
        if previous is None or days_between(previous, d) != 1:
            if run_start is not None and previous is not None:
                runs.append((run_start, previous))
            run_start = d
        previous = d
    if run_start is not None and previous is not None:
        runs.append((run_start, previous))
    return runs


def streak_from_days(days: set[date], today: date) -> StreakSummary:
    if not days:
        return StreakSummary(current=0, longest=0)

    # Current run may end today or, if nothing yet today, yesterday.
    anchor = today if today in days else today - timedelta(days=1)
    current = 0
    cursor = anchor
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    longest_start, longest_end = None, None
    longest = 0
    for start, end in _runs(days):
        length = days_between(start, end) + 1
        # Ties keep the earliest run.
        if length > longest:
            longest = length
            longest_start, longest_end = start, end

    return StreakSummary(
        current=current,
        longest=longest,
        last_active_day=max(days),
        longest_start=longest_start,
        longest_end=longest_end,
    )


def compute_day_streak(
    workouts: Iterable[WorkoutEvent | Any],
    *,
    now: datetime,
    timezone_name: str,
) -> StreakSummary:
    """Current and longest consecutive-day streaks as of ``now``."""
    timezone_name = require_timezone(timezone_name)
    days = training_days(workouts, timezone_name)
    return streak_from_days(days, day_key(now, timezone_name))


def streak_milestone_day(days: set[date], length: int) -> date | None:
    """First day on which any run reached ``length`` consecutive days."""
    if length <= 0:
        return None
    for start, end in _runs(days):
        if days_between(start, end) + 1 >= length:
            return start + timedelta(days=length - 1)
    return None


def compute_week_streak(
    days: set[date],
    reference_date: date,
) -> dict[str, int]:
    """Consecutive ISO weeks with at least one training day.

    The current run includes the reference week only if it is active.
    """
    if not days:
        return {"current_weeks": 0, "longest_weeks": 0}

    mondays = {iso_week_start(d) for d in days}

    current = 0
    cursor = iso_week_start(reference_date)
    while cursor in mondays:
        current += 1
        cursor -= timedelta(weeks=1)

    longest = 0
    run = 0
    previous: date | None = None
    for monday in sorted(mondays):
        run = run + 1 if previous is not None and days_between(previous, monday) == 7 else 1
        longest = max(longest, run)
        previous = monday

    return {"current_weeks": current, "longest_weeks": longest}


def training_frequency(
    days: set[date],
    reference_date: date,
) -> dict[str, float]:
    """Average training days per week over the last 4 and 12 weeks."""
    result: dict[str, float] = {}
    for weeks in (4, 12):
        cutoff = reference_date - timedelta(weeks=weeks)
        in_range = sum(1 for d in days if cutoff < d <= reference_date)
        result[f"last_{weeks}_weeks"] = round(in_range / weeks, 2)
    return result
