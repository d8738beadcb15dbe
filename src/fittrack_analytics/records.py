"""Record aggregator.

Groups personal-record events per exercise and derives:
- Best record (max weight, most recent on ties) and previous best
- Chronological trend series with estimated 1RM (Epley formula)
- Improvement from first record to best, in percent
- Compound/category classification from fixed name tables

Exercise grouping is exact-match by default; case-insensitive grouping is a
caller option (``case_sensitive=False``).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from .errors import ConfigurationError
from .models import PersonalRecordEvent, parse_personal_records
from .utils import as_utc, epley_1rm

logger = logging.getLogger(__name__)

COMPOUND_EXERCISES: tuple[str, ...] = (
    "Bench Press",
    "Deadlift",
    "Squat",
    "Back Squat",
    "Front Squat",
    "Overhead Press",
    "Military Press",
    "Barbell Row",
)

# Ordered: the first category with a matching keyword wins.
EXERCISE_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("chest", (
        "Bench Press", "Incline Bench Press", "Decline Bench Press",
        "Dumbbell Press", "Incline Dumbbell Press", "Chest Fly",
    )),
    ("back", (
        "Deadlift", "Barbell Row", "Bent Over Row", "Pull-ups", "Chin-ups",
        "Lat Pulldown", "T-Bar Row", "Cable Row",
    )),
    ("legs", (
        "Squat", "Front Squat", "Back Squat", "Leg Press", "Romanian Deadlift",
        "Lunges", "Leg Extension", "Leg Curl",
    )),
    ("shoulders", (
        "Overhead Press", "Military Press", "Shoulder Press", "Lateral Raise",
        "Front Raise", "Rear Delt Fly",
    )),
    ("arms", (
        "Barbell Curl", "Dumbbell Curl", "Hammer Curl", "Tricep Extension",
        "Skull Crushers", "Dips", "Close Grip Bench",
    )),
)

CATEGORY_NAMES: tuple[str, ...] = tuple(name for name, _ in EXERCISE_CATEGORIES) + ("other",)
RECORD_FILTERS: tuple[str, ...] = ("all", "compound", *CATEGORY_NAMES)

_BIG_THREE: tuple[str, ...] = ("bench press", "squat", "deadlift")


@dataclass(frozen=True)
class RecordPoint:
    occurred_at: datetime
    weight: float
    reps: int
    estimated_1rm: float


@dataclass(frozen=True)
class ExerciseRecordSummary:
    exercise: str
    best: PersonalRecordEvent
    previous_best: float | None
    series: tuple[RecordPoint, ...]
    improvement_pct: float
    is_compound: bool
    category: str

    @property
    def record_count(self) -> int:
        return len(self.series)


def is_compound_exercise(name: str) -> bool:
    lowered = name.lower()
    return any(compound.lower() in lowered for compound in COMPOUND_EXERCISES)


def classify_exercise_category(name: str) -> str:
    lowered = name.lower()
    for category, keywords in EXERCISE_CATEGORIES:
        if any(keyword.lower() in lowered for keyword in keywords):
            return category
    return "other"


def _chronological_key(record: PersonalRecordEvent) -> tuple[Any, ...]:
    return (record.occurred_at, record.id or "", record.weight, record.reps)


def _rank_key(record: PersonalRecordEvent) -> tuple[Any, ...]:
    """Descending rank: heaviest first, then most recent."""
    return (-record.weight, -record.occurred_at.timestamp(), -record.reps, record.id or "")


def _group_key(name: str, case_sensitive: bool) -> str:
    return name if case_sensitive else name.casefold()


def group_records(
    records: Iterable[PersonalRecordEvent | Any],
    *,
    case_sensitive: bool = True,
) -> dict[str, list[PersonalRecordEvent]]:
    """Group valid records by exercise name; malformed records are dropped."""
    grouped: dict[str, list[PersonalRecordEvent]] = {}
    for record in parse_personal_records(records):
        grouped.setdefault(_group_key(record.exercise_name, case_sensitive), []).append(record)
    return grouped


def summarize_exercise(records: list[PersonalRecordEvent]) -> ExerciseRecordSummary | None:
    """Best/previous best/series/improvement for one exercise's records."""
    if not records:
        return None

    ranked = sorted(records, key=_rank_key)
    best = ranked[0]
    previous_best = ranked[1].weight if len(ranked) > 1 else None

    chronological = sorted(records, key=_chronological_key)
    series = tuple(
        RecordPoint(
            occurred_at=r.occurred_at,
            weight=r.weight,
            reps=r.reps,
            estimated_1rm=round(epley_1rm(r.weight, r.reps), 2),
        )
        for r in chronological
    )

    first_weight = series[0].weight
    if len(series) > 1 and first_weight > 0:
        improvement = (best.weight - first_weight) / first_weight * 100
    else:
        improvement = 0.0

    # Display the exercise under the name carried by its best record.
    name = best.exercise_name
    return ExerciseRecordSummary(
        exercise=name,
        best=best,
        previous_best=previous_best,
        series=series,
        improvement_pct=improvement,
        is_compound=is_compound_exercise(name),
        category=classify_exercise_category(name),
    )


def aggregate_records(
    records: Iterable[PersonalRecordEvent | Any],
    *,
    exercise: str | None = None,
    case_sensitive: bool = True,
) -> list[ExerciseRecordSummary]:
    """Per-exercise summaries, compound lifts first, then heaviest best first."""
    grouped = group_records(records, case_sensitive=case_sensitive)
    if exercise is not None:
        wanted = _group_key(exercise.strip(), case_sensitive)
        grouped = {key: value for key, value in grouped.items() if key == wanted}

    summaries = [
        summary
        for summary in (summarize_exercise(group) for group in grouped.values())
        if summary is not None
    ]
    summaries.sort(key=lambda s: (not s.is_compound, -s.best.weight, s.exercise))
    return summaries


def filter_record_summaries(
    summaries: list[ExerciseRecordSummary],
    *,
    category: str = "all",
    query: str | None = None,
) -> list[ExerciseRecordSummary]:
    """Filter by ``compound``, a category name or ``all``, plus name search."""
    if category not in RECORD_FILTERS:
        allowed = ", ".join(RECORD_FILTERS)
        raise ConfigurationError(f"Unknown record filter {category!r}. Expected one of: {allowed}")
    filtered = summaries
    if category == "compound":
        filtered = [s for s in filtered if s.is_compound]
    elif category != "all":
        filtered = [s for s in filtered if s.category == category]
    if query and query.strip():
        needle = query.strip().lower()
        filtered = [s for s in filtered if needle in s.exercise.lower()]
    return filtered


def compound_lift_total(summaries: Iterable[ExerciseRecordSummary]) -> float:
    """Sum of best weights over compound exercises."""
    return sum(s.best.weight for s in summaries if s.is_compound)


def record_stats(
    summaries: list[ExerciseRecordSummary],
    records: Iterable[PersonalRecordEvent | Any],
    *,
    now: datetime,
    recent_days: int = 30,
) -> dict[str, Any]:
    """Headline numbers for the records page."""
    now = as_utc(now)
    cutoff = now - timedelta(days=recent_days)
    recent = sum(
        1 for r in parse_personal_records(records) if cutoff <= r.occurred_at <= now
    )

    big_three_total = 0.0
    for lift in _BIG_THREE:
        match = next((s for s in summaries if lift in s.exercise.lower()), None)
        if match is not None:
            big_three_total += match.best.weight

    avg_improvement = (
        sum(s.improvement_pct for s in summaries) / len(summaries) if summaries else 0.0
    )
    return {
        "total_exercises": len(summaries),
        "recent_records": recent,
        "big_three_total": big_three_total,
        "average_improvement_pct": round(avg_improvement, 2),
    }


def strength_profile(
    summaries: list[ExerciseRecordSummary],
    *,
    reference_kg: float = 150.0,
) -> list[dict[str, Any]]:
    """Average best weight per muscle category, scaled 0-100 against reference_kg."""
    profile = []
    for category, _ in EXERCISE_CATEGORIES:
        in_category = [s for s in summaries if s.category == category]
        avg_weight = (
            sum(s.best.weight for s in in_category) / len(in_category) if in_category else 0.0
        )
        profile.append({
            "category": category,
            "value": round(min(avg_weight / reference_kg * 100, 100.0)),
            "count": len(in_category),
        })
    return profile
