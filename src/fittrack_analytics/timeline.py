"""Activity timeline and goal progress.

Merges the most recent workouts, personal records, weight entries and
completed goals into one newest-first feed. Items carry structured fields
only; icons, colours and wording belong to the UI layer.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .models import (
    Goal,
    PersonalRecordEvent,
    WeightEntry,
    WorkoutEvent,
    parse_goals,
    parse_personal_records,
    parse_weight_entries,
    parse_workouts,
)

logger = logging.getLogger(__name__)

# Per-source caps before merging.
TIMELINE_SOURCE_LIMITS: dict[str, int] = {
    "workout": 5,
    "personal_record": 5,
    "weight": 3,
    "goal": 3,
}


@dataclass(frozen=True)
class TimelineItem:
    kind: str
    occurred_at: datetime
    source_id: str | None
    details: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)


def _newest_first(items: list[Any], ts: Any) -> list[Any]:
    return sorted(items, key=lambda item: (ts(item), getattr(item, "id", None) or ""), reverse=True)


def goal_progress(goal: Goal) -> float:
    """Percent of target reached, clamped to [0, 100]; completed goals are 100."""
    if goal.completed:
        return 100.0
    if goal.target_value <= 0:
        return 0.0
    return max(0.0, min(goal.current_value / goal.target_value * 100.0, 100.0))


def build_activity_timeline(
    workouts: Iterable[WorkoutEvent | Any] = (),
    records: Iterable[PersonalRecordEvent | Any] = (),
    weight_entries: Iterable[WeightEntry | Any] = (),
    goals: Iterable[Goal | Any] = (),
    *,
    limit: int = 10,
) -> list[TimelineItem]:
    items: list[TimelineItem] = []

    recent_workouts = _newest_first(parse_workouts(workouts), lambda w: w.occurred_at)
    for w in recent_workouts[:TIMELINE_SOURCE_LIMITS["workout"]]:
        items.append(TimelineItem(
            kind="workout",
            occurred_at=w.occurred_at,
            source_id=w.id,
            details={
                "name": w.name,
                "workout_kind": w.kind,
                "duration_minutes": w.duration_minutes,
                "exercise_count": len(w.exercises),
            },
        ))

    recent_records = _newest_first(parse_personal_records(records), lambda r: r.occurred_at)
    for r in recent_records[:TIMELINE_SOURCE_LIMITS["personal_record"]]:
        items.append(TimelineItem(
            kind="personal_record",
            occurred_at=r.occurred_at,
            source_id=r.id,
            details={"exercise": r.exercise_name, "weight": r.weight, "reps": r.reps},
        ))

    recent_weights = _newest_first(parse_weight_entries(weight_entries), lambda e: e.occurred_at)
    for e in recent_weights[:TIMELINE_SOURCE_LIMITS["weight"]]:
        items.append(TimelineItem(
            kind="weight",
            occurred_at=e.occurred_at,
            source_id=e.id,
            details={"weight": e.weight},
        ))

    # Completed goals without an update time cannot be placed on the timeline.
    completed = [g for g in parse_goals(goals) if g.completed and g.updated_at is not None]
    for g in _newest_first(completed, lambda g: g.updated_at)[:TIMELINE_SOURCE_LIMITS["goal"]]:
        items.append(TimelineItem(
            kind="goal",
            occurred_at=g.updated_at,
            source_id=g.id,
            details={
                "title": g.title,
                "goal_type": g.type,
                "target_value": g.target_value,
                "unit": g.unit,
            },
        ))

    items.sort(key=lambda item: (item.occurred_at, item.kind, item.source_id or ""), reverse=True)
    return items[:limit]
