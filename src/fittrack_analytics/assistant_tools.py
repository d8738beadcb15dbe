"""Read-only assistant tools.

Each tool reads a user's events through the EventStore and answers with the
same aggregators the UI uses, so a chat answer and a screen never disagree.

Every call through ``run_tool`` returns a JSON-safe envelope:
    {"ok": true, "tool": ..., "generated_at": ..., "data": {...}}
or, for a bad argument or an unknown tool:
    {"ok": false, "tool": ..., "generated_at": ..., "error": "..."}
"""

import dataclasses
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from .achievements import evaluate_achievements, level_progress
from .body_composition import summarize_weight_entries
from .errors import ConfigurationError
from .periods import (
    PERIODS,
    aggregate_period,
    resolve_window,
    summarize_workouts,
    top_exercises,
    weekly_goal_progress,
)
from .records import (
    RECORD_FILTERS,
    ExerciseRecordSummary,
    aggregate_records,
    compound_lift_total,
    filter_record_summaries,
    record_stats,
    strength_profile,
)
from .registry import ToolContext, assistant_tool, get_tool, get_tool_parameters
from .storage import EventStore
from .streaks import compute_week_streak, streak_from_days, training_days, training_frequency
from .timeline import goal_progress
from .utils import as_utc, day_key, resolve_timezone_context

logger = logging.getLogger(__name__)

# JSON-schema primitive types accepted in tool parameters.
_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


def _timezone_context(context: ToolContext) -> dict[str, Any]:
    return resolve_timezone_context(context.timezone_name, context.config.default_timezone)


def _argument_type_error(name: str, value: Any, schema: Mapping[str, Any]) -> str | None:
    expected = schema.get("type")
    if expected not in _JSON_TYPES:
        return None
    if isinstance(value, bool) and expected != "boolean":
        return f"Argument {name!r} must be of type {expected}"
    if not isinstance(value, _JSON_TYPES[expected]):
        return f"Argument {name!r} must be of type {expected}"
    return None


def to_jsonable(value: Any) -> Any:
    """Recursively convert results to plain JSON types."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def _record_row(summary: ExerciseRecordSummary, *, include_series: bool) -> dict[str, Any]:
    row: dict[str, Any] = {
        "exercise": summary.exercise,
        "best": {
            "weight": summary.best.weight,
            "reps": summary.best.reps,
            "date": summary.best.occurred_at,
        },
        "previous_best": summary.previous_best,
        "improvement_pct": round(summary.improvement_pct, 2),
        "is_compound": summary.is_compound,
        "category": summary.category,
        "record_count": summary.record_count,
    }
    if include_series:
        row["series"] = summary.series
    return row


@assistant_tool(
    "get_workout_stats",
    description="Workout totals, top exercises and streaks for a period.",
    parameters={
        "type": "object",
        "properties": {
            "period": {"type": "string", "enum": list(PERIODS), "default": "month"},
        },
    },
)
def get_workout_stats(
    store: EventStore,
    context: ToolContext,
    *,
    period: str = "month",
) -> dict[str, Any]:
    tz = _timezone_context(context)["timezone"]
    workouts = store.list_workouts(context.user_id, context.workout_limit)
    window = resolve_window(period, now=context.now, timezone_name=tz)
    summary = aggregate_period(
        workouts, window, now=context.now, timezone_name=tz, config=context.config
    )
    in_window = [w for w in workouts if window.contains(w.occurred_at)]
    streak = streak_from_days(training_days(workouts, tz), day_key(context.now, tz))
    return {
        "period": period,
        "window": {"start": window.start, "end": window.end},
        "summary": summary,
        "top_exercises": [
            {"name": name, "count": count} for name, count in top_exercises(in_window)
        ],
        "streak": {"current": streak.current, "longest": streak.longest},
    }


@assistant_tool(
    "get_record_summary",
    description="Personal record summary, optionally for one exercise or category.",
    parameters={
        "type": "object",
        "properties": {
            "exercise": {"type": "string"},
            "category": {"type": "string", "enum": list(RECORD_FILTERS), "default": "all"},
        },
    },
)
def get_record_summary(
    store: EventStore,
    context: ToolContext,
    *,
    exercise: str | None = None,
    category: str = "all",
) -> dict[str, Any]:
    records = store.list_personal_records(context.user_id)
    case_sensitive = context.config.case_sensitive_exercise_names
    all_summaries = aggregate_records(records, case_sensitive=case_sensitive)
    summaries = filter_record_summaries(
        aggregate_records(records, exercise=exercise, case_sensitive=case_sensitive)
        if exercise
        else all_summaries,
        category=category,
    )
    return {
        "exercise": exercise,
        "category": category,
        "records": [_record_row(s, include_series=bool(exercise)) for s in summaries],
        "stats": record_stats(
            all_summaries,
            records,
            now=context.now,
            recent_days=context.config.recent_record_days,
        ),
        "compound_total": compound_lift_total(all_summaries),
        "strength_profile": strength_profile(
            all_summaries, reference_kg=context.config.strength_profile_reference_kg
        ),
    }


@assistant_tool(
    "get_profile_summary",
    description="Profile overview: totals, streaks, level, weekly goal, weight and goals.",
)
def get_profile_summary(store: EventStore, context: ToolContext) -> dict[str, Any]:
    tz_context = _timezone_context(context)
    tz = tz_context["timezone"]
    workouts = store.list_workouts(context.user_id, context.workout_limit)
    records = store.list_personal_records(context.user_id)
    weights = store.list_weight_entries(context.user_id, context.weight_entry_limit)
    goals = store.list_goals(context.user_id)

    today = day_key(context.now, tz)
    days = training_days(workouts, tz)
    streak = streak_from_days(days, today)
    summaries = aggregate_records(
        records, case_sensitive=context.config.case_sensitive_exercise_names
    )
    return {
        "timezone": tz_context,
        "account_created_at": context.account_created_at,
        "totals": summarize_workouts(workouts, timezone_name=tz, config=context.config),
        "streak": {
            "current": streak.current,
            "longest": streak.longest,
            "last_active_day": streak.last_active_day,
        },
        "week_streak": compute_week_streak(days, today),
        "frequency": training_frequency(days, today),
        "level": level_progress(len(workouts), context.config.workouts_per_level),
        "weekly_goal": weekly_goal_progress(
            workouts, now=context.now, timezone_name=tz, config=context.config
        ),
        "records": record_stats(
            summaries, records, now=context.now, recent_days=context.config.recent_record_days
        ),
        "weight": summarize_weight_entries(weights, timezone_name=tz),
        "goals": [
            {
                "id": g.id,
                "title": g.title,
                "type": g.type,
                "target_value": g.target_value,
                "current_value": g.current_value,
                "unit": g.unit,
                "deadline": g.deadline,
                "completed": g.completed,
                "progress": goal_progress(g),
            }
            for g in goals
        ],
        "daily_calorie_target": context.config.daily_calorie_target,
    }


@assistant_tool(
    "get_achievements",
    description="Achievement progress, earned flags and unlock dates.",
)
def get_achievements(store: EventStore, context: ToolContext) -> dict[str, Any]:
    statuses = evaluate_achievements(
        store.list_workouts(context.user_id, context.workout_limit),
        store.list_personal_records(context.user_id),
        now=context.now,
        timezone_name=_timezone_context(context)["timezone"],
        account_created_at=context.account_created_at,
        config=context.config,
    )
    return {
        "earned_count": sum(1 for s in statuses if s.earned),
        "total_count": len(statuses),
        "achievements": statuses,
    }


def _failure(name: str, generated_at: str, error: str) -> dict[str, Any]:
    return {"ok": False, "tool": name, "generated_at": generated_at, "error": error}


def run_tool(
    name: str,
    arguments: Mapping[str, Any] | None,
    *,
    store: EventStore,
    context: ToolContext,
) -> dict[str, Any]:
    """Dispatch one assistant tool call and wrap the result in the envelope."""
    generated_at = as_utc(context.now).isoformat()
    tool = get_tool(name)
    if tool is None:
        logger.warning("Unknown assistant tool %s", name, extra={"fittrack_tool": name})
        return _failure(name, generated_at, f"Unknown tool: {name}")

    arguments = {k: v for k, v in (arguments or {}).items() if v is not None}
    properties = get_tool_parameters(name).get("properties", {})
    unexpected = sorted(set(arguments) - set(properties))
    if unexpected:
        return _failure(name, generated_at, f"Unexpected arguments: {', '.join(unexpected)}")
    for key, value in arguments.items():
        error = _argument_type_error(key, value, properties[key])
        if error is not None:
            logger.info(
                "Assistant tool %s rejected arguments: %s",
                name,
                error,
                extra={"fittrack_tool": name, "fittrack_user_id": context.user_id},
            )
            return _failure(name, generated_at, error)

    try:
        data = tool(store, context, **arguments)
    except ConfigurationError as exc:
        logger.info(
            "Assistant tool %s rejected arguments: %s",
            name,
            exc,
            extra={"fittrack_tool": name, "fittrack_user_id": context.user_id},
        )
        return _failure(name, generated_at, str(exc))

    logger.info(
        "Assistant tool %s completed",
        name,
        extra={"fittrack_tool": name, "fittrack_user_id": context.user_id},
    )
    return {"ok": True, "tool": name, "generated_at": generated_at, "data": to_jsonable(data)}
