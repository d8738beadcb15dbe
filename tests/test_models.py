"""Tests for input models and malformed-record handling."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from fittrack_analytics.models import (
    Goal,
    PersonalRecordEvent,
    WorkoutEvent,
    parse_goals,
    parse_personal_records,
    parse_weight_entries,
    parse_workouts,
)


class TestWorkoutEvent:
    def test_volume_from_sets(self):
        w = WorkoutEvent.model_validate({
            "date": "2026-02-08T10:00:00Z",
            "exercises": [
                {"name": "Squat", "sets": [{"reps": 5, "weight": 100}, {"reps": 10, "weight": 50}]},
            ],
        })
        assert w.volume == 1000
        assert w.set_count == 2
        assert w.rep_count == 15

    def test_camel_case_aliases(self):
        w = WorkoutEvent.model_validate({
            "occurredAt": "2026-02-08T10:00:00Z",
            "durationMinutes": 45,
            "type": "cardio",
        })
        assert w.duration_minutes == 45
        assert w.kind == "cardio"

    def test_missing_numeric_fields_default_to_zero(self):
        w = WorkoutEvent.model_validate({
            "date": "2026-02-08T10:00:00Z",
            "duration": "n/a",
            "exercises": [{"name": "Plank", "sets": [{}, {"reps": -3, "weight": None}]}],
        })
        assert w.duration_minutes == 0.0
        assert w.volume == 0.0
        assert w.set_count == 2

    def test_unknown_kind_falls_back_to_strength(self):
        w = WorkoutEvent.model_validate({"date": "2026-02-08", "type": "yoga"})
        assert w.kind == "strength"

    def test_non_dict_exercises_skipped(self):
        w = WorkoutEvent.model_validate({
            "date": "2026-02-08",
            "exercises": ["Squat", None, {"name": "Bench Press"}],
        })
        assert [ex.name for ex in w.exercises] == ["Bench Press"]

    def test_missing_timestamp_is_invalid(self):
        with pytest.raises(ValidationError):
            WorkoutEvent.model_validate({"name": "No date"})

    def test_frozen(self):
        w = WorkoutEvent.model_validate({"date": "2026-02-08"})
        with pytest.raises(ValidationError):
            w.name = "changed"


class TestPersonalRecordEvent:
    def test_valid(self):
        r = PersonalRecordEvent.model_validate({
            "exerciseName": "Squat", "weight": 100, "reps": 5, "date": "2026-02-08",
        })
        assert r.exercise_name == "Squat"
        assert r.occurred_at == datetime(2026, 2, 8, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "row",
        [
            {"exerciseName": "Squat", "weight": 0, "reps": 5, "date": "2026-02-08"},
            {"exerciseName": "Squat", "weight": 100, "reps": 0, "date": "2026-02-08"},
            {"exerciseName": "Squat", "weight": -10, "reps": 5, "date": "2026-02-08"},
            {"exerciseName": "", "weight": 100, "reps": 5, "date": "2026-02-08"},
            {"exerciseName": "Squat", "weight": 100, "reps": 5},
        ],
    )
    def test_malformed(self, row):
        with pytest.raises(ValidationError):
            PersonalRecordEvent.model_validate(row)


class TestGoal:
    def test_completed_only_when_true(self):
        assert Goal.model_validate({"completed": "yes"}).completed is False
        assert Goal.model_validate({"completed": True}).completed is True

    def test_values(self):
        g = Goal.model_validate({"targetValue": 80, "currentValue": "75.5", "updatedAt": "2026-02-08"})
        assert g.target_value == 80
        assert g.current_value == 75.5
        assert g.updated_at == datetime(2026, 2, 8, tzinfo=timezone.utc)


class TestParseHelpers:
    def test_malformed_workouts_dropped(self):
        rows = [
            {"date": "2026-02-08"},
            {"name": "no date"},
            None,
            "garbage",
        ]
        assert len(parse_workouts(rows)) == 1

    def test_models_pass_through(self):
        w = WorkoutEvent.model_validate({"date": "2026-02-08"})
        assert parse_workouts([w])[0] is w

    def test_none_input(self):
        assert parse_workouts(None) == []
        assert parse_goals(None) == []

    def test_malformed_records_dropped(self):
        rows = [
            {"exercise": "Squat", "weight": 100, "reps": 5, "date": "2026-02-08"},
            {"exercise": "Squat", "weight": 0, "reps": 5, "date": "2026-02-08"},
        ]
        assert len(parse_personal_records(rows)) == 1

    def test_weight_entries_require_positive_weight(self):
        rows = [
            {"weight": 80.5, "date": "2026-02-08"},
            {"weight": 0, "date": "2026-02-09"},
            {"weight": 81},
        ]
        parsed = parse_weight_entries(rows)
        assert [e.weight for e in parsed] == [80.5]
