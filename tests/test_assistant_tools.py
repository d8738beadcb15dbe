"""Tests for the read-only assistant tools and their response envelope."""

import dataclasses
import json
from datetime import date, datetime, timedelta, timezone

import pytest

from fittrack_analytics.assistant_tools import run_tool, to_jsonable
from fittrack_analytics.config import AnalyticsConfig
from fittrack_analytics.periods import aggregate_period
from fittrack_analytics.registry import ToolContext
from fittrack_analytics.storage import InMemoryEventStore

NOW = datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)
USER = "user-1"


def _ts(offset_days: int) -> str:
    return (NOW.replace(hour=9) + timedelta(days=offset_days)).isoformat()


SNAPSHOT = {
    "workouts": [
        {
            "id": "w0",
            "name": "Legs",
            "date": _ts(0),
            "duration": 60,
            "exercises": [
                {"name": "Squat", "sets": [{"reps": 5, "weight": 100}, {"reps": 10, "weight": 50}]},
            ],
        },
        {"id": "w1", "name": "Push", "date": _ts(-1), "duration": 45,
         "exercises": [{"name": "Bench Press", "sets": [{"reps": 5, "weight": 80}]}]},
        {"id": "w2", "name": "Pull", "date": _ts(-2), "duration": 30,
         "exercises": [{"name": "Squat", "sets": []}]},
        {"id": "old", "name": "Old", "date": _ts(-60), "duration": 40},
    ],
    "personal_records": [
        {"id": "r1", "exercise": "Squat", "weight": 100, "reps": 5, "date": _ts(-20)},
        {"id": "r2", "exercise": "Squat", "weight": 110, "reps": 5, "date": _ts(-10)},
        {"id": "r3", "exercise": "Hammer Curl", "weight": 20, "reps": 10, "date": _ts(-5)},
    ],
    "weight_entries": [
        {"id": "b1", "weight": 82, "date": _ts(-14)},
        {"id": "b2", "weight": 81, "date": _ts(-1)},
    ],
    "goals": [
        {"id": "g1", "title": "Squat 150", "type": "strength", "targetValue": 150,
         "currentValue": 110, "unit": "kg"},
    ],
}


@pytest.fixture
def store():
    return InMemoryEventStore.from_snapshot(USER, SNAPSHOT)


@pytest.fixture
def context():
    return ToolContext(
        user_id=USER,
        now=NOW,
        timezone_name="UTC",
        account_created_at=NOW - timedelta(days=95),
    )


class TestEnvelope:
    def test_success_shape(self, store, context):
        result = run_tool("get_achievements", {}, store=store, context=context)
        assert result["ok"] is True
        assert result["tool"] == "get_achievements"
        assert result["generated_at"] == NOW.isoformat()
        json.dumps(result)

    def test_unknown_tool(self, store, context):
        result = run_tool("delete_everything", {}, store=store, context=context)
        assert result["ok"] is False
        assert "Unknown tool" in result["error"]

    def test_bad_argument_value(self, store, context):
        result = run_tool("get_workout_stats", {"period": "fortnight"}, store=store, context=context)
        assert result["ok"] is False
        assert "fortnight" in result["error"]

    @pytest.mark.parametrize(
        "tool, arguments",
        [
            ("get_record_summary", {"exercise": 123}),
            ("get_record_summary", {"category": ["arms"]}),
            ("get_workout_stats", {"period": True}),
        ],
    )
    def test_argument_of_wrong_type(self, store, context, tool, arguments):
        result = run_tool(tool, arguments, store=store, context=context)
        assert result["ok"] is False
        assert "must be of type string" in result["error"]

    def test_bad_context_timezone(self, store):
        context = ToolContext(user_id=USER, now=NOW, timezone_name="Mars/Olympus")
        result = run_tool("get_profile_summary", {}, store=store, context=context)
        assert result["ok"] is False
        assert "Mars/Olympus" in result["error"]

    def test_unexpected_argument(self, store, context):
        result = run_tool("get_workout_stats", {"user_id": "someone-else"}, store=store, context=context)
        assert result["ok"] is False
        assert "user_id" in result["error"]

    def test_none_arguments_use_defaults(self, store, context):
        result = run_tool("get_record_summary", {"exercise": None}, store=store, context=context)
        assert result["ok"] is True
        assert result["data"]["exercise"] is None


class TestGetWorkoutStats:
    def test_matches_period_aggregator(self, store, context):
        result = run_tool("get_workout_stats", {"period": "week"}, store=store, context=context)
        expected = aggregate_period(
            store.list_workouts(USER, 1000), "week", now=NOW, timezone_name="UTC"
        )
        assert result["data"]["summary"] == dataclasses.asdict(expected)
        assert result["data"]["summary"]["total_workouts"] == 3
        assert result["data"]["summary"]["total_volume"] == 1400

    def test_top_exercises_and_streak(self, store, context):
        data = run_tool("get_workout_stats", {"period": "week"}, store=store, context=context)["data"]
        assert data["top_exercises"][0] == {"name": "Squat", "count": 2}
        assert data["streak"] == {"current": 3, "longest": 3}
        assert data["window"]["end"] == "2026-02-11T00:00:00+00:00"

    def test_default_period_is_month(self, store, context):
        data = run_tool("get_workout_stats", None, store=store, context=context)["data"]
        assert data["period"] == "month"
        assert data["summary"]["total_workouts"] == 3


class TestGetRecordSummary:
    def test_all_exercises(self, store, context):
        data = run_tool("get_record_summary", {}, store=store, context=context)["data"]
        assert [r["exercise"] for r in data["records"]] == ["Squat", "Hammer Curl"]
        assert "series" not in data["records"][0]
        assert data["compound_total"] == 110
        assert data["stats"]["recent_records"] == 3

    def test_strength_profile_uses_configured_reference(self, store):
        context = ToolContext(
            user_id=USER, now=NOW, config=AnalyticsConfig(strength_profile_reference_kg=110)
        )
        data = run_tool("get_record_summary", {}, store=store, context=context)["data"]
        profile = {row["category"]: row for row in data["strength_profile"]}
        assert profile["legs"] == {"category": "legs", "value": 100, "count": 1}
        assert profile["chest"]["value"] == 0

    def test_single_exercise_includes_series(self, store, context):
        data = run_tool(
            "get_record_summary", {"exercise": "Squat"}, store=store, context=context
        )["data"]
        squat = data["records"][0]
        assert squat["best"]["weight"] == 110
        assert squat["previous_best"] == 100
        assert squat["improvement_pct"] == 10.0
        assert [p["weight"] for p in squat["series"]] == [100, 110]

    def test_category_filter(self, store, context):
        data = run_tool(
            "get_record_summary", {"category": "arms"}, store=store, context=context
        )["data"]
        assert [r["exercise"] for r in data["records"]] == ["Hammer Curl"]

    def test_unknown_category(self, store, context):
        result = run_tool("get_record_summary", {"category": "cardio"}, store=store, context=context)
        assert result["ok"] is False


class TestGetProfileSummary:
    def test_profile(self, store, context):
        data = run_tool("get_profile_summary", {}, store=store, context=context)["data"]
        assert data["totals"]["total_workouts"] == 4
        assert data["streak"]["current"] == 3
        assert data["streak"]["last_active_day"] == "2026-02-10"
        assert data["level"]["level"] == 1
        assert data["weekly_goal"]["current"] == 2
        assert data["weight"]["current_weight"] == 81
        assert data["goals"][0]["progress"] == pytest.approx(110 / 150 * 100)
        assert data["daily_calorie_target"] == 2000
        assert data["account_created_at"] == (NOW - timedelta(days=95)).isoformat()
        assert data["timezone"]["timezone"] == "UTC"
        assert data["timezone"]["assumed"] is False

    def test_profile_discloses_assumed_timezone(self, store):
        context = ToolContext(
            user_id=USER, now=NOW, config=AnalyticsConfig(default_timezone="America/New_York")
        )
        data = run_tool("get_profile_summary", {}, store=store, context=context)["data"]
        assert data["timezone"]["timezone"] == "America/New_York"
        assert data["timezone"]["source"] == "default"
        assert "America/New_York" in data["timezone"]["assumption_disclosure"]


class TestGetAchievements:
    def test_achievements(self, store, context):
        data = run_tool("get_achievements", {}, store=store, context=context)["data"]
        assert data["total_count"] == 10
        earned = {a["id"] for a in data["achievements"] if a["earned"]}
        assert earned == {"first-workout", "first-pr"}
        assert data["earned_count"] == 2
        first_pr = next(a for a in data["achievements"] if a["id"] == "first-pr")
        assert first_pr["unlocked_at"] == _ts(-20)


class TestToJsonable:
    def test_nested_values(self):
        @dataclasses.dataclass(frozen=True)
        class Point:
            day: date
            values: tuple

        assert to_jsonable({"p": Point(date(2026, 2, 10), (1, NOW))}) == {
            "p": {"day": "2026-02-10", "values": [1, NOW.isoformat()]},
        }
