"""CLI entry point for the offline snapshot report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from .assistant_tools import run_tool, to_jsonable
from .config import AnalyticsConfig, Config
from .errors import ConfigurationError
from .logging import setup_logging
from .periods import PERIODS, activity_heatmap, daily_series, monthly_activity
from .registry import ToolContext, registered_tools
from .storage import InMemoryEventStore
from .timeline import build_activity_timeline
from .utils import parse_timestamp, resolve_timezone_context

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fittrack-analytics",
        description="Run every assistant tool against a JSON snapshot and print the report.",
    )
    parser.add_argument(
        "--snapshot",
        required=True,
        help=(
            "JSON file with workouts, personal_records, weight_entries, goals "
            "and account_created_at."
        ),
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Reference instant (ISO 8601). Defaults to the current time.",
    )
    parser.add_argument(
        "--timezone",
        default=None,
        help="IANA timezone preference for calendar bucketing. Defaults to FITTRACK_TIMEZONE.",
    )
    parser.add_argument(
        "--period",
        default="month",
        choices=PERIODS,
        help="Period passed to get_workout_stats and the daily series.",
    )
    parser.add_argument(
        "--user-id",
        default="snapshot",
        help="User id the snapshot is loaded under.",
    )
    return parser


def load_snapshot(path: str | Path) -> dict[str, Any]:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read snapshot {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Snapshot {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Snapshot {path} must contain a JSON object")
    return payload


def _resolve_now(raw: str | None) -> datetime:
    if raw is None:
        return datetime.now(timezone.utc)
    parsed = parse_timestamp(raw)
    if parsed is None:
        raise ConfigurationError(f"Invalid --now value: {raw!r}")
    return parsed


def build_report(
    snapshot: dict[str, Any],
    *,
    now: datetime,
    timezone_name: str | None,
    period: str,
    user_id: str,
    config: AnalyticsConfig,
) -> dict[str, Any]:
    tz_context = resolve_timezone_context(timezone_name, config.default_timezone)
    store = InMemoryEventStore.from_snapshot(user_id, snapshot)
    context = ToolContext(
        user_id=user_id,
        now=now,
        timezone_name=timezone_name,
        account_created_at=parse_timestamp(snapshot.get("account_created_at")),
        config=config,
    )

    tools: dict[str, Any] = {}
    for name in registered_tools():
        arguments = {"period": period} if name == "get_workout_stats" else {}
        tools[name] = run_tool(name, arguments, store=store, context=context)

    timezone_name = tz_context["timezone"]
    workouts = store.list_workouts(user_id, context.workout_limit)
    charts = {
        "daily_series": daily_series(
            workouts, period, now=now, timezone_name=timezone_name, config=config
        ),
        "monthly_activity": monthly_activity(workouts, now=now, timezone_name=timezone_name),
        "activity_heatmap": activity_heatmap(
            workouts, now=now, timezone_name=timezone_name, weeks=config.heatmap_weeks
        ),
    }
    timeline = build_activity_timeline(
        workouts,
        store.list_personal_records(user_id),
        store.list_weight_entries(user_id, context.weight_entry_limit),
        store.list_goals(user_id),
    )
    return {
        "user_id": user_id,
        "now": now,
        "timezone": timezone_name,
        "timezone_assumed": tz_context["assumed"],
        "tools": tools,
        "charts": to_jsonable(charts),
        "timeline": to_jsonable(timeline),
    }


def _run(args: argparse.Namespace) -> int:
    try:
        config = Config.from_env()
        setup_logging(config.log_format, config.log_level)
        analytics_config = AnalyticsConfig.from_env()
        report = build_report(
            load_snapshot(args.snapshot),
            now=_resolve_now(args.now),
            timezone_name=args.timezone,
            period=args.period,
            user_id=args.user_id,
            config=analytics_config,
        )
    except ConfigurationError as exc:
        logger.error("Snapshot report failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(to_jsonable(report), indent=2, sort_keys=True))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    raise SystemExit(_run(args))


if __name__ == "__main__":
    main()
