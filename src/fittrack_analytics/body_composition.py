"""Body weight trend summary.

Computes current/starting weight, change, all-time min/max, the most recent
entries and ISO-week averages from weight entries. Entries arrive unordered;
malformed ones (no timestamp, non-positive weight) are dropped.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from .models import WeightEntry, parse_weight_entries
from .utils import day_key, iso_week, require_timezone

logger = logging.getLogger(__name__)

RECENT_ENTRY_LIMIT = 10


def summarize_weight_entries(
    entries: Iterable[WeightEntry | Any],
    *,
    timezone_name: str,
    recent_limit: int = RECENT_ENTRY_LIMIT,
) -> dict[str, Any]:
    timezone_name = require_timezone(timezone_name)
    parsed = sorted(parse_weight_entries(entries), key=lambda e: (e.occurred_at, e.id or ""))
    if not parsed:
        return {
            "current_weight": None,
            "starting_weight": None,
            "change": 0.0,
            "min_weight": None,
            "max_weight": None,
            "total_entries": 0,
            "recent_entries": [],
            "weekly_average": [],
        }

    weekly: dict[str, list[float]] = defaultdict(list)
    for entry in parsed:
        weekly[iso_week(day_key(entry.occurred_at, timezone_name))].append(entry.weight)

    weights = [e.weight for e in parsed]
    return {
        "current_weight": parsed[-1].weight,
        "starting_weight": parsed[0].weight,
        "change": round(parsed[-1].weight - parsed[0].weight, 2),
        "min_weight": min(weights),
        "max_weight": max(weights),
        "total_entries": len(parsed),
        "recent_entries": [
            {
                "date": day_key(e.occurred_at, timezone_name).isoformat(),
                "weight": e.weight,
                **({"notes": e.notes} if e.notes else {}),
            }
            for e in parsed[-recent_limit:]
        ],
        "weekly_average": [
            {
                "week": week,
                "avg_weight": round(sum(values) / len(values), 2),
                "measurements": len(values),
            }
            for week, values in sorted(weekly.items())
        ],
    }
