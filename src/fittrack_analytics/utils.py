"""Shared utility functions: calendar bucketing and lenient value coercion."""

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Values above this are epoch milliseconds, not seconds.
_EPOCH_MILLIS_THRESHOLD = 1_000_000_000_000


# ---------------------------------------------------------------------------
# Strength estimation
# ---------------------------------------------------------------------------


def epley_1rm(weight_kg: float, reps: int) -> float:
    """Estimate 1RM using the Epley formula. Returns 0 for invalid inputs."""
    if reps <= 0 or weight_kg <= 0:
        return 0.0
    if reps == 1:
        return weight_kg
    return weight_kg * (1 + reps / 30)


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------


def as_non_negative_float(value: Any) -> float:
    """Coerce to a finite float >= 0. Absent, invalid or negative -> 0.0."""
    if isinstance(value, bool):
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed) or parsed < 0:
        return 0.0
    return parsed


def as_non_negative_int(value: Any) -> int:
    """Coerce to an int >= 0, truncating fractions. Invalid -> 0."""
    return int(as_non_negative_float(value))


# ---------------------------------------------------------------------------
# Timezones
# ---------------------------------------------------------------------------


def normalize_timezone_name(value: Any) -> str | None:
    """Normalize timezone preference and verify it's a valid IANA name."""
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.upper() == "UTC":
        return "UTC"
    try:
        ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    return raw


def require_timezone(value: Any) -> str:
    """Like normalize_timezone_name, but a bad name is a caller mistake."""
    normalized = normalize_timezone_name(value)
    if normalized is None:
        raise ConfigurationError(f"Unknown timezone: {value!r}")
    return normalized


def resolve_timezone_context(timezone_pref: Any, default_timezone: str = "UTC") -> dict[str, Any]:
    """Pick the bucketing timezone and say whether it was assumed.

    A missing or blank preference falls back to ``default_timezone`` with a
    disclosure the assistant can repeat to the user. A preference that is
    set but not a valid IANA name is a caller mistake and raises.
    """
    if timezone_pref is None or (isinstance(timezone_pref, str) and not timezone_pref.strip()):
        fallback = require_timezone(default_timezone)
        return {
            "timezone": fallback,
            "source": "default",
            "assumed": True,
            "assumption_disclosure": (
                f"No timezone preference set; calendar days use {fallback} "
                "until the user confirms one."
            ),
        }
    return {
        "timezone": require_timezone(timezone_pref),
        "source": "preference",
        "assumed": False,
        "assumption_disclosure": None,
    }


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _from_epoch(epoch: float) -> datetime | None:
    if not math.isfinite(epoch):
        return None
    if epoch > _EPOCH_MILLIS_THRESHOLD:
        epoch /= 1000.0
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: Any) -> datetime | None:
    """Resolve any supported timestamp shape to an aware UTC datetime.

    Accepts datetimes (naive = UTC), dates (midnight UTC), epoch seconds or
    milliseconds, ISO 8601 strings and serialized store timestamps
    (``{"_seconds": ...}``). Anything else returns None.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))
    if isinstance(value, dict):
        for key in ("_seconds", "seconds"):
            seconds = value.get(key)
            if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
                return _from_epoch(float(seconds))
        return None
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None
    numeric = raw.replace(".", "", 1)
    if numeric.isdigit():
        return _from_epoch(float(raw))
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return as_utc(parsed)


# ---------------------------------------------------------------------------
# Calendar bucketing
# ---------------------------------------------------------------------------


def local_date_for_timezone(ts: datetime, timezone_name: str) -> date:
    """Project event timestamp into the configured local date."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(ZoneInfo(timezone_name)).date()


def day_key(ts: datetime, timezone_name: str) -> date:
    """Local calendar day of a point in time; time of day is discarded."""
    return local_date_for_timezone(ts, timezone_name)


def days_between(a: date, b: date) -> int:
    """Signed number of days from ``a`` to ``b`` (positive when b is later)."""
    return (b - a).days


def local_day_start(d: date, timezone_name: str) -> datetime:
    """UTC instant at which local day ``d`` begins."""
    local = datetime(d.year, d.month, d.day, tzinfo=ZoneInfo(timezone_name))
    return local.astimezone(timezone.utc)


def iso_week(d: date) -> str:
    """Return ISO week string like '2026-W06'."""
    iso = d.isocalendar()
    return f"{iso.year}-W{iso.week:02d}"


def iso_week_start(d: date) -> date:
    """Monday of the ISO week containing ``d``."""
    return d - timedelta(days=d.weekday())


def add_months(d: date, months: int) -> date:
    """First day of the month ``months`` away from the month of ``d``."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)
