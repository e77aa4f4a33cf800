from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 instant ('Z' suffix accepted) into an aware UTC datetime."""
    try:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(text))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid timestamp: {value!r}")


def format_iso_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    value = ensure_utc(value).replace(tzinfo=None)
    # Microseconds are kept when present; whole seconds print without a fraction
    return value.isoformat(timespec="microseconds" if value.microsecond else "seconds") + "Z"


def load_timezone(name: str) -> tzinfo:
    if name.strip().upper() in {"UTC", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone: {name!r}")


def now_utc() -> datetime:
    """Current instant in UTC.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize to aware UTC. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_seconds(start: datetime, now: datetime) -> int:
    seconds = int((ensure_utc(now) - ensure_utc(start)).total_seconds())
    return max(seconds, 0)


def elapsed_minutes(start: datetime, now: datetime) -> int:
    """Whole minutes between two instants (floor), never negative."""
    return elapsed_seconds(start, now) // 60


def format_duration(minutes: float) -> str:
    """Human string for a duration: '2h 30m', '45m', '3h'."""
    total = max(int(minutes), 0)
    hours, mins = divmod(total, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_hms(minutes: float) -> str:
    """Clock style 'HH:MM:SS' for a (possibly fractional) number of minutes."""
    total_seconds = max(int(math.floor(minutes * 60)), 0)
    hours, rest = divmod(total_seconds, 3600)
    mins, secs = divmod(rest, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def local_date(instant: datetime, tz: tzinfo) -> date:
    return ensure_utc(instant).astimezone(tz).date()


def week_start(day: date) -> date:
    """Monday of the week containing `day` (a Sunday belongs to the week that started 6 days earlier)."""
    return day - timedelta(days=day.weekday())


def week_end(day: date) -> date:
    """Sunday closing the week containing `day`."""
    return week_start(day) + timedelta(days=6)


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """UTC instant of local midnight starting `day`."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """UTC [start, end) of the local calendar day."""
    return local_midnight(day, tz), local_midnight(day + timedelta(days=1), tz)


def week_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """UTC [Monday 00:00, next Monday 00:00) in local time for the week containing `day`."""
    monday = week_start(day)
    return local_midnight(monday, tz), local_midnight(monday + timedelta(days=7), tz)


def last_n_days(days: int, today: date) -> Tuple[date, date]:
    if days < 1:
        raise ValidationError("Number of days must be at least 1")
    return today - timedelta(days=days - 1), today
