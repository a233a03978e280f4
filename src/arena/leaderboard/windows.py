"""Time window boundaries for leaderboards.

Windows open at local midnight in the configured timezone:
  today    -> midnight of the current day
  week     -> Monday 00:00 of the ISO week
  month    -> first day of the month 00:00
  all_time -> no lower bound
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from arena.errors import InvalidWindow

WINDOWS = ("today", "week", "month", "all_time")


@dataclass(frozen=True)
class WindowBounds:
    """Half-open [start, end) range; start=None means unbounded."""

    start: datetime | None
    end: datetime

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        return ts < self.end


def resolve_timezone(name: str) -> tzinfo:
    """Map a timezone name to a tzinfo, without needing tzdata for UTC."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def validate_window(window: str) -> str:
    if window not in WINDOWS:
        msg = f"window must be one of {', '.join(WINDOWS)}"
        raise InvalidWindow(msg, field="window")
    return window


def get_monday(d: date) -> date:
    """Get the Monday of the ISO week containing d."""
    return d - timedelta(days=d.weekday())


def _first_of_previous_month(d: date) -> date:
    first = d.replace(day=1)
    return (first - timedelta(days=1)).replace(day=1)


def _midnight(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, time.min, tzinfo=tz)


def _period_start_date(window: str, today: date) -> date | None:
    if window == "today":
        return today
    if window == "week":
        return get_monday(today)
    if window == "month":
        return today.replace(day=1)
    return None


def current_window(window: str, now: datetime, tz: tzinfo = timezone.utc) -> WindowBounds:
    """Bounds of the window containing now, ending just after now."""
    validate_window(window)
    today = now.astimezone(tz).date()
    start_day = _period_start_date(window, today)
    start = _midnight(start_day, tz) if start_day is not None else None
    return WindowBounds(start=start, end=now + timedelta(microseconds=1))


def previous_window(window: str, now: datetime, tz: tzinfo = timezone.utc) -> WindowBounds:
    """Bounds of the full period immediately before the current one.

    For all_time this is everything before the start of the current day,
    so deltas show movement since midnight.
    """
    validate_window(window)
    today = now.astimezone(tz).date()

    if window == "today":
        return WindowBounds(_midnight(today - timedelta(days=1), tz), _midnight(today, tz))
    if window == "week":
        monday = get_monday(today)
        return WindowBounds(_midnight(monday - timedelta(days=7), tz), _midnight(monday, tz))
    if window == "month":
        return WindowBounds(
            _midnight(_first_of_previous_month(today), tz),
            _midnight(today.replace(day=1), tz),
        )
    return WindowBounds(None, _midnight(today, tz))


def window_key(window: str, now: datetime, tz: tzinfo = timezone.utc) -> str:
    """Stable label for the window containing now, e.g. '2026-W43'."""
    validate_window(window)
    local = now.astimezone(tz)
    if window == "today":
        return local.strftime("%Y-%m-%d")
    if window == "week":
        return local.strftime("%G-W%V")
    if window == "month":
        return local.strftime("%Y-%m")
    return "all_time"
