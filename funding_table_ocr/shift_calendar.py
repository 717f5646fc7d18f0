"""
Civil-time shift calendar.

The organisation runs three shifts in a fixed timezone (not the host's):

  Morning 03:00-11:00, Day 11:00-19:00, Night 19:00-03:00

A "shift day" starts at 03:00, so 00:00-02:59 still belongs to the previous
calendar date's Night shift. Day counts for targets are taken from the shift-day date.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from . import config
from .types import CivilNow, ShiftInfo, ShiftName

DateLike = Union[date, str]

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_SHIFT_ORDER: List[ShiftName] = [ShiftName.MORNING, ShiftName.DAY, ShiftName.NIGHT]


def parse_iso_date(s: Optional[str]) -> Optional[date]:
    v = str(s or "").strip()
    if not _ISO_DATE_RE.match(v):
        return None
    try:
        return date.fromisoformat(v)
    except ValueError:
        return None


def is_valid_iso_date(s: Optional[str]) -> bool:
    return parse_iso_date(s) is not None


def _as_date(d: DateLike) -> date:
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    parsed = parse_iso_date(d)
    if parsed is None:
        raise ValueError(f"Invalid ISO date (expected YYYY-MM-DD): {d!r}")
    return parsed


def civil_now(instant: Optional[datetime] = None, tz: str = config.TIMEZONE) -> CivilNow:
    """
    Wall-clock fields of `instant` in `tz`. Naive datetimes are taken as UTC.
    """
    if instant is None:
        instant = datetime.now(timezone.utc)
    elif instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(ZoneInfo(tz))
    return CivilNow(
        year=local.year,
        month=local.month,
        day=local.day,
        hour=local.hour,
        minute=local.minute,
        second=local.second,
    )


def now(tz: str = config.TIMEZONE) -> CivilNow:
    return civil_now(None, tz)


def add_days(d: DateLike, n: int) -> date:
    return _as_date(d) + timedelta(days=int(n))


def days_between_inclusive(start: DateLike, end: DateLike) -> int:
    return (_as_date(end) - _as_date(start)).days + 1


def end_of_week(d: DateLike) -> date:
    """Next Sunday, or the same day when `d` is already a Sunday."""
    day = _as_date(d)
    return day + timedelta(days=(6 - day.weekday()) % 7)


def shift_for_minutes(minutes_into_day: int) -> ShiftName:
    mins = int(minutes_into_day)
    # Normalise into the shift-day range [03:00, 27:00)
    if mins < int(config.SHIFT_DAY_START_HOUR) * 60:
        mins += 24 * 60
    if int(config.MORNING_START_HOUR) * 60 <= mins < int(config.DAY_START_HOUR) * 60:
        return ShiftName.MORNING
    if int(config.DAY_START_HOUR) * 60 <= mins < int(config.NIGHT_START_HOUR) * 60:
        return ShiftName.DAY
    return ShiftName.NIGHT


def shift_info(instant: Optional[datetime] = None, tz: str = config.TIMEZONE) -> ShiftInfo:
    cn = civil_now(instant, tz)
    mins = cn.hour * 60 + cn.minute
    shift_day = cn.calendar_date
    if mins < int(config.SHIFT_DAY_START_HOUR) * 60:
        shift_day = add_days(shift_day, -1)

    current = shift_for_minutes(mins)
    remaining = _SHIFT_ORDER[_SHIFT_ORDER.index(current) :]
    return ShiftInfo(
        civil_now=cn,
        shift_day_date=shift_day,
        current_shift=current,
        remaining_shifts=list(remaining),
    )
