from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import config
from .money import to_minor_units
from .shift_calendar import days_between_inclusive, is_valid_iso_date, shift_info
from .types import ParseResult, TargetResult

log = logging.getLogger("funding_table_ocr")

Number = Union[int, float]


class FundingConfigError(ValueError):
    """Usage/configuration problem (as opposed to a recognition failure)."""


class InvalidAdjustmentError(FundingConfigError):
    pass


class InvalidTimezoneError(FundingConfigError):
    pass


class MissingDeadlineError(FundingConfigError):
    """
    Neither an end date nor a days-left override is available.

    Raised after the image was parsed; `parse` and `manual_adjustment` carry that work so
    the caller can still store it.
    """

    def __init__(
        self,
        message: str = "Missing end date: provide an end date (YYYY-MM-DD) or a days-left override",
        *,
        parse: Optional[ParseResult] = None,
        manual_adjustment: int = 0,
    ) -> None:
        super().__init__(message)
        self.parse = parse
        self.manual_adjustment = int(manual_adjustment)


def _ceil_div(a: int, b: int) -> int:
    return -(-int(a) // int(b))


def resolve_timezone(name: Optional[str]) -> str:
    """Return `name` if it is a known IANA zone (e.g. "Europe/London")."""
    tz = str(name or "").strip()
    if not tz:
        raise InvalidTimezoneError("Timezone name is empty")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimezoneError(f"Unknown timezone: {name!r}") from e
    return tz


def _check_amount(label: str, value: Optional[Number]) -> None:
    if value is not None and not math.isfinite(float(value)):
        raise InvalidAdjustmentError(f"{label} must be a finite amount, got {value!r}")


def apply_adjustment(
    current: int = 0,
    *,
    add: Optional[Number] = None,
    remove: Optional[Number] = None,
    reset: bool = False,
) -> int:
    """
    Update the running manual adjustment (minor units).

    Money added reduces what is still needed, so `add` makes the adjustment more
    negative and `remove` makes it more positive.
    """
    _check_amount("add", add)
    _check_amount("remove", remove)
    if add and remove:
        raise InvalidAdjustmentError("Use either add or remove, not both")
    out = 0 if reset else int(current or 0)
    if add is not None:
        out -= to_minor_units(add)
    if remove is not None:
        out += to_minor_units(remove)
    return int(out)


def resolve_end_date(*candidates: Optional[str]) -> Optional[str]:
    """First valid YYYY-MM-DD among candidates (explicit option, stored value, env default)."""
    for c in candidates:
        v = str(c or "").strip()
        if v and is_valid_iso_date(v):
            return v
        if v:
            log.warning("Ignoring invalid end date %r (expected YYYY-MM-DD)", v)
    return None


def compute_targets(
    parsed_total: int,
    manual_adjustment: int = 0,
    *,
    end_date: Optional[str] = None,
    days_left_override: Optional[int] = None,
    instant: Optional[datetime] = None,
    tz: str = config.TIMEZONE,
) -> TargetResult:
    info = shift_info(instant, resolve_timezone(tz))
    remaining = int(parsed_total) + int(manual_adjustment or 0)

    if days_left_override is not None and int(days_left_override) > 0:
        days_left = int(days_left_override)
    elif end_date:
        # counted from the shift-day, so 01:00 still belongs to yesterday
        days_left = max(1, days_between_inclusive(info.shift_day_date, end_date))
    else:
        raise MissingDeadlineError(manual_adjustment=int(manual_adjustment or 0))

    daily = _ceil_div(remaining, days_left)
    per_shift = _ceil_div(daily, len(info.remaining_shifts))
    log.info(
        "Targets: remaining=%d days_left=%d daily=%d per_shift=%d (%s, %d shift(s) left)",
        remaining,
        days_left,
        daily,
        per_shift,
        info.current_shift.value,
        len(info.remaining_shifts),
    )
    return TargetResult(
        total_remaining=remaining,
        days_left=days_left,
        daily_target=daily,
        per_shift=per_shift,
        shift_info=info,
        manual_adjustment=int(manual_adjustment or 0),
        end_date=end_date,
    )
