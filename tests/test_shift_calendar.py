from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from funding_table_ocr.shift_calendar import (
    add_days,
    civil_now,
    days_between_inclusive,
    end_of_week,
    is_valid_iso_date,
    parse_iso_date,
    shift_info,
)
from funding_table_ocr.types import ShiftName


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_civil_now_uses_target_zone_not_host_zone():
    # 12:30 in New York during BST/EDT is 17:30 in London
    ny = datetime(2026, 7, 15, 12, 30, 5, tzinfo=ZoneInfo("America/New_York"))
    cn = civil_now(ny, "Europe/London")
    assert (cn.year, cn.month, cn.day, cn.hour, cn.minute, cn.second) == (2026, 7, 15, 17, 30, 5)
    assert cn.iso_date == "2026-07-15"
    assert cn.clock() == "17:30:05"


def test_naive_instant_is_treated_as_utc():
    cn = civil_now(datetime(2026, 1, 15, 10, 0), "Europe/London")
    assert cn.hour == 10


def test_shift_boundary_at_0300_summer():
    # BST: 01:59 UTC == 02:59 London
    before = shift_info(_utc(2026, 7, 15, 1, 59), "Europe/London")
    after = shift_info(_utc(2026, 7, 15, 2, 0), "Europe/London")

    assert before.current_shift == ShiftName.NIGHT
    assert before.shift_day_date == date(2026, 7, 14)
    assert before.remaining_shifts == [ShiftName.NIGHT]

    assert after.current_shift == ShiftName.MORNING
    assert after.shift_day_date == date(2026, 7, 15)
    assert after.remaining_shifts == [ShiftName.MORNING, ShiftName.DAY, ShiftName.NIGHT]
    assert before.shift_day_date != after.shift_day_date


def test_shift_boundary_at_0300_winter():
    info = shift_info(_utc(2026, 1, 1, 2, 59), "Europe/London")
    assert info.current_shift == ShiftName.NIGHT
    assert info.shift_day_date == date(2025, 12, 31)


@pytest.mark.parametrize(
    "hour,shift,remaining",
    [
        (3, ShiftName.MORNING, 3),
        (10, ShiftName.MORNING, 3),
        (11, ShiftName.DAY, 2),
        (18, ShiftName.DAY, 2),
        (19, ShiftName.NIGHT, 1),
        (23, ShiftName.NIGHT, 1),
        (0, ShiftName.NIGHT, 1),
    ],
)
def test_shift_windows(hour, shift, remaining):
    info = shift_info(_utc(2026, 1, 15, hour, 30), "Europe/London")
    assert info.current_shift == shift
    assert len(info.remaining_shifts) == remaining
    assert info.remaining_shifts[0] == shift


def test_evening_night_stays_on_same_shift_day():
    info = shift_info(_utc(2026, 1, 15, 22, 0), "Europe/London")
    assert info.shift_day_date == date(2026, 1, 15)


def test_days_between_inclusive():
    assert days_between_inclusive("2026-10-18", "2026-10-18") == 1
    assert days_between_inclusive(date(2026, 2, 27), date(2026, 2, 27)) == 1
    assert days_between_inclusive("2026-10-18", "2026-10-21") == 4
    assert days_between_inclusive("2026-10-21", "2026-10-18") == -2
    # DST change inside the range does not matter for calendar dates
    assert days_between_inclusive("2026-10-24", "2026-10-26") == 3


def test_add_days_and_end_of_week():
    assert add_days("2026-10-31", 1) == date(2026, 11, 1)
    assert add_days(date(2026, 3, 1), -1) == date(2026, 2, 28)
    # 2026-10-18 is a Sunday
    assert end_of_week("2026-10-18") == date(2026, 10, 18)
    assert end_of_week("2026-10-14") == date(2026, 10, 18)
    assert end_of_week(date(2026, 10, 19)) == date(2026, 10, 25)


def test_iso_date_validation():
    assert is_valid_iso_date("2026-10-18")
    assert not is_valid_iso_date("2026-13-01")
    assert not is_valid_iso_date("18/10/2026")
    assert not is_valid_iso_date(None)
    assert parse_iso_date(" 2026-10-18 ") == date(2026, 10, 18)
    with pytest.raises(ValueError):
        add_days("not-a-date", 1)
