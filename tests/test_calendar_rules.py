# tests/test_calendar_rules.py
from datetime import date, datetime

import pytest

from bunksafe.calendar_rules import (
    classify_day, day_marker, first_saturday, holiday_dates, is_teaching_day, iter_days,
    saturday_week_number, to_calendar_date, to_internal_weekday,
)
from bunksafe.models import AttendanceLogEntry, AttendanceStatus, DayType, Holiday, SemesterConfig

JAN = SemesterConfig(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))


def test_to_calendar_date_truncates_time():
    assert to_calendar_date("2025-01-06T14:30:00Z") == date(2025, 1, 6)
    assert to_calendar_date(datetime(2025, 1, 6, 23, 59)) == date(2025, 1, 6)
    assert to_calendar_date(date(2025, 1, 6)) == date(2025, 1, 6)


def test_to_calendar_date_rejects_other_types():
    with pytest.raises(TypeError):
        to_calendar_date(20250106)


def test_internal_weekday_monday_is_one_sunday_is_seven():
    assert to_internal_weekday(date(2025, 1, 6)) == 1
    assert to_internal_weekday(date(2025, 1, 11)) == 6
    assert to_internal_weekday(date(2025, 1, 12)) == 7


def test_saturday_week_number_when_month_starts_on_tuesday():
    # April 2025 starts on a Tuesday
    assert date(2025, 4, 1).isoweekday() == 2
    assert first_saturday(date(2025, 4, 19)) == date(2025, 4, 5)
    assert saturday_week_number(date(2025, 4, 19)) == 3


def test_saturday_week_number_fifth_saturday():
    # March 2025 starts on a Saturday
    assert first_saturday(date(2025, 3, 29)) == date(2025, 3, 1)
    assert saturday_week_number(date(2025, 3, 1)) == 1
    assert saturday_week_number(date(2025, 3, 29)) == 5


def test_sunday_always_off():
    assert classify_day(date(2025, 1, 5), JAN, []) == DayType.SUNDAY


def test_sunday_that_is_also_a_holiday_is_sunday():
    assert classify_day(date(2025, 1, 5), JAN, [date(2025, 1, 5)]) == DayType.SUNDAY


def test_holiday_matches_on_calendar_day():
    holidays = [Holiday(date=date(2025, 1, 13))]
    assert classify_day(date(2025, 1, 13), JAN, holidays) == DayType.HOLIDAY
    assert classify_day("2025-01-13", JAN, ["2025-01-13T00:00:00"]) == DayType.HOLIDAY


def test_holiday_on_off_saturday_is_holiday():
    config = SemesterConfig(start_date=date(2025, 1, 1), saturday_offs=frozenset({2}))
    assert classify_day(date(2025, 1, 11), config, [date(2025, 1, 11)]) == DayType.HOLIDAY


def test_saturday_off_rule():
    config = SemesterConfig(start_date=date(2025, 1, 1), saturday_offs=frozenset({2, 4}))
    assert classify_day(date(2025, 1, 4), config) == DayType.TEACHING
    assert classify_day(date(2025, 1, 11), config) == DayType.SATURDAY_OFF
    assert classify_day(date(2025, 1, 18), config) == DayType.TEACHING
    assert classify_day(date(2025, 1, 25), config) == DayType.SATURDAY_OFF


def test_weekday_is_teaching_day():
    assert is_teaching_day(date(2025, 1, 6), JAN)
    assert not is_teaching_day(date(2025, 1, 12), JAN)


def test_holiday_dates_accepts_mixed_inputs():
    dates = holiday_dates([Holiday(date=date(2025, 1, 2)), "2025-01-03", date(2025, 1, 4)])
    assert dates == frozenset({date(2025, 1, 2), date(2025, 1, 3), date(2025, 1, 4)})


def test_frozenset_of_strings_is_normalized():
    dates = holiday_dates(frozenset({"2025-01-06", datetime(2025, 1, 13, 9, 30)}))
    assert dates == frozenset({date(2025, 1, 6), date(2025, 1, 13)})
    assert classify_day(date(2025, 1, 6), JAN, frozenset({"2025-01-06"})) == DayType.HOLIDAY


def test_iter_days_is_inclusive():
    days = list(iter_days(date(2025, 1, 30), date(2025, 2, 2)))
    assert days == [date(2025, 1, 30), date(2025, 1, 31), date(2025, 2, 1), date(2025, 2, 2)]


def test_day_marker():
    logs = [
        AttendanceLogEntry(subject_id=1, date=date(2025, 1, 6), status=AttendanceStatus.PRESENT),
        AttendanceLogEntry(subject_id=1, date=date(2025, 1, 7), status=AttendanceStatus.ABSENT),
        AttendanceLogEntry(subject_id=1, date=date(2025, 1, 8), status=AttendanceStatus.CANCELLED),
    ]
    assert day_marker(date(2025, 1, 6), JAN, [], logs) == "present"
    assert day_marker(date(2025, 1, 7), JAN, [], logs) == "absent"
    assert day_marker(date(2025, 1, 8), JAN, [], logs) == "unmarked"
    assert day_marker(date(2025, 1, 9), JAN, [], logs) == "unmarked"
    assert day_marker(date(2025, 1, 5), JAN, [], logs) == "none"
    assert day_marker(date(2025, 2, 3), JAN, [], logs) == "none"
    assert day_marker(date(2025, 1, 6), None, [], logs) == "none"
