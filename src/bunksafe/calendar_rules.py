"""Calendar resolver: teaching days, holidays and Saturday-off rules."""
from datetime import date, datetime, timedelta
from typing import Iterable

from bunksafe.models import AttendanceStatus, DayType, Holiday, SemesterConfig

SATURDAY = 6  # internal numbering, 1=Monday .. 7=Sunday
SUNDAY = 7


def to_calendar_date(value) -> date:
    """Truncate a date, datetime or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Cannot interpret {value!r} as a calendar date")


def to_internal_weekday(day: date) -> int:
    """Map a date to the timetable's day numbering (1=Monday .. 7=Sunday).

    Every comparison between a concrete date and ``TimetableSlot.day_of_week``
    goes through here.
    """
    return day.isoweekday()


def holiday_dates(holidays: Iterable) -> frozenset:
    """Normalize holidays (Holiday records, dates or ISO strings) to a set of dates."""
    if isinstance(holidays, frozenset) and all(type(h) is date for h in holidays):
        return holidays
    dates = set()
    for h in holidays or ():
        dates.add(to_calendar_date(h.date if isinstance(h, Holiday) else h))
    return frozenset(dates)


def first_saturday(day: date) -> date:
    """First Saturday of the month containing ``day``."""
    return next(
        candidate
        for candidate in (day.replace(day=n) for n in range(1, 8))
        if to_internal_weekday(candidate) == SATURDAY
    )


def saturday_week_number(day: date) -> int:
    """Which Saturday of its month ``day`` is (1..5)."""
    return (day - first_saturday(day)).days // 7 + 1


def classify_day(day, config: SemesterConfig | None, holidays: Iterable = ()) -> DayType:
    """Classify ``day`` as Sunday, holiday, off Saturday or teaching day.

    The checks run in that order; a Sunday that is also a holiday is reported
    as SUNDAY.
    """
    day = to_calendar_date(day)
    weekday = to_internal_weekday(day)
    if weekday == SUNDAY:
        return DayType.SUNDAY
    if day in holiday_dates(holidays):
        return DayType.HOLIDAY
    if weekday == SATURDAY and config is not None:
        if saturday_week_number(day) in config.saturday_offs:
            return DayType.SATURDAY_OFF
    return DayType.TEACHING


def is_teaching_day(day, config: SemesterConfig | None, holidays: Iterable = ()) -> bool:
    return classify_day(day, config, holidays) == DayType.TEACHING


def iter_days(start: date, end: date):
    """Yield every calendar date in ``[start, end]`` in ascending order."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def day_marker(day, config: SemesterConfig | None, holidays: Iterable, logs: Iterable) -> str:
    """Calendar-grid marker for a day: present, absent, unmarked or none."""
    day = to_calendar_date(day)
    if config is None or classify_day(day, config, holidays) != DayType.TEACHING:
        return "none"
    if day < config.start_date or (config.end_date and day > config.end_date):
        return "none"
    log = next((entry for entry in logs if entry.date == day), None)
    if log is None:
        return "unmarked"
    if log.status == AttendanceStatus.PRESENT:
        return "present"
    if log.status == AttendanceStatus.ABSENT:
        return "absent"
    return "unmarked"
