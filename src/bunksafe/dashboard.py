"""Dashboard, analytics and calendar view models."""
import calendar
from datetime import date

from bunksafe.calendar_rules import classify_day, day_marker, holiday_dates
from bunksafe.engine import neutral_result, reconcile, scan_window
from bunksafe.exceptions import ValidationError
from bunksafe.loader import StudentData, load_student_data
from bunksafe.models import ReconcileResult
from bunksafe.projection import STATUS_ORDER, is_overall_safe
from bunksafe.timetable import classes_on

SORT_KEYS = ("name", "percentage", "status")


def get_overall_label(pct: float) -> str:
    return "SAFE" if is_overall_safe(pct) else "AT RISK"


def get_overall_color(pct: float) -> str:
    return "green" if is_overall_safe(pct) else "red"


def compute_stats(data: StudentData, as_of: date) -> ReconcileResult:
    """Reconcile loaded data, or return the neutral result when it is incomplete."""
    if not data.complete or data.config is None:
        return neutral_result()
    return reconcile(data.config, data.subjects, data.timetable, data.holidays, data.logs, as_of)


def get_dashboard(db_path: str, today: date | None = None) -> dict:
    today = today or date.today()
    data = load_student_data(db_path)
    result = compute_stats(data, today)
    overall = result.overall
    return {
        "username": data.username or "Student",
        "attended": overall.attended,
        "total": overall.total,
        "percentage": overall.percentage,
        "is_safe": is_overall_safe(overall.percentage),
        "subject_count": len(data.subjects),
        "todays_classes": len(classes_on(data.timetable, today)),
        "complete": data.complete,
        "errors": data.errors,
    }


def sort_subject_stats(stats: list, sort_by: str = "percentage") -> list:
    if sort_by == "percentage":
        return sorted(stats, key=lambda s: s.percentage, reverse=True)
    if sort_by == "status":
        return sorted(stats, key=lambda s: STATUS_ORDER[s.status])
    if sort_by == "name":
        return sorted(stats, key=lambda s: s.name.lower())
    raise ValidationError(f"Unknown sort key {sort_by!r}; expected one of {', '.join(SORT_KEYS)}")


def get_analytics(db_path: str, today: date | None = None, sort_by: str = "percentage") -> dict:
    today = today or date.today()
    data = load_student_data(db_path)
    result = compute_stats(data, today)
    window = scan_window(data.config, today) if data.complete else None
    if window is None:
        semester = {"start": "Not Started", "days_elapsed": 0}
    else:
        start, end = window
        semester = {"start": start.strftime("%b %d, %Y"), "days_elapsed": (end - start).days + 1}
    return {
        "semester": semester,
        "overall": result.overall,
        "stats": sort_subject_stats(list(result.per_subject.values()), sort_by),
        "complete": data.complete,
    }


def get_month_calendar(db_path: str, year: int, month: int) -> list[dict]:
    """Day type and attendance marker for every day of a month."""
    data = load_student_data(db_path)
    holidays = holiday_dates(data.holidays)
    days = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_number)
        days.append({
            "date": day,
            "day_type": classify_day(day, data.config, holidays),
            "marker": day_marker(day, data.config, holidays, data.logs),
        })
    return days
