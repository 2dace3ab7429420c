"""Semester setup: profile, date range, Saturday offs and holidays."""
import json
import logging
from datetime import date

from bunksafe.calendar_rules import to_calendar_date
from bunksafe.db import get_connection
from bunksafe.exceptions import UsernameLockedError, ValidationError
from bunksafe.models import Holiday, SemesterConfig

logger = logging.getLogger(__name__)


def get_setting(db_path: str, key: str, default: str | None = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def _validate_saturday_offs(saturday_offs) -> list[int]:
    weeks = sorted({int(w) for w in saturday_offs or ()})
    bad = [w for w in weeks if not 1 <= w <= 5]
    if bad:
        raise ValidationError(f"Saturday week numbers must be between 1 and 5, got {bad}")
    return weeks


def save_semester(
    db_path: str,
    username: str,
    start,
    end,
    saturday_offs=(),
    holidays=(),
) -> SemesterConfig:
    """Create or overwrite the semester profile and replace the holiday list."""
    username = (username or "").strip().lower()
    if not username:
        raise ValidationError("Username is required")
    start_date = to_calendar_date(start)
    end_date = to_calendar_date(end)
    if start_date > end_date:
        raise ValidationError("End date must be after start date")
    weeks = _validate_saturday_offs(saturday_offs)
    holiday_days = sorted({to_calendar_date(h) for h in holidays or ()})

    conn = get_connection(db_path)
    try:
        existing = conn.execute("SELECT username FROM profile WHERE id = 1").fetchone()
        if existing and existing["username"] and existing["username"] != username:
            raise UsernameLockedError()
        conn.execute(
            """INSERT INTO profile (id, username, semester_start, semester_end, saturday_offs)
            VALUES (1, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET username=excluded.username,
                semester_start=excluded.semester_start,
                semester_end=excluded.semester_end,
                saturday_offs=excluded.saturday_offs""",
            (username, start_date.isoformat(), end_date.isoformat(), json.dumps(weeks)),
        )
        conn.execute("DELETE FROM holidays")
        conn.executemany(
            "INSERT INTO holidays (date, name) VALUES (?, 'Manual Holiday')",
            [(d.isoformat(),) for d in holiday_days],
        )
        conn.commit()
    finally:
        conn.close()
    logger.info("Saved semester %s..%s with %d holidays", start_date, end_date, len(holiday_days))
    return SemesterConfig(start_date=start_date, end_date=end_date, saturday_offs=frozenset(weeks))


def config_from_row(row) -> SemesterConfig | None:
    """Build a SemesterConfig from a profile row; None when no start date is set."""
    if row is None or not row["semester_start"]:
        return None
    end = row["semester_end"]
    weeks = json.loads(row["saturday_offs"] or "[]")
    return SemesterConfig(
        start_date=to_calendar_date(row["semester_start"]),
        end_date=to_calendar_date(end) if end else None,
        saturday_offs=frozenset(int(w) for w in weeks if 1 <= int(w) <= 5),
    )


def get_semester_config(db_path: str) -> SemesterConfig | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM profile WHERE id = 1").fetchone()
    conn.close()
    return config_from_row(row)


def get_username(db_path: str) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT username FROM profile WHERE id = 1").fetchone()
    conn.close()
    return row["username"] if row else None


def holiday_from_row(row) -> Holiday:
    return Holiday(date=to_calendar_date(row["date"]), name=row["name"] or "")


def get_holidays(db_path: str) -> list[Holiday]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT date, name FROM holidays ORDER BY date").fetchall()
    conn.close()
    return [holiday_from_row(r) for r in rows]


def add_holiday(db_path: str, day, name: str = "Manual Holiday") -> None:
    day = to_calendar_date(day)
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO holidays (date, name) VALUES (?, ?) ON CONFLICT(date) DO UPDATE SET name=?",
        (day.isoformat(), name, name),
    )
    conn.commit()
    conn.close()


def remove_holiday(db_path: str, day) -> bool:
    day = to_calendar_date(day)
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM holidays WHERE date = ?", (day.isoformat(),))
    conn.commit()
    conn.close()
    return cursor.rowcount > 0


def reset_start_date(db_path: str, today: date | None = None) -> date:
    """Restart counting from ``today``.

    Attendance logs are kept in the store but every log dated before the new
    start falls outside the reconciliation window.
    """
    today = today or date.today()
    conn = get_connection(db_path)
    cursor = conn.execute(
        "UPDATE profile SET semester_start = ? WHERE id = 1", (today.isoformat(),)
    )
    conn.commit()
    conn.close()
    if cursor.rowcount == 0:
        raise ValidationError("Set up the semester before resetting its start date")
    logger.warning("Semester start reset to %s; earlier attendance logs are no longer counted", today)
    return today
