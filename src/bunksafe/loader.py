"""Load every raw record set the reconciliation engine needs."""
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from bunksafe.config import Settings, get_settings
from bunksafe.db import get_connection
from bunksafe.exceptions import DataLoadError
from bunksafe.marking import log_from_row
from bunksafe.models import AttendanceLogEntry, Holiday, SemesterConfig, Subject, TimetableSlot
from bunksafe.semester import config_from_row, holiday_from_row
from bunksafe.subjects import subject_from_row
from bunksafe.timetable import slot_from_row

logger = logging.getLogger(__name__)


@dataclass
class StudentData:
    config: Optional[SemesterConfig] = None
    username: Optional[str] = None
    subjects: list[Subject] = field(default_factory=list)
    timetable: list[TimetableSlot] = field(default_factory=list)
    holidays: list[Holiday] = field(default_factory=list)
    logs: list[AttendanceLogEntry] = field(default_factory=list)
    complete: bool = True
    errors: list[str] = field(default_factory=list)


def fetch_with_retry(fetch: Callable, label: str, attempts: int = 3, backoff: float = 0.5):
    """Call ``fetch`` up to ``attempts`` times, doubling the wait after each failure."""
    for attempt in range(attempts):
        try:
            return fetch()
        except sqlite3.Error as e:
            if attempt == attempts - 1:
                raise DataLoadError(label, e) from e
            delay = backoff * 2 ** attempt
            logger.warning("Loading %s failed (%s); retrying in %.1fs", label, e, delay)
            time.sleep(delay)


def _query(db_path: str, sql: str) -> list[sqlite3.Row]:
    conn = get_connection(db_path)
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def _parse_rows(rows, parse: Callable, label: str) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(parse(row))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Skipping malformed %s row %s: %s", label, dict(row), e)
    return parsed


def load_student_data(db_path: str, settings: Settings | None = None) -> StudentData:
    """Load profile, subjects, timetable, holidays and logs.

    A record set that cannot be read after retrying is left empty and the
    result is flagged incomplete; callers should not reconcile incomplete data.
    """
    settings = settings or get_settings()
    data = StudentData()

    def load(label: str, sql: str) -> list:
        try:
            return fetch_with_retry(
                lambda: _query(db_path, sql),
                label,
                attempts=settings.FETCH_RETRIES,
                backoff=settings.FETCH_BACKOFF_SECONDS,
            )
        except DataLoadError as e:
            logger.error("%s", e)
            data.complete = False
            data.errors.append(e.message)
            return []

    profile_rows = load("profile", "SELECT * FROM profile WHERE id = 1")
    if profile_rows:
        try:
            data.config = config_from_row(profile_rows[0])
        except (ValueError, TypeError) as e:
            logger.warning("Ignoring malformed semester profile: %s", e)
        data.username = profile_rows[0]["username"]

    data.subjects = _parse_rows(
        load("subjects", "SELECT * FROM subjects ORDER BY name"), subject_from_row, "subject",
    )
    data.timetable = _parse_rows(
        load("timetable", "SELECT * FROM timetable_slots ORDER BY day_of_week, start_time, id"),
        slot_from_row, "timetable slot",
    )
    data.holidays = _parse_rows(
        load("holidays", "SELECT * FROM holidays ORDER BY date"), holiday_from_row, "holiday",
    )
    data.logs = _parse_rows(
        load("attendance logs", "SELECT * FROM attendance_logs ORDER BY date, id"),
        log_from_row, "attendance log",
    )
    return data
