"""Daily attendance marking."""
import logging
from dataclasses import dataclass
from typing import Optional

from bunksafe.calendar_rules import to_calendar_date
from bunksafe.db import get_connection
from bunksafe.engine import LogBag
from bunksafe.exceptions import ValidationError
from bunksafe.models import AttendanceLogEntry, AttendanceStatus
from bunksafe.subjects import get_subjects
from bunksafe.timetable import DEFAULT_END, DEFAULT_START, classes_on, get_timetable, normalize_time

logger = logging.getLogger(__name__)

UNKNOWN_SUBJECT_COLOR = "#94a3b8"


@dataclass
class Mark:
    subject_id: int
    status: Optional[AttendanceStatus]
    slot_id: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


def log_from_row(row) -> AttendanceLogEntry:
    return AttendanceLogEntry(
        subject_id=row["subject_id"],
        date=to_calendar_date(row["date"]),
        status=AttendanceStatus(row["status"]),
        timetable_slot_id=row["timetable_slot_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
    )


def get_logs_for_date(db_path: str, day) -> list[AttendanceLogEntry]:
    day = to_calendar_date(day)
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM attendance_logs WHERE date = ? ORDER BY id", (day.isoformat(),)
    ).fetchall()
    conn.close()
    return [log_from_row(r) for r in rows]


def get_day_schedule(db_path: str, day) -> list[dict]:
    """Scheduled classes for ``day`` merged with any marks already saved.

    Each log satisfies at most one slot; logs left over are returned as extra
    classes so that re-saving the day keeps them.
    """
    day = to_calendar_date(day)
    subjects = {s.id: s for s in get_subjects(db_path)}
    scheduled = classes_on(get_timetable(db_path), day)
    bag = LogBag(get_logs_for_date(db_path, day), scheduled)
    items = []
    for slot in scheduled:
        log = bag.take(slot.subject_id, slot.id)
        subject = subjects.get(slot.subject_id)
        items.append({
            "slot_id": slot.id,
            "subject_id": slot.subject_id,
            "subject_name": subject.name if subject else "Unknown Subject",
            "color": subject.color if subject else UNKNOWN_SUBJECT_COLOR,
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "status": log.status if log else None,
            "extra": False,
        })
    for log in bag.remaining():
        subject = subjects.get(log.subject_id)
        items.append({
            "slot_id": None,
            "subject_id": log.subject_id,
            "subject_name": subject.name if subject else "Unknown Subject",
            "color": subject.color if subject else UNKNOWN_SUBJECT_COLOR,
            "start_time": normalize_time(log.start_time, DEFAULT_START),
            "end_time": normalize_time(log.end_time, DEFAULT_END),
            "status": log.status,
            "extra": True,
        })
    return items


def mark_attendance(db_path: str, day, marks: list[Mark]) -> int:
    """Replace every log for ``day`` with ``marks``; unmarked entries are dropped.

    Returns the number of rows written.
    """
    day = to_calendar_date(day)
    rows = []
    for mark in marks:
        if mark.status is None:
            continue
        try:
            status = AttendanceStatus(mark.status)
        except ValueError:
            raise ValidationError(f"Unknown attendance status: {mark.status}") from None
        rows.append((
            mark.subject_id, day.isoformat(), status.value, mark.slot_id,
            mark.start_time, mark.end_time,
        ))

    conn = get_connection(db_path)
    try:
        known = {r["id"] for r in conn.execute("SELECT id FROM subjects").fetchall()}
        unknown = sorted({r[0] for r in rows if r[0] not in known})
        if unknown:
            raise ValidationError(f"Unknown subject(s): {unknown}")
        conn.execute("DELETE FROM attendance_logs WHERE date = ?", (day.isoformat(),))
        conn.executemany(
            """INSERT INTO attendance_logs (subject_id, date, status, timetable_slot_id, start_time, end_time)
            VALUES (?, ?, ?, ?, ?, ?)""",
            rows,
        )
        conn.commit()
    finally:
        conn.close()
    logger.info("Marked %d classes on %s", len(rows), day)
    return len(rows)


def add_extra_class(
    db_path: str,
    day,
    subject_id: int,
    status: AttendanceStatus | str,
    start: str | None = None,
    end: str | None = None,
) -> None:
    """Record an ad-hoc class that is not on the weekly timetable."""
    day = to_calendar_date(day)
    existing = [
        Mark(
            subject_id=log.subject_id, status=log.status, slot_id=log.timetable_slot_id,
            start_time=log.start_time, end_time=log.end_time,
        )
        for log in get_logs_for_date(db_path, day)
    ]
    extra = Mark(
        subject_id=subject_id,
        status=status,
        start_time=normalize_time(start, DEFAULT_START),
        end_time=normalize_time(end, DEFAULT_END),
    )
    mark_attendance(db_path, day, existing + [extra])
