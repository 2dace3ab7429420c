"""Weekly timetable management and time-string helpers."""
import re

from bunksafe.calendar_rules import to_calendar_date, to_internal_weekday
from bunksafe.db import get_connection
from bunksafe.exceptions import NotFoundError, ValidationError
from bunksafe.models import SlotType, TimetableSlot

DEFAULT_START = "09:00"
DEFAULT_END = "10:00"
DAY_NAMES = {1: "Monday", 2: "Tuesday", 3: "Wednesday", 4: "Thursday", 5: "Friday", 6: "Saturday", 7: "Sunday"}

_TIME = re.compile(r"^(\d{1,2}):(\d{2})")


def _parse_time(value) -> str | None:
    if not isinstance(value, str):
        return None
    match = _TIME.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def normalize_time(value, default: str = DEFAULT_START) -> str:
    """Return ``value`` as HH:MM, or ``default`` when it is missing or malformed."""
    return _parse_time(value) or default


def format_time(value) -> str:
    """Format "14:00" as "2:00 PM"."""
    parsed = _parse_time(value)
    if parsed is None:
        return "--:--" if not value else str(value)
    hour, minute = (int(p) for p in parsed.split(":"))
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def slot_from_row(row) -> TimetableSlot:
    return TimetableSlot(
        id=row["id"],
        subject_id=row["subject_id"],
        day_of_week=row["day_of_week"],
        slot_type=SlotType(row["slot_type"]),
        start_time=normalize_time(row["start_time"], DEFAULT_START),
        end_time=normalize_time(row["end_time"], DEFAULT_END),
    )


def _validate_slot(conn, day_of_week, start, end, slot_type, subject_id) -> tuple:
    if day_of_week not in DAY_NAMES:
        raise ValidationError("Day of week must be between 1 (Monday) and 7 (Sunday)")
    try:
        slot_type = SlotType(slot_type)
    except ValueError:
        raise ValidationError(f"Unknown slot type: {slot_type}") from None
    start_time, end_time = _parse_time(start), _parse_time(end)
    if start_time is None or end_time is None:
        raise ValidationError("Times must be in HH:MM format")
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")
    if slot_type == SlotType.SUBJECT:
        if subject_id is None:
            raise ValidationError("A subject slot needs a subject")
        if not conn.execute("SELECT 1 FROM subjects WHERE id = ?", (subject_id,)).fetchone():
            raise NotFoundError("Subject", subject_id)
    else:
        subject_id = None
    return day_of_week, start_time, end_time, slot_type, subject_id


def add_slot(
    db_path: str,
    day_of_week: int,
    start: str,
    end: str,
    slot_type: SlotType | str = SlotType.SUBJECT,
    subject_id: int | None = None,
) -> TimetableSlot:
    conn = get_connection(db_path)
    try:
        day_of_week, start_time, end_time, slot_type, subject_id = _validate_slot(
            conn, day_of_week, start, end, slot_type, subject_id,
        )
        cursor = conn.execute(
            """INSERT INTO timetable_slots (subject_id, day_of_week, slot_type, start_time, end_time)
            VALUES (?, ?, ?, ?, ?)""",
            (subject_id, day_of_week, slot_type.value, start_time, end_time),
        )
        conn.commit()
    finally:
        conn.close()
    return TimetableSlot(
        id=cursor.lastrowid, subject_id=subject_id, day_of_week=day_of_week,
        slot_type=slot_type, start_time=start_time, end_time=end_time,
    )


def get_slot(db_path: str, slot_id: int) -> TimetableSlot:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM timetable_slots WHERE id = ?", (slot_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("Timetable slot", slot_id)
    return slot_from_row(row)


def update_slot(db_path: str, slot_id: int, **changes) -> TimetableSlot:
    """Update any of day_of_week, start, end, slot_type, subject_id on a slot."""
    current = get_slot(db_path, slot_id)
    conn = get_connection(db_path)
    try:
        day_of_week, start_time, end_time, slot_type, subject_id = _validate_slot(
            conn,
            changes.get("day_of_week", current.day_of_week),
            changes.get("start", current.start_time),
            changes.get("end", current.end_time),
            changes.get("slot_type", current.slot_type),
            changes.get("subject_id", current.subject_id),
        )
        conn.execute(
            """UPDATE timetable_slots SET subject_id=?, day_of_week=?, slot_type=?, start_time=?, end_time=?
            WHERE id=?""",
            (subject_id, day_of_week, slot_type.value, start_time, end_time, slot_id),
        )
        conn.commit()
    finally:
        conn.close()
    return TimetableSlot(
        id=slot_id, subject_id=subject_id, day_of_week=day_of_week,
        slot_type=slot_type, start_time=start_time, end_time=end_time,
    )


def delete_slot(db_path: str, slot_id: int) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM timetable_slots WHERE id = ?", (slot_id,))
    conn.commit()
    conn.close()
    if cursor.rowcount == 0:
        raise NotFoundError("Timetable slot", slot_id)


def get_timetable(db_path: str) -> list[TimetableSlot]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM timetable_slots ORDER BY day_of_week, start_time, id"
    ).fetchall()
    conn.close()
    return [slot_from_row(r) for r in rows]


def get_slots_for_day(db_path: str, day_of_week: int) -> list[TimetableSlot]:
    return [s for s in get_timetable(db_path) if s.day_of_week == day_of_week]


def classes_on(timetable: list[TimetableSlot], day) -> list[TimetableSlot]:
    """SUBJECT slots scheduled on the weekday of ``day``."""
    weekday = to_internal_weekday(to_calendar_date(day))
    return [s for s in timetable if s.day_of_week == weekday and s.slot_type == SlotType.SUBJECT]
