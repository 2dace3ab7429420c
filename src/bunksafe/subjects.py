"""Subject management."""
import logging
import re

from bunksafe.db import get_connection
from bunksafe.exceptions import NotFoundError, ValidationError
from bunksafe.models import Subject

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3b82f6"
_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _validate(name: str, target: float, color: str) -> tuple[str, float, str]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Subject name is required")
    target = float(target)
    if not 0 <= target <= 100:
        raise ValidationError("Target percentage must be between 0 and 100")
    if not _HEX_COLOR.match(color or ""):
        raise ValidationError(f"Color must be a hex value like {DEFAULT_COLOR}")
    return name, target, color


def subject_from_row(row) -> Subject:
    return Subject(
        id=row["id"],
        name=row["name"],
        target_percentage=row["target_percentage"],
        color=row["color_hex"],
    )


def add_subject(db_path: str, name: str, target: float = 75, color: str = DEFAULT_COLOR) -> Subject:
    name, target, color = _validate(name, target, color)
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO subjects (name, target_percentage, color_hex) VALUES (?, ?, ?)",
        (name, target, color),
    )
    conn.commit()
    conn.close()
    return Subject(id=cursor.lastrowid, name=name, target_percentage=target, color=color)


def get_subjects(db_path: str) -> list[Subject]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM subjects ORDER BY name").fetchall()
    conn.close()
    return [subject_from_row(r) for r in rows]


def get_subject(db_path: str, subject_id: int) -> Subject:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError("Subject", subject_id)
    return subject_from_row(row)


def update_subject(db_path: str, subject_id: int, name: str | None = None, target: float | None = None, color: str | None = None) -> Subject:
    current = get_subject(db_path, subject_id)
    name, target, color = _validate(
        current.name if name is None else name,
        current.target_percentage if target is None else target,
        current.color if color is None else color,
    )
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE subjects SET name=?, target_percentage=?, color_hex=? WHERE id=?",
        (name, target, color, subject_id),
    )
    conn.commit()
    conn.close()
    return Subject(id=subject_id, name=name, target_percentage=target, color=color)


def delete_subject(db_path: str, subject_id: int) -> None:
    """Delete a subject along with its timetable slots and attendance logs."""
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
    conn.commit()
    conn.close()
    if cursor.rowcount == 0:
        raise NotFoundError("Subject", subject_id)
    logger.info("Deleted subject %s and its slots and logs", subject_id)
