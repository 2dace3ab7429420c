"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from bunksafe.config import get_settings

SCHEMA = """
CREATE TABLE IF NOT EXISTS profile (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    username TEXT,
    semester_start TEXT,
    semester_end TEXT,
    saturday_offs TEXT DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    target_percentage REAL NOT NULL DEFAULT 75,
    color_hex TEXT NOT NULL DEFAULT '#3b82f6'
);

CREATE TABLE IF NOT EXISTS timetable_slots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER REFERENCES subjects(id) ON DELETE CASCADE,
    day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 1 AND 7),
    slot_type TEXT NOT NULL DEFAULT 'SUBJECT',
    start_time TEXT,
    end_time TEXT
);

CREATE TABLE IF NOT EXISTS holidays (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL UNIQUE,
    name TEXT
);

CREATE TABLE IF NOT EXISTS attendance_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('PRESENT', 'ABSENT', 'CANCELLED')),
    timetable_slot_id INTEGER REFERENCES timetable_slots(id) ON DELETE SET NULL,
    start_time TEXT,
    end_time TEXT
);

CREATE INDEX IF NOT EXISTS idx_attendance_logs_date ON attendance_logs(date);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str | None = None) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    settings = get_settings()
    conn = sqlite3.connect(db_path or settings.DB_PATH, timeout=settings.DB_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str | None = None) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    db_path = db_path or get_settings().DB_PATH
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
