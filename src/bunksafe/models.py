"""Data classes for the attendance domain model."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class DayType(str, Enum):
    SUNDAY = "SUNDAY"
    HOLIDAY = "HOLIDAY"
    SATURDAY_OFF = "SATURDAY_OFF"
    TEACHING = "TEACHING"


class SlotType(str, Enum):
    SUBJECT = "SUBJECT"
    BREAK = "BREAK"
    SPORTS = "SPORTS"
    LIBRARY = "LIBRARY"
    EXAM = "EXAM"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    CANCELLED = "CANCELLED"


class Status(str, Enum):
    SAFE = "Safe"
    DANGER = "Danger"
    ON_TRACK = "On Track"


@dataclass(frozen=True)
class SemesterConfig:
    start_date: date
    end_date: Optional[date] = None
    saturday_offs: frozenset = field(default_factory=frozenset)


@dataclass(frozen=True)
class Holiday:
    date: date
    name: str = ""


@dataclass
class Subject:
    id: int
    name: str
    target_percentage: float = 75.0
    color: str = "#3b82f6"


@dataclass
class TimetableSlot:
    id: int
    subject_id: Optional[int]
    day_of_week: int  # 1=Monday .. 7=Sunday
    slot_type: SlotType = SlotType.SUBJECT
    start_time: str = "09:00"
    end_time: str = "10:00"


@dataclass
class AttendanceLogEntry:
    subject_id: int
    date: date
    status: AttendanceStatus
    timetable_slot_id: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass
class SubjectStats:
    subject_id: int
    name: str
    color: str
    target: float
    total: int = 0
    attended: int = 0
    bunked: int = 0
    percentage: float = 100.0
    status: Status = Status.SAFE
    message: str = ""


@dataclass
class OverallStats:
    attended: int = 0
    total: int = 0
    percentage: float = 100.0


@dataclass
class ReconcileResult:
    overall: OverallStats = field(default_factory=OverallStats)
    per_subject: dict = field(default_factory=dict)
