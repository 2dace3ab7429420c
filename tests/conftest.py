from datetime import date

import pytest

from bunksafe.db import init_db
from bunksafe.semester import save_semester
from bunksafe.subjects import add_subject
from bunksafe.timetable import add_slot


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_bunksafe.db")
    return db_path


@pytest.fixture
def semester_db(tmp_db):
    """January 2025 semester with one subject taught on Mondays 09:00-10:00."""
    init_db(tmp_db)
    save_semester(tmp_db, "alice", date(2025, 1, 1), date(2025, 1, 31))
    maths = add_subject(tmp_db, "Maths", 75)
    add_slot(tmp_db, 1, "09:00", "10:00", "SUBJECT", maths.id)
    return tmp_db
