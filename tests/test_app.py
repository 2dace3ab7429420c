from datetime import date
from unittest.mock import patch

import pytest

from bunksafe.app import parse_date_input, parse_date_list, parse_int_list, run_command
from bunksafe.db import init_db
from bunksafe.exceptions import ValidationError
from bunksafe.marking import get_logs_for_date
from bunksafe.models import AttendanceStatus
from bunksafe.semester import get_holidays, get_semester_config, get_username


def test_parse_date_input():
    assert parse_date_input("2025-01-06") == date(2025, 1, 6)
    with pytest.raises(ValidationError):
        parse_date_input("06/01/2025")
    with pytest.raises(ValidationError):
        parse_date_input(None)


def test_parse_int_list():
    assert parse_int_list("2, 4") == [2, 4]
    assert parse_int_list("") == []
    with pytest.raises(ValidationError):
        parse_int_list("two")


def test_parse_date_list():
    assert parse_date_list("2025-01-13,2025-01-26") == [date(2025, 1, 13), date(2025, 1, 26)]
    assert parse_date_list("") == []


def test_quit_stops_loop(tmp_db):
    assert run_command(tmp_db, "quit") is False
    assert run_command(tmp_db, "q") is False


def test_unknown_command(tmp_db, capsys):
    assert run_command(tmp_db, "bunk") is True
    assert "Unknown command" in capsys.readouterr().out


def test_setup_command(tmp_db):
    init_db(tmp_db)
    answers = ["Bob", "2025-01-01", "2025-04-30", "2,4", "2025-01-26"]
    with patch("bunksafe.app.Prompt.ask", side_effect=answers):
        assert run_command(tmp_db, "setup") is True

    config = get_semester_config(tmp_db)
    assert config.start_date == date(2025, 1, 1)
    assert config.end_date == date(2025, 4, 30)
    assert config.saturday_offs == frozenset({2, 4})
    assert get_username(tmp_db) == "bob"
    assert [h.date for h in get_holidays(tmp_db)] == [date(2025, 1, 26)]


def test_setup_reports_validation_errors(tmp_db, capsys):
    init_db(tmp_db)
    answers = ["Bob", "2025-04-30", "2025-01-01", "", ""]
    with patch("bunksafe.app.Prompt.ask", side_effect=answers):
        assert run_command(tmp_db, "setup") is True
    assert "End date must be after start date" in capsys.readouterr().out
    assert get_semester_config(tmp_db) is None


def test_mark_command(semester_db, capsys):
    with patch("bunksafe.app.Prompt.ask", side_effect=["2025-01-06", "p"]), \
            patch("bunksafe.app.Confirm.ask", return_value=False):
        run_command(semester_db, "mark")

    logs = get_logs_for_date(semester_db, date(2025, 1, 6))
    assert [(log.subject_id, log.status) for log in logs] == [(1, AttendanceStatus.PRESENT)]
    assert "Saved 1 marks" in capsys.readouterr().out


def test_mark_command_with_extra_class(semester_db):
    with patch("bunksafe.app.Prompt.ask", side_effect=["2025-01-06", "-", "a", "14:00", "15:00"]), \
            patch("bunksafe.app.Confirm.ask", return_value=True), \
            patch("bunksafe.app.IntPrompt.ask", return_value=1):
        run_command(semester_db, "mark")

    logs = get_logs_for_date(semester_db, date(2025, 1, 6))
    assert len(logs) == 1
    assert logs[0].status == AttendanceStatus.ABSENT
    assert (logs[0].start_time, logs[0].end_time) == ("14:00", "15:00")


def test_dashboard_command(semester_db, capsys):
    run_command(semester_db, "dashboard")
    out = capsys.readouterr().out
    assert "Hi, alice!" in out
