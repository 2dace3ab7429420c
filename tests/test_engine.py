# tests/test_engine.py
from datetime import date

from bunksafe.engine import LogBag, neutral_result, reconcile, scan_window
from bunksafe.models import (
    AttendanceLogEntry, AttendanceStatus, Holiday, SemesterConfig, SlotType, Status, Subject,
    TimetableSlot,
)

P, A, C = AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.CANCELLED
JAN = SemesterConfig(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
MATHS = Subject(id=1, name="Maths", target_percentage=75)
PHYSICS = Subject(id=2, name="Physics", target_percentage=75)
MONDAY_MATHS = TimetableSlot(id=10, subject_id=1, day_of_week=1)


def log(day, status, subject_id=1, slot_id=None):
    return AttendanceLogEntry(subject_id=subject_id, date=date(2025, 1, day), status=status, timetable_slot_id=slot_id)


def run(timetable=(MONDAY_MATHS,), logs=(), holidays=(), config=JAN, subjects=(MATHS,), as_of=date(2025, 1, 31)):
    return reconcile(config, list(subjects), list(timetable), list(holidays), list(logs), as_of)


# LogBag

def test_log_bag_takes_each_entry_once():
    bag = LogBag([log(6, P), log(6, A)])
    assert len(bag) == 2
    assert bag.take(1).status == P
    assert bag.take(1).status == A
    assert bag.take(1) is None
    assert len(bag) == 0


def test_log_bag_prefers_matching_slot():
    bag = LogBag([log(6, A, slot_id=11), log(6, P, slot_id=12)])
    assert bag.take(1, slot_id=12).status == P
    assert bag.take(1, slot_id=99).status == A


def test_log_bag_holds_entry_for_its_scheduled_slot():
    first = TimetableSlot(id=10, subject_id=1, day_of_week=1)
    second = TimetableSlot(id=11, subject_id=1, day_of_week=1, start_time="11:00", end_time="12:00")
    bag = LogBag([log(6, P, slot_id=11)], [first, second])
    assert bag.take(1, slot_id=10) is None
    assert bag.take(1, slot_id=11).status == P


def test_log_bag_untagged_entry_fills_any_slot():
    first = TimetableSlot(id=10, subject_id=1, day_of_week=1)
    second = TimetableSlot(id=11, subject_id=1, day_of_week=1)
    bag = LogBag([log(6, P, slot_id=11), log(6, A)], [first, second])
    assert bag.take(1, slot_id=10).status == A
    assert bag.take(1, slot_id=11).status == P
    assert len(bag) == 0


def test_log_bag_remaining_keeps_original_order():
    entries = [log(6, P, subject_id=2), log(6, A, subject_id=1), log(6, C, subject_id=2)]
    bag = LogBag(entries)
    bag.take(1)
    assert bag.remaining() == [entries[0], entries[2]]


def test_log_bag_unknown_subject():
    assert LogBag([log(6, P)]).take(5) is None


# Window and neutral results

def test_scan_window_clamps_to_semester_end():
    assert scan_window(JAN, date(2025, 3, 1)) == (date(2025, 1, 1), date(2025, 1, 31))
    assert scan_window(JAN, date(2025, 1, 10)) == (date(2025, 1, 1), date(2025, 1, 10))


def test_scan_window_without_end_date():
    config = SemesterConfig(start_date=date(2025, 1, 1))
    assert scan_window(config, "2025-02-01") == (date(2025, 1, 1), date(2025, 2, 1))


def test_scan_window_empty_when_start_is_after_end():
    config = SemesterConfig(start_date=date(2025, 3, 1), end_date=date(2025, 1, 31))
    assert scan_window(config, date(2025, 3, 10)) is None
    assert run(config=config, as_of=date(2025, 3, 10)).overall.total == 0


def test_missing_config_is_neutral():
    assert run(config=None) == neutral_result()


def test_before_semester_start_is_neutral():
    result = run(as_of=date(2024, 12, 31))
    assert result.overall.percentage == 100
    assert result.overall.total == 0
    assert result.per_subject == {}


# Core behaviour

def test_end_to_end_single_present_log():
    result = run(logs=[log(6, P)])
    maths = result.per_subject[1]
    # Mondays in January 2025: 6, 13, 20, 27
    assert maths.total == 4
    assert maths.attended == 1
    assert maths.bunked == 3
    assert maths.percentage == 25.0
    assert result.overall.total == 4
    assert result.overall.attended == 1


def test_unmarked_class_counts_as_absent():
    result = run(as_of=date(2025, 1, 6))
    maths = result.per_subject[1]
    assert (maths.total, maths.attended, maths.bunked) == (1, 0, 1)


def test_cancelled_is_neutral():
    baseline = run(as_of=date(2025, 1, 13))
    cancelled = run(logs=[log(6, C)], as_of=date(2025, 1, 13))
    assert baseline.per_subject[1].total == 2
    assert cancelled.per_subject[1].total == 1
    assert cancelled.per_subject[1].attended == 0
    assert cancelled.per_subject[1].bunked == 1


def test_cancelled_extra_class_is_neutral():
    baseline = run()
    with_extra = run(logs=[log(7, C)])
    assert with_extra.per_subject[1] == baseline.per_subject[1]


def test_two_slots_one_log_credits_only_one():
    second = TimetableSlot(id=11, subject_id=1, day_of_week=1, start_time="11:00", end_time="12:00")
    result = run(timetable=[MONDAY_MATHS, second], logs=[log(6, P)], as_of=date(2025, 1, 6))
    maths = result.per_subject[1]
    assert maths.total == 2
    assert maths.attended == 1
    assert maths.bunked == 1


def test_two_slots_two_logs():
    second = TimetableSlot(id=11, subject_id=1, day_of_week=1)
    result = run(timetable=[MONDAY_MATHS, second], logs=[log(6, P), log(6, P)], as_of=date(2025, 1, 6))
    assert result.per_subject[1].attended == 2


def test_extra_class_without_slot_is_counted():
    result = run(logs=[log(6, P), log(7, P)])
    maths = result.per_subject[1]
    assert maths.total == 5
    assert maths.attended == 2


def test_extra_absent_counts_as_bunked():
    result = run(logs=[log(8, A)], as_of=date(2025, 1, 8))
    maths = result.per_subject[1]
    assert (maths.total, maths.attended, maths.bunked) == (2, 0, 2)


def test_non_teaching_days_do_not_change_counters():
    baseline = run()
    with_holiday = run(holidays=[Holiday(date=date(2025, 1, 13))], logs=[log(13, P)])
    assert with_holiday.per_subject[1].total == baseline.per_subject[1].total - 1
    # A log on a holiday is ignored along with the day
    assert with_holiday.per_subject[1].attended == 0


def test_sunday_slots_never_count():
    sunday = TimetableSlot(id=20, subject_id=1, day_of_week=7)
    result = run(timetable=[sunday], logs=[log(5, P)])
    assert result.per_subject[1].total == 0


def test_saturday_offs_skip_classes():
    saturday = TimetableSlot(id=20, subject_id=1, day_of_week=6)
    config = SemesterConfig(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31), saturday_offs=frozenset({2}))
    result = run(timetable=[saturday], config=config)
    # Saturdays 4, 11, 18, 25; the 11th is the second Saturday
    assert result.per_subject[1].total == 3


def test_only_subject_slots_count():
    slots = [
        MONDAY_MATHS,
        TimetableSlot(id=11, subject_id=None, day_of_week=1, slot_type=SlotType.BREAK),
        TimetableSlot(id=12, subject_id=1, day_of_week=2, slot_type=SlotType.EXAM),
    ]
    result = run(timetable=slots)
    assert result.per_subject[1].total == 4


def test_unknown_subjects_are_skipped():
    stray = TimetableSlot(id=30, subject_id=99, day_of_week=1)
    result = run(timetable=[MONDAY_MATHS, stray], logs=[log(6, P, subject_id=99), log(6, P)])
    assert set(result.per_subject) == {1}
    assert result.overall.total == 4
    assert result.overall.attended == 1


def test_subject_without_classes_is_seeded():
    result = run(subjects=[MATHS, PHYSICS])
    physics = result.per_subject[2]
    assert physics.total == 0
    assert physics.percentage == 100
    assert physics.status == Status.SAFE
    assert physics.message == "No classes scheduled yet."


def test_overall_sums_subjects():
    tuesday_physics = TimetableSlot(id=40, subject_id=2, day_of_week=2)
    result = run(
        subjects=[MATHS, PHYSICS],
        timetable=[MONDAY_MATHS, tuesday_physics],
        logs=[log(6, P), log(7, P, subject_id=2), log(14, P, subject_id=2)],
    )
    # Tuesdays in January 2025: 7, 14, 21, 28
    assert result.per_subject[2].total == 4
    assert result.overall.total == 8
    assert result.overall.attended == 3
    assert result.overall.percentage == 37.5


def test_percentage_bounds():
    result = run(subjects=[MATHS, PHYSICS], logs=[log(6, P), log(13, P), log(20, A)])
    for stats in result.per_subject.values():
        assert 0 <= stats.percentage <= 100
        if stats.total == 0:
            assert stats.percentage == 100


def test_logs_outside_window_are_ignored():
    result = run(logs=[log(6, P)], as_of=date(2025, 1, 5))
    assert result.per_subject[1].total == 0


def test_projection_attached_to_stats():
    result = run(logs=[log(6, P)])
    assert result.per_subject[1].status == Status.DANGER
    assert result.per_subject[1].message == "Attend the next 8 classes to reach your 75% target."


def test_reconcile_is_idempotent():
    args = dict(logs=[log(6, P), log(7, P), log(13, C)], holidays=[Holiday(date=date(2025, 1, 20))])
    assert run(**args) == run(**args)
