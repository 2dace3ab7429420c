"""Attendance reconciliation: replay the semester day by day against the logs."""
import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from bunksafe.calendar_rules import (
    classify_day, holiday_dates, iter_days, to_calendar_date, to_internal_weekday,
)
from bunksafe.models import (
    AttendanceLogEntry, AttendanceStatus, DayType, OverallStats, ReconcileResult,
    SemesterConfig, SlotType, Subject, SubjectStats, TimetableSlot,
)
from bunksafe.projection import percentage, project

logger = logging.getLogger(__name__)


class LogBag:
    """One day's log entries, each of which can be taken at most once.

    ``slots`` are the classes scheduled that day. An entry tagged with one of
    those slots is held back for it rather than handed to a sibling slot of the
    same subject.
    """

    def __init__(self, entries: Iterable[AttendanceLogEntry] = (), slots: Iterable[TimetableSlot] = ()):
        self._by_subject = defaultdict(list)
        self._reserved = defaultdict(set)
        self._size = 0
        for seq, entry in enumerate(entries):
            self._by_subject[entry.subject_id].append((seq, entry))
            self._size += 1
        for slot in slots:
            self._reserved[slot.subject_id].add(slot.id)

    def __len__(self) -> int:
        return self._size

    def take(self, subject_id, slot_id=None) -> AttendanceLogEntry | None:
        """Remove and return one entry for ``subject_id``.

        An entry tagged with ``slot_id`` wins. Otherwise the earliest entry not
        held for another scheduled slot is returned; None if every entry is.
        Without ``slot_id`` the earliest entry is returned.
        """
        bucket = self._by_subject.get(subject_id)
        if not bucket:
            return None
        index = 0
        if slot_id is not None:
            held = self._reserved[subject_id] - {slot_id}
            index = next(
                (i for i, (_, e) in enumerate(bucket) if e.timetable_slot_id == slot_id),
                None,
            )
            if index is None:
                index = next(
                    (i for i, (_, e) in enumerate(bucket) if e.timetable_slot_id not in held),
                    None,
                )
            if index is None:
                return None
        _, entry = bucket.pop(index)
        self._size -= 1
        return entry

    def remaining(self) -> list[AttendanceLogEntry]:
        """Entries not yet taken, in their original order."""
        left = [item for bucket in self._by_subject.values() for item in bucket]
        return [entry for _, entry in sorted(left, key=lambda item: item[0])]


def neutral_result() -> ReconcileResult:
    """Result used before the semester starts or when data is missing."""
    return ReconcileResult(overall=OverallStats(attended=0, total=0, percentage=100.0), per_subject={})


def scan_window(config: SemesterConfig | None, as_of_date) -> tuple[date, date] | None:
    """Inclusive date range to replay, or None if there is nothing to replay yet."""
    if config is None or config.start_date is None:
        return None
    as_of = to_calendar_date(as_of_date)
    if as_of < config.start_date:
        return None
    end = min(as_of, config.end_date) if config.end_date else as_of
    if end < config.start_date:
        return None
    return config.start_date, end


def _tally(counter: dict, status: AttendanceStatus | None) -> None:
    if status == AttendanceStatus.CANCELLED:
        return
    counter["total"] += 1
    if status == AttendanceStatus.PRESENT:
        counter["attended"] += 1
    else:
        counter["bunked"] += 1


def reconcile(
    config: SemesterConfig | None,
    subjects: Iterable[Subject],
    timetable: Iterable[TimetableSlot],
    holidays: Iterable,
    logs: Iterable[AttendanceLogEntry],
    as_of_date,
) -> ReconcileResult:
    """Count scheduled, attended and missed classes for every subject up to ``as_of_date``.

    Scheduled SUBJECT slots on teaching days are matched against that day's
    logs, one log per slot. A slot with no log counts as missed, a CANCELLED
    log removes the class from the counts, and logs left over after matching
    are counted as extra classes.
    """
    window = scan_window(config, as_of_date)
    if window is None:
        return neutral_result()
    start, end = window

    subjects = list(subjects)
    counters = {s.id: {"total": 0, "attended": 0, "bunked": 0} for s in subjects}

    slots_by_day = defaultdict(list)
    for slot in timetable:
        if slot.slot_type == SlotType.SUBJECT:
            slots_by_day[slot.day_of_week].append(slot)

    logs_by_date = defaultdict(list)
    for entry in logs:
        logs_by_date[to_calendar_date(entry.date)].append(entry)

    off_days = holiday_dates(holidays)
    teaching_days = 0
    for day in iter_days(start, end):
        if classify_day(day, config, off_days) != DayType.TEACHING:
            continue
        teaching_days += 1
        day_slots = slots_by_day.get(to_internal_weekday(day), ())
        bag = LogBag(logs_by_date.get(day, ()), day_slots)

        for slot in day_slots:
            counter = counters.get(slot.subject_id)
            if counter is None:
                continue
            log = bag.take(slot.subject_id, slot.id)
            _tally(counter, log.status if log else None)

        for extra in bag.remaining():
            counter = counters.get(extra.subject_id)
            if counter is None:
                continue
            _tally(counter, extra.status)

    per_subject = {}
    grand_total = grand_attended = 0
    for subject in subjects:
        c = counters[subject.id]
        grand_total += c["total"]
        grand_attended += c["attended"]
        status, message = project(c["total"], c["attended"], subject.target_percentage)
        per_subject[subject.id] = SubjectStats(
            subject_id=subject.id,
            name=subject.name,
            color=subject.color,
            target=subject.target_percentage,
            total=c["total"],
            attended=c["attended"],
            bunked=c["bunked"],
            percentage=percentage(c["attended"], c["total"]),
            status=status,
            message=message,
        )

    logger.debug(
        "Reconciled %s..%s: %d teaching days, %d/%d classes attended",
        start, end, teaching_days, grand_attended, grand_total,
    )
    return ReconcileResult(
        overall=OverallStats(
            attended=grand_attended,
            total=grand_total,
            percentage=percentage(grand_attended, grand_total),
        ),
        per_subject=per_subject,
    )
