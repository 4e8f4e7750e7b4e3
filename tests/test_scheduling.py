"""Timetable writes: conflicts reject everything, saves reconcile in one transaction."""
import asyncio
from types import SimpleNamespace

import pytest

from app.models.schedule import SlotAssignment
from app.services import scheduling
from app.services.schedule_conflict import ScheduleConflict, ScheduleConflictError

MONDAY, TUESDAY, WEDNESDAY = 1, 2, 3


@pytest.fixture
def timetable(monkeypatch, fake_transaction):
    writes = []

    class FakeSchedule:
        fail_on_insert = False

        def __init__(self, course_id, day_of_week, period):
            self.course_id = course_id
            self.day_of_week = day_of_week
            self.period = period

        async def insert(self, session=None):
            if FakeSchedule.fail_on_insert:
                raise RuntimeError("write failed")
            writes.append(("insert", self.course_id, self.day_of_week, self.period, session))

        async def save(self, session=None):
            writes.append(("save", self.course_id, self.day_of_week, self.period, session))

        async def soft_delete(self, session=None):
            writes.append(("soft_delete", self.course_id, self.day_of_week, self.period, session))

    stored = []
    courses = [SimpleNamespace(id="algebra", name="Algebra"), SimpleNamespace(id="biology", name="Biology")]

    async def active_courses(teacher_id):
        return courses

    async def schedules(teacher_courses):
        return list(stored)

    async def no_conflicts(course_id, slots):
        return []

    monkeypatch.setattr(scheduling, "Schedule", FakeSchedule)
    monkeypatch.setattr(scheduling, "teacher_active_courses", active_courses)
    monkeypatch.setattr(scheduling, "teacher_schedules", schedules)
    monkeypatch.setattr(scheduling, "check_course_schedule_update_conflict", no_conflicts)
    monkeypatch.setattr(scheduling, "transaction", fake_transaction)
    return SimpleNamespace(Schedule=FakeSchedule, stored=stored, writes=writes, tx=fake_transaction)


def conflict_for(monkeypatch, blocked_course):
    async def check(course_id, slots):
        if course_id != blocked_course:
            return []
        slot = slots[0]
        return [
            ScheduleConflict(
                student_id="s1",
                student_name="Ana",
                course_id="chemistry",
                course_name="Chemistry",
                day_of_week=slot.day_of_week,
                period=slot.period,
            )
        ]

    monkeypatch.setattr(scheduling, "check_course_schedule_update_conflict", check)


def test_conflict_rejects_whole_save_without_writing(monkeypatch, timetable):
    timetable.stored.append(timetable.Schedule("algebra", MONDAY, 1))
    conflict_for(monkeypatch, "biology")
    slots = [
        SlotAssignment(day_of_week=MONDAY, period=1, course_id="algebra"),
        SlotAssignment(day_of_week=MONDAY, period=2, course_id="biology"),
    ]

    with pytest.raises(ScheduleConflictError) as exc_info:
        asyncio.run(scheduling.save_teacher_schedule("t1", slots))

    assert exc_info.value.message == "Schedule conflicts detected"
    assert exc_info.value.conflicts[0].student_name == "Ana"
    assert timetable.writes == []
    assert timetable.tx.outcome is None


def test_save_reports_created_updated_and_removed(timetable):
    timetable.stored.extend(
        [
            timetable.Schedule("algebra", MONDAY, 1),
            timetable.Schedule("biology", MONDAY, 2),
            timetable.Schedule("algebra", TUESDAY, 3),
        ]
    )
    slots = [
        SlotAssignment(day_of_week=MONDAY, period=1, course_id="algebra"),
        SlotAssignment(day_of_week=MONDAY, period=2, course_id="algebra"),
        SlotAssignment(day_of_week=WEDNESDAY, period=0, course_id="biology"),
    ]

    result = asyncio.run(scheduling.save_teacher_schedule("t1", slots))

    assert result == {"created": 1, "updated": 1, "removed": 1}
    assert sorted(w[:4] for w in timetable.writes) == [
        ("insert", "biology", WEDNESDAY, 0),
        ("save", "algebra", MONDAY, 2),
        ("soft_delete", "algebra", TUESDAY, 3),
    ]
    assert all(w[4] is timetable.tx.session for w in timetable.writes)
    assert timetable.tx.outcome == "committed"


def test_failed_write_aborts_schedule_save(timetable):
    timetable.stored.append(timetable.Schedule("algebra", TUESDAY, 3))
    timetable.Schedule.fail_on_insert = True
    slots = [SlotAssignment(day_of_week=MONDAY, period=1, course_id="algebra")]

    with pytest.raises(RuntimeError):
        asyncio.run(scheduling.save_teacher_schedule("t1", slots))

    assert timetable.tx.outcome == "aborted"
    assert [w[0] for w in timetable.writes] == ["soft_delete"]


def test_two_courses_in_one_slot_are_refused(timetable):
    slots = [
        SlotAssignment(day_of_week=MONDAY, period=1, course_id="algebra"),
        SlotAssignment(day_of_week=MONDAY, period=1, course_id="biology"),
    ]
    with pytest.raises(ValueError):
        asyncio.run(scheduling.save_teacher_schedule("t1", slots))
    assert timetable.writes == []


def test_slot_update_conflict_leaves_slot_untouched(monkeypatch, timetable):
    occupant = timetable.Schedule("algebra", MONDAY, 1)
    timetable.stored.append(occupant)
    conflict_for(monkeypatch, "biology")

    with pytest.raises(ScheduleConflictError):
        asyncio.run(scheduling.update_slot("t1", MONDAY, 1, "biology"))

    assert occupant.course_id == "algebra"
    assert timetable.writes == []


def test_slot_update_replaces_occupant(timetable):
    occupant = timetable.Schedule("algebra", MONDAY, 1)
    timetable.stored.append(occupant)

    result = asyncio.run(scheduling.update_slot("t1", MONDAY, 1, "biology"))

    assert result is occupant
    assert occupant.course_id == "biology"
    assert [w[:2] for w in timetable.writes] == [("save", "biology")]


def test_slot_update_refuses_other_teachers_course(timetable):
    with pytest.raises(ValueError):
        asyncio.run(scheduling.update_slot("t1", MONDAY, 1, "history"))
    assert timetable.writes == []
