"""Student schedule-conflict detection.

A conflict exists when a proposed (day_of_week, period) slot for a course is
already occupied by a *different* course the same student is enrolled in
during the same term.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel

from app.models.course import Course
from app.models.schedule import Schedule
from app.models.user import User
from app.services.periods import DAY_NAMES, period_label

logger = logging.getLogger(__name__)


class Slot(BaseModel):
    day_of_week: int
    period: int


class CourseSlots(BaseModel):
    course_id: str
    course_name: str
    slots: list[Slot]


class StudentRef(BaseModel):
    id: str
    name: str


class ScheduleConflict(BaseModel):
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    course_id: str
    course_name: str
    day_of_week: int
    period: int

    def describe(self) -> str:
        where = f"{self.course_name} on {DAY_NAMES[self.day_of_week]} {period_label(self.period)}"
        if self.student_name:
            return f"Conflict for student {self.student_name} with {where}"
        return f"Schedule conflict with {where}"


class ScheduleConflictError(Exception):
    """Raised when a schedule or enrollment change would double-book a student."""

    def __init__(self, conflicts: list[ScheduleConflict], message: Optional[str] = None):
        self.conflicts = conflicts
        self.message = message or (conflicts[0].describe() if conflicts else "Schedule conflict")
        super().__init__(self.message)


def find_student_conflict(
    target_course_id: str,
    proposed: Iterable[Slot],
    other_courses: Iterable[CourseSlots],
) -> Optional[ScheduleConflict]:
    """First slot in ``proposed`` already taken by another of the student's courses."""
    other_courses = [c for c in other_courses if c.course_id != target_course_id]
    for slot in proposed:
        for course in other_courses:
            for existing in course.slots:
                if existing.day_of_week == slot.day_of_week and existing.period == slot.period:
                    return ScheduleConflict(
                        course_id=course.course_id,
                        course_name=course.course_name,
                        day_of_week=slot.day_of_week,
                        period=slot.period,
                    )
    return None


def find_course_conflicts(
    target_course_id: str,
    students: Iterable[StudentRef],
    proposed: Iterable[Slot],
    courses_by_student: dict[str, list[CourseSlots]],
) -> list[ScheduleConflict]:
    """At most one conflict per enrolled student, in roster order."""
    proposed = list(proposed)
    conflicts: list[ScheduleConflict] = []
    for student in students:
        conflict = find_student_conflict(
            target_course_id, proposed, courses_by_student.get(student.id, [])
        )
        if conflict:
            conflict.student_id = student.id
            conflict.student_name = student.name
            conflicts.append(conflict)
    return conflicts


async def _load_course_slots(courses: list[Course]) -> dict[str, CourseSlots]:
    if not courses:
        return {}
    course_ids = [str(c.id) for c in courses]
    schedules = await Schedule.active({"course_id": {"$in": course_ids}}).to_list()
    by_course = {
        str(c.id): CourseSlots(course_id=str(c.id), course_name=c.name, slots=[]) for c in courses
    }
    for s in schedules:
        by_course[s.course_id].slots.append(Slot(day_of_week=s.day_of_week, period=s.period))
    return by_course


async def _other_courses_in_term(course: Course, student_ids: list[str]) -> list[Course]:
    return await Course.active(
        {
            "student_ids": {"$in": student_ids},
            "term_id": course.term_id,
            "_id": {"$ne": course.id},
        }
    ).to_list()


async def check_course_schedule_update_conflict(
    course_id: str, proposed: list[Slot]
) -> list[ScheduleConflict]:
    """Would giving ``course_id`` these slots double-book any enrolled student?"""
    course = await Course.get_active(PydanticObjectId(course_id))
    if not course or not course.student_ids or not proposed:
        return []

    students = await User.find(
        {"_id": {"$in": [PydanticObjectId(s) for s in course.student_ids]}}
    ).sort("full_name").to_list()
    others = await _other_courses_in_term(course, course.student_ids)
    slots_by_course = await _load_course_slots(others)

    courses_by_student: dict[str, list[CourseSlots]] = {}
    for other in others:
        for sid in other.student_ids:
            courses_by_student.setdefault(sid, []).append(slots_by_course[str(other.id)])

    refs = [StudentRef(id=str(s.id), name=s.full_name) for s in students]
    conflicts = find_course_conflicts(str(course.id), refs, proposed, courses_by_student)
    if conflicts:
        logger.info(f"Course {course_id}: {len(conflicts)} student schedule conflict(s)")
    return conflicts


async def check_student_schedule_conflict(
    student_id: str, course_id: str
) -> Optional[ScheduleConflict]:
    """Would enrolling ``student_id`` in ``course_id`` clash with their timetable?"""
    course = await Course.get_active(PydanticObjectId(course_id))
    if not course:
        return None
    target = await _load_course_slots([course])
    proposed = target[str(course.id)].slots
    if not proposed:
        return None

    others = await _other_courses_in_term(course, [student_id])
    slots_by_course = await _load_course_slots(others)
    return find_student_conflict(str(course.id), proposed, list(slots_by_course.values()))
