"""Teacher timetable edits, all gated by the student schedule-conflict check."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from app.db import transaction
from app.models.course import Course
from app.models.schedule import Schedule, SlotAssignment
from app.services.academic_year import get_active_term_ids
from app.services.schedule_conflict import (
    ScheduleConflictError,
    Slot,
    check_course_schedule_update_conflict,
)

logger = logging.getLogger(__name__)


async def teacher_active_courses(teacher_id: str) -> list[Course]:
    term_ids = await get_active_term_ids()
    return await Course.active(
        Course.teacher_id == teacher_id, {"term_id": {"$in": term_ids}}
    ).sort("name").to_list()


async def teacher_schedules(courses: list[Course]) -> list[Schedule]:
    if not courses:
        return []
    return await Schedule.active({"course_id": {"$in": [str(c.id) for c in courses]}}).to_list()


async def get_teacher_schedule(teacher_id: str) -> list[dict]:
    courses = await teacher_active_courses(teacher_id)
    schedules = await teacher_schedules(courses)
    return [
        {
            "id": str(c.id),
            "name": c.name,
            "class_id": c.class_id,
            "term_id": c.term_id,
            "schedules": [
                {"id": str(s.id), "day_of_week": s.day_of_week, "period": s.period}
                for s in schedules
                if s.course_id == str(c.id)
            ],
        }
        for c in courses
    ]


async def update_slot(teacher_id: str, day_of_week: int, period: int, course_id: Optional[str]) -> Optional[Schedule]:
    """Put ``course_id`` in the teacher's (day, period) slot, or clear it when None.

    Raises :class:`ScheduleConflictError` without writing anything if an
    enrolled student already has another course in that slot.
    """
    courses = await teacher_active_courses(teacher_id)
    existing = next(
        (
            s
            for s in await teacher_schedules(courses)
            if s.day_of_week == day_of_week and s.period == period
        ),
        None,
    )

    if course_id is None:
        if existing:
            await existing.soft_delete()
            logger.info(f"Cleared slot day={day_of_week} period={period} for teacher {teacher_id}")
        return None

    if course_id not in {str(c.id) for c in courses}:
        raise ValueError("Course is not an active course of this teacher")

    conflicts = await check_course_schedule_update_conflict(
        course_id, [Slot(day_of_week=day_of_week, period=period)]
    )
    if conflicts:
        raise ScheduleConflictError(conflicts)

    if existing:
        existing.course_id = course_id
        existing.updated_at = datetime.utcnow()
        await existing.save()
        return existing
    slot = Schedule(course_id=course_id, day_of_week=day_of_week, period=period)
    await slot.insert()
    return slot


async def save_teacher_schedule(teacher_id: str, slots: list[SlotAssignment]) -> dict:
    """Replace a teacher's whole weekly timetable.

    Every course is conflict-checked before anything is written; any conflict
    rejects the whole save.
    """
    keys = [(s.day_of_week, s.period) for s in slots]
    if len(keys) != len(set(keys)):
        raise ValueError("A slot can only hold one course")

    courses = await teacher_active_courses(teacher_id)
    own_ids = {str(c.id) for c in courses}
    if any(s.course_id not in own_ids for s in slots):
        raise ValueError("Course is not an active course of this teacher")

    by_course: dict[str, list[Slot]] = {}
    for s in slots:
        by_course.setdefault(s.course_id, []).append(Slot(day_of_week=s.day_of_week, period=s.period))

    conflicts = []
    for course_id, course_slots in by_course.items():
        course_conflicts = await check_course_schedule_update_conflict(course_id, course_slots)
        if course_conflicts:
            conflicts.append(course_conflicts[0])
    if conflicts:
        logger.info(f"Rejected schedule save for teacher {teacher_id}: {len(conflicts)} conflict(s)")
        raise ScheduleConflictError(conflicts, "Schedule conflicts detected")

    wanted = {(s.day_of_week, s.period): s.course_id for s in slots}
    created = updated = removed = 0
    current = await teacher_schedules(courses)

    async with transaction() as session:
        for existing in current:
            key = (existing.day_of_week, existing.period)
            if key in wanted:
                new_course_id = wanted.pop(key)
                if existing.course_id != new_course_id:
                    existing.course_id = new_course_id
                    existing.updated_at = datetime.utcnow()
                    await existing.save(session=session)
                    updated += 1
            else:
                await existing.soft_delete(session=session)
                removed += 1

        for (day, period), course_id in wanted.items():
            await Schedule(course_id=course_id, day_of_week=day, period=period).insert(session=session)
            created += 1

    logger.info(
        f"Saved schedule for teacher {teacher_id}: {created} created, {updated} updated, {removed} removed"
    )
    return {"created": created, "updated": updated, "removed": removed}


async def get_conflicting_courses(teacher_id: str, day_of_week: int, period: int) -> list[str]:
    """Ids of the teacher's courses that could not be placed at (day, period)."""
    slot = [Slot(day_of_week=day_of_week, period=period)]
    conflicting = []
    for course in await teacher_active_courses(teacher_id):
        if await check_course_schedule_update_conflict(str(course.id), slot):
            conflicting.append(str(course.id))
    return conflicting


async def get_master_schedule() -> list[dict]:
    term_ids = await get_active_term_ids()
    courses = await Course.active({"term_id": {"$in": term_ids}}).to_list()
    course_map = {str(c.id): c for c in courses}
    schedules = await teacher_schedules(courses)
    return [
        {
            "id": str(s.id),
            "day_of_week": s.day_of_week,
            "period": s.period,
            "course_id": s.course_id,
            "course_name": course_map[s.course_id].name,
            "teacher_id": course_map[s.course_id].teacher_id,
            "class_id": course_map[s.course_id].class_id,
        }
        for s in sorted(schedules, key=lambda s: (s.day_of_week, s.period))
    ]
