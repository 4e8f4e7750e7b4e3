"""Shaping helpers for the teacher and student dashboards."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from app.models.assignment import AssignmentType
from app.services.periods import period_label

# assignments a student has to act on; OFFLINE work is graded by the teacher alone
STUDENT_ACTION_TYPES = {AssignmentType.SUBMISSION, AssignmentType.QUIZ}


def upcoming_deadlines(assignments: Iterable, submitted_ids: set[str], now: datetime, limit: int = 5) -> list:
    """Open assignments due from ``now`` on, plus overdue ones still not handed in."""
    pending = [
        a
        for a in assignments
        if a.type in STUDENT_ACTION_TYPES
        and a.due_date is not None
        and (a.due_date >= now or str(a.id) not in submitted_ids)
    ]
    return sorted(pending, key=lambda a: a.due_date)[:limit]


def today_schedule(schedules: Iterable, courses: dict, topics: dict[tuple[str, int], str]) -> list[dict]:
    """A student's slots for the day with the topic recorded for each session, if any."""
    rows = []
    for slot in sorted(schedules, key=lambda s: s.period):
        course = courses[slot.course_id]
        rows.append(
            {
                "course_id": slot.course_id,
                "course_name": course.name,
                "period": slot.period,
                "period_label": period_label(slot.period),
                "topic": topics.get((slot.course_id, slot.period)),
            }
        )
    return rows
