"""Attendance aggregation and the course grade formula.

Every grade shown anywhere (student grades, teacher gradebook, homeroom
overview, report card) is produced by :func:`calculate_course_grade`. The
functions here are pure: callers load documents and pass plain values in.

Formula::

    points          = clamp(grade, 0, 100) / 100 * max_points   (minus late penalty)
    numerator       = earned + extra_credit + attendance_pct * pool
    denominator     = max_points (non extra credit) + pool
    grade           = 100 if denominator == 0 else min(numerator / denominator * 100, 100)
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel

from app.models.attendance import AttendanceStatus

ATTENDED_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.EXCUSED})
UNCOUNTED_STATUSES = frozenset({AttendanceStatus.SKIPPED})


class AttendanceSummary(BaseModel):
    present: int = 0
    absent: int = 0
    excused: int = 0
    skipped: int = 0
    total_sessions: int = 0
    attended: int = 0

    @property
    def percentage(self) -> float:
        """Attended fraction in [0, 1]; 1.0 when no session has been counted yet."""
        if self.total_sessions == 0:
            return 1.0
        return self.attended / self.total_sessions


class GradeInput(BaseModel):
    """One assignment together with the student's submission for it, if any."""
    max_points: float
    is_extra_credit: bool = False
    late_penalty: float = 0
    due_date: Optional[datetime] = None
    grade: Optional[float] = None
    submitted_at: Optional[datetime] = None


class CourseGrade(BaseModel):
    grade: float
    earned_points: float
    extra_credit_points: float
    max_points: float
    attendance_score: float
    attendance_pool: float
    attendance_percentage: float

    @property
    def has_gradable_work(self) -> bool:
        return self.max_points > 0 or self.attendance_pool > 0

    def breakdown(self) -> dict:
        return {
            "student_points": self.earned_points,
            "extra_credit_points": self.extra_credit_points,
            "attendance_score": self.attendance_score,
            "max_points_possible": self.max_points,
            "attendance_pool": self.attendance_pool,
        }


def summarize_attendance(statuses: Iterable[AttendanceStatus | str]) -> AttendanceSummary:
    """Count one student's attendance rows for a course.

    SKIPPED rows (session cancelled) are left out of both the attended count
    and the session total. A PENDING row counts as a session not attended;
    views that must ignore untaken sessions filter them out before calling.
    """
    counts = Counter(AttendanceStatus(s) for s in statuses)
    total = sum(n for status, n in counts.items() if status not in UNCOUNTED_STATUSES)
    attended = sum(counts[s] for s in ATTENDED_STATUSES)
    return AttendanceSummary(
        present=counts[AttendanceStatus.PRESENT],
        absent=counts[AttendanceStatus.ABSENT],
        excused=counts[AttendanceStatus.EXCUSED],
        skipped=counts[AttendanceStatus.SKIPPED],
        total_sessions=total,
        attended=attended,
    )


def _clamp_percent(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def assignment_points(item: GradeInput) -> float:
    """Points earned on one assignment, after the late penalty."""
    if item.grade is None:
        return 0.0
    points = _clamp_percent(item.grade) / 100 * item.max_points
    is_late = (
        item.due_date is not None
        and item.submitted_at is not None
        and item.submitted_at > item.due_date
    )
    if is_late and item.late_penalty > 0:
        points -= points * (item.late_penalty / 100)
    return points


def calculate_course_grade(
    items: Iterable[GradeInput],
    attendance_pool_score: float,
    attendance_percentage: float,
) -> CourseGrade:
    earned = 0.0
    extra = 0.0
    max_points = 0.0
    for item in items:
        points = assignment_points(item)
        if item.is_extra_credit:
            extra += points
        else:
            earned += points
            max_points += item.max_points

    pool = attendance_pool_score or 0
    attendance_score = attendance_percentage * pool
    numerator = earned + extra + attendance_score
    denominator = max_points + pool
    if denominator == 0:
        grade = 100.0
    else:
        grade = _clamp_percent(numerator / denominator * 100)

    return CourseGrade(
        grade=grade,
        earned_points=earned,
        extra_credit_points=extra,
        max_points=max_points,
        attendance_score=attendance_score,
        attendance_pool=pool,
        attendance_percentage=attendance_percentage,
    )
