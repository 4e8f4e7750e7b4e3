"""Attendance session writes and per-course statistics.

A *session* is one course meeting: (course, date, period). Writes that touch
every student of a session run inside :func:`app.db.transaction` so a session
is never left half-updated.
"""
from __future__ import annotations

import io
import logging
from datetime import date, datetime, time
from typing import Optional

import pandas as pd
from beanie import PydanticObjectId

from app.db import transaction
from app.models.attendance import Attendance, AttendanceEntry, AttendanceStatus
from app.models.course import Course
from app.models.schedule import Schedule
from app.models.user import User
from app.services.academic_year import get_active_terms, terms_containing
from app.services.grading import summarize_attendance
from app.services.periods import day_of_week, period_label

logger = logging.getLogger(__name__)

SKIPPED_TOPIC = "Session Skipped"


def session_day(d: date) -> datetime:
    """Attendance rows are keyed on midnight of the session day."""
    return datetime.combine(d, time.min)


async def periods_for_session(course: Course, d: date, period: int, apply_to_all_sessions: bool) -> list[int]:
    """The single ``period``, or every period the course meets on that weekday."""
    if not apply_to_all_sessions:
        return [period]
    schedules = await Schedule.active(
        Schedule.course_id == str(course.id), Schedule.day_of_week == day_of_week(d)
    ).sort("period").to_list()
    return [s.period for s in schedules] or [period]


async def _find_row(course_id: str, student_id: str, day: datetime, period: int, session) -> Optional[Attendance]:
    return await Attendance.find_one(
        {
            "course_id": course_id,
            "student_id": student_id,
            "date": day,
            "period": period,
            "deleted_at": None,
        },
        session=session,
    )


async def save_attendance(
    course: Course,
    d: date,
    period: int,
    topic: Optional[str],
    records: list[AttendanceEntry],
    apply_to_all_sessions: bool = False,
) -> int:
    """Upsert one row per student per period; returns the number of rows written."""
    course_id = str(course.id)
    day = session_day(d)
    periods = await periods_for_session(course, d, period, apply_to_all_sessions)
    written = 0

    async with transaction() as session:
        for current_period in periods:
            for record in records:
                existing = await _find_row(course_id, record.student_id, day, current_period, session)
                if existing:
                    if (
                        existing.status != record.status
                        or existing.topic != topic
                        or existing.excuse_reason != record.excuse_reason
                    ):
                        existing.status = record.status
                        existing.topic = topic
                        existing.excuse_reason = record.excuse_reason
                        existing.updated_at = datetime.utcnow()
                        await existing.save(session=session)
                        written += 1
                else:
                    await Attendance(
                        course_id=course_id,
                        student_id=record.student_id,
                        date=day,
                        period=current_period,
                        status=record.status,
                        topic=topic,
                        excuse_reason=record.excuse_reason,
                    ).insert(session=session)
                    written += 1

    logger.info(f"Attendance saved for course {course_id} on {d} periods {periods}: {written} rows")
    return written


async def save_attendance_topic(
    course: Course, d: date, period: int, topic: str, apply_to_all_sessions: bool = False
) -> None:
    """Set the topic on every roster row; students without a row get a PENDING one."""
    course_id = str(course.id)
    day = session_day(d)
    periods = await periods_for_session(course, d, period, apply_to_all_sessions)

    async with transaction() as session:
        for current_period in periods:
            for student_id in course.student_ids:
                existing = await _find_row(course_id, student_id, day, current_period, session)
                if existing:
                    existing.topic = topic
                    existing.updated_at = datetime.utcnow()
                    await existing.save(session=session)
                else:
                    await Attendance(
                        course_id=course_id,
                        student_id=student_id,
                        date=day,
                        period=current_period,
                        status=AttendanceStatus.PENDING,
                        topic=topic,
                    ).insert(session=session)


async def skip_session(course: Course, d: date, period: int) -> None:
    """Mark the whole session as not held: every roster row becomes SKIPPED."""
    course_id = str(course.id)
    day = session_day(d)

    async with transaction() as session:
        for student_id in course.student_ids:
            existing = await _find_row(course_id, student_id, day, period, session)
            if existing:
                existing.status = AttendanceStatus.SKIPPED
                existing.topic = SKIPPED_TOPIC
                existing.excuse_reason = None
                existing.updated_at = datetime.utcnow()
                await existing.save(session=session)
            else:
                await Attendance(
                    course_id=course_id,
                    student_id=student_id,
                    date=day,
                    period=period,
                    status=AttendanceStatus.SKIPPED,
                    topic=SKIPPED_TOPIC,
                ).insert(session=session)

    logger.info(f"Session skipped: course {course_id} {d} {period_label(period)}")


async def unskip_session(course: Course, d: date, period: int) -> int:
    """Reset a session to untaken by soft-deleting all of its rows."""
    now = datetime.utcnow()
    result = await Attendance.active(
        Attendance.course_id == str(course.id),
        Attendance.date == session_day(d),
        Attendance.period == period,
    ).update({"$set": {"deleted_at": now, "updated_at": now}})
    count = getattr(result, "modified_count", 0)
    logger.info(f"Session unskipped: course {course.id} {d} {period_label(period)} ({count} rows)")
    return count


async def get_daily_schedule(teacher_id: str, d: date) -> list[dict]:
    """The teacher's slots on ``d`` (within running terms) with attendance status."""
    terms = terms_containing(await get_active_terms(), d)
    if not terms:
        return []
    courses = await Course.active(
        Course.teacher_id == teacher_id, {"term_id": {"$in": list(terms)}}
    ).to_list()
    if not courses:
        return []
    course_map = {str(c.id): c for c in courses}

    schedules = await Schedule.active(
        {"course_id": {"$in": list(course_map)}}, Schedule.day_of_week == day_of_week(d)
    ).sort("period").to_list()

    rows = await Attendance.active(
        {"course_id": {"$in": list(course_map)}}, Attendance.date == session_day(d)
    ).to_list()

    result = []
    for slot in schedules:
        session_rows = [r for r in rows if r.course_id == slot.course_id and r.period == slot.period]
        course = course_map[slot.course_id]
        topic = next((r.topic for r in session_rows if r.topic), None)
        result.append(
            {
                "schedule_id": str(slot.id),
                "course_id": slot.course_id,
                "course_name": course.name,
                "class_id": course.class_id,
                "day_of_week": slot.day_of_week,
                "period": slot.period,
                "period_label": period_label(slot.period),
                "is_attendance_taken": any(r.status != AttendanceStatus.PENDING for r in session_rows),
                "is_skipped": any(r.status == AttendanceStatus.SKIPPED for r in session_rows),
                "topic": topic,
            }
        )
    return result


async def skip_all_sessions(teacher_id: str, d: date) -> int:
    """Skip every session the teacher has on ``d``; returns how many were skipped."""
    slots = await get_daily_schedule(teacher_id, d)
    skipped = 0
    for slot in slots:
        course = await Course.get_active(PydanticObjectId(slot["course_id"]))
        if course:
            await skip_session(course, d, slot["period"])
            skipped += 1
    logger.info(f"Skipped {skipped} sessions for teacher {teacher_id} on {d}")
    return skipped


async def roster(course: Course) -> list[User]:
    if not course.student_ids:
        return []
    return await User.find(
        {"_id": {"$in": [PydanticObjectId(s) for s in course.student_ids]}}
    ).sort("full_name").to_list()


async def get_session_attendance(course: Course, d: date, period: int) -> dict:
    students = await roster(course)
    rows = await Attendance.active(
        Attendance.course_id == str(course.id),
        Attendance.date == session_day(d),
        Attendance.period == period,
    ).to_list()
    by_student = {r.student_id: r for r in rows}

    entries = []
    for s in students:
        row = by_student.get(str(s.id))
        entries.append(
            {
                "student": {"id": str(s.id), "full_name": s.full_name},
                # None means attendance has not been taken yet
                "status": row.status if row and row.status != AttendanceStatus.PENDING else None,
                "record_id": str(row.id) if row else None,
                "topic": row.topic if row else None,
                "excuse_reason": row.excuse_reason if row else None,
            }
        )
    return {
        "course_id": str(course.id),
        "course_name": course.name,
        "date": d.isoformat(),
        "period": period,
        "topic": rows[0].topic if rows else "",
        "attendance_pool_score": course.attendance_pool_score,
        "students": entries,
    }


async def get_course_attendance_stats(course: Course) -> list[dict]:
    students = await roster(course)
    rows = await Attendance.active(
        Attendance.course_id == str(course.id),
        Attendance.status != AttendanceStatus.PENDING,
    ).to_list()

    statuses: dict[str, list[AttendanceStatus]] = {}
    for r in rows:
        statuses.setdefault(r.student_id, []).append(r.status)

    pool = course.attendance_pool_score or 0
    stats = []
    for s in students:
        summary = summarize_attendance(statuses.get(str(s.id), []))
        stats.append(
            {
                "student_id": str(s.id),
                "student_name": s.full_name,
                "present_count": summary.present,
                "absent_count": summary.absent,
                "excused_count": summary.excused,
                "skipped_count": summary.skipped,
                "total_sessions": summary.total_sessions,
                "attendance_percentage": round(summary.percentage * 100, 1),
                "attendance_score": round(summary.percentage * pool, 2),
            }
        )
    return stats


def stats_to_frame(stats: list[dict]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Student ID": s["student_id"],
                "Student Name": s["student_name"],
                "Present": s["present_count"],
                "Absent": s["absent_count"],
                "Excused": s["excused_count"],
                "Skipped": s["skipped_count"],
                "Sessions": s["total_sessions"],
                "Attendance %": s["attendance_percentage"],
                "Attendance Score": s["attendance_score"],
            }
            for s in stats
        ]
    )


def export_stats(stats: list[dict], format: str) -> tuple[io.IOBase, str]:
    """Render stats as CSV or Excel; returns (stream, media type)."""
    df = stats_to_frame(stats)
    if format == "csv":
        stream = io.StringIO()
        df.to_csv(stream, index=False)
        stream.seek(0)
        return stream, "text/csv"
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
    output.seek(0)
    return output, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
