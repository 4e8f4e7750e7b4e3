from fastapi import APIRouter
from beanie import PydanticObjectId
from datetime import date, datetime
from typing import Dict, Any

from app.api.deps import AdminOnly, StudentOnly, TeacherOrAdmin
from app.models.assignment import Assignment, Submission
from app.models.attendance import Attendance, AttendanceStatus
from app.models.course import Course
from app.models.schedule import Schedule
from app.models.school_class import SchoolClass
from app.models.user import User, UserRole
from app.services.academic_year import (
    get_active_academic_year,
    get_active_term_ids,
    get_active_terms,
    terms_containing,
)
from app.services.attendance import session_day
from app.services.dashboard import today_schedule, upcoming_deadlines
from app.services.grading import summarize_attendance
from app.services.periods import day_of_week

router = APIRouter()

RECENT_LIMIT = 5


async def _names(user_ids) -> dict[str, str]:
    ids = {i for i in user_ids if i}
    if not ids:
        return {}
    users = await User.find({"_id": {"$in": [PydanticObjectId(i) for i in ids]}}).to_list()
    return {str(u.id): u.full_name for u in users}


@router.get("/stats")
async def get_admin_stats(admin: AdminOnly) -> Dict[str, Any]:
    """Get overview statistics for the admin dashboard."""

    term_ids = await get_active_term_ids()
    year = await get_active_academic_year()

    total_students = await User.find(User.role == UserRole.STUDENT, User.is_active == True).count()
    total_teachers = await User.find(User.role == UserRole.TEACHER, User.is_active == True).count()
    active_courses = await Course.active({"term_id": {"$in": term_ids}}).count()
    active_classes = await SchoolClass.active({"term_id": {"$in": term_ids}}).count()

    # Attendance taken today
    today = date.today()
    rows = await Attendance.active(
        Attendance.date == session_day(today), Attendance.status != AttendanceStatus.PENDING
    ).to_list()
    summary = summarize_attendance(r.status for r in rows)
    sessions_marked = len({(r.course_id, r.period) for r in rows})

    return {
        "academic_year": year.name if year else None,
        "counts": {
            "students": total_students,
            "teachers": total_teachers,
            "courses": active_courses,
            "classes": active_classes,
        },
        "attendance": {
            "present": summary.present,
            "absent": summary.absent,
            "excused": summary.excused,
            "sessions_marked": sessions_marked,
            "date": today.isoformat(),
        },
    }


@router.get("/teacher")
async def get_teacher_stats(teacher: TeacherOrAdmin) -> Dict[str, Any]:
    """Counts, latest submissions and upcoming due dates across the teacher's active courses."""
    term_ids = await get_active_term_ids()
    courses = await Course.active(
        Course.teacher_id == str(teacher.id), {"term_id": {"$in": term_ids}}
    ).to_list()
    course_map = {str(c.id): c for c in courses}
    students = {s for c in courses for s in c.student_ids}

    assignments = await Assignment.active({"course_id": {"$in": list(course_map)}}).to_list()
    assignment_map = {str(a.id): a for a in assignments}

    recent = []
    upcoming = []
    if assignments:
        recent = await Submission.active(
            {"assignment_id": {"$in": list(assignment_map)}}
        ).sort("-submitted_at").limit(RECENT_LIMIT).to_list()
        now = datetime.utcnow()
        upcoming = sorted(
            (a for a in assignments if a.due_date and a.due_date >= now), key=lambda a: a.due_date
        )[:RECENT_LIMIT]

    names = await _names(s.student_id for s in recent)
    upcoming_out = []
    for a in upcoming:
        count = await Submission.active(Submission.assignment_id == str(a.id)).count()
        upcoming_out.append(
            {
                "id": str(a.id),
                "title": a.title,
                "course_name": course_map[a.course_id].name,
                "due_date": a.due_date,
                "submission_count": count,
                "student_count": len(course_map[a.course_id].student_ids),
            }
        )

    return {
        "counts": {
            "courses": len(courses),
            "students": len(students),
            "assignments": len(assignments),
        },
        "recent_submissions": [
            {
                "id": str(s.id),
                "student_name": names.get(s.student_id),
                "assignment_title": assignment_map[s.assignment_id].title,
                "course_name": course_map[assignment_map[s.assignment_id].course_id].name,
                "submitted_at": s.submitted_at,
                "grade": s.grade,
            }
            for s in recent
        ],
        "upcoming_assignments": upcoming_out,
    }


@router.get("/student")
async def get_student_stats(student: StudentOnly) -> Dict[str, Any]:
    """Today's timetable, deadlines to act on and the latest grades."""
    student_id = str(student.id)
    today = date.today()
    now = datetime.utcnow()

    running = terms_containing(await get_active_terms(), today)
    courses = await Course.active(
        {"student_ids": student_id, "term_id": {"$in": list(running)}}
    ).to_list()
    course_map = {str(c.id): c for c in courses}

    schedules = []
    topics = {}
    if courses:
        schedules = await Schedule.active(
            {"course_id": {"$in": list(course_map)}}, Schedule.day_of_week == day_of_week(today)
        ).to_list()
        rows = await Attendance.active(
            {"course_id": {"$in": list(course_map)}},
            Attendance.student_id == student_id,
            Attendance.date == session_day(today),
        ).to_list()
        topics = {(r.course_id, r.period): r.topic for r in rows if r.topic}

    all_courses = await Course.active(
        {"student_ids": student_id, "term_id": {"$in": await get_active_term_ids()}}
    ).to_list()
    all_course_map = {str(c.id): c for c in all_courses}
    assignments = await Assignment.active({"course_id": {"$in": list(all_course_map)}}).to_list()
    assignment_map = {str(a.id): a for a in assignments}
    mine = await Submission.active(
        Submission.student_id == student_id, {"assignment_id": {"$in": list(assignment_map)}}
    ).to_list() if assignments else []

    deadlines = upcoming_deadlines(assignments, {s.assignment_id for s in mine}, now)
    graded = sorted((s for s in mine if s.grade is not None), key=lambda s: s.updated_at, reverse=True)

    return {
        "today": today.isoformat(),
        "schedule": today_schedule(schedules, course_map, topics),
        "upcoming_deadlines": [
            {
                "id": str(a.id),
                "title": a.title,
                "type": a.type,
                "course_name": all_course_map[a.course_id].name,
                "due_date": a.due_date,
                "is_overdue": a.due_date < now,
            }
            for a in deadlines
        ],
        "recent_grades": [
            {
                "assignment_id": s.assignment_id,
                "assignment_title": assignment_map[s.assignment_id].title,
                "course_name": all_course_map[assignment_map[s.assignment_id].course_id].name,
                "grade": s.grade,
                "graded_at": s.updated_at,
            }
            for s in graded[:RECENT_LIMIT]
        ],
    }
