from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse

from app.api.deps import TeacherOrAdmin, ensure_course_teacher, get_course_or_404, parse_date_param
from app.models.attendance import AttendanceSaveRequest, AttendanceTopicRequest, SessionRequest
from app.services import attendance as attendance_service

router = APIRouter()


@router.get("/daily")
async def get_daily_schedule(user: TeacherOrAdmin, date_str: Optional[str] = None):
    """The current teacher's sessions for a day (defaults to today)."""
    d = parse_date_param(date_str) if date_str else date.today()
    return await attendance_service.get_daily_schedule(str(user.id), d)


@router.get("/session")
async def get_session(
    user: TeacherOrAdmin,
    course_id: str,
    date_str: str,
    period: int = Query(..., ge=0, le=7),
):
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    return await attendance_service.get_session_attendance(course, parse_date_param(date_str), period)


@router.post("/session")
async def save_session(data: AttendanceSaveRequest, user: TeacherOrAdmin):
    course = await get_course_or_404(data.course_id)
    ensure_course_teacher(course, user)
    roster = set(course.student_ids)
    strangers = [r.student_id for r in data.records if r.student_id not in roster]
    if strangers:
        raise HTTPException(status_code=400, detail="Records include students not enrolled in this course")
    written = await attendance_service.save_attendance(
        course,
        parse_date_param(data.date_str),
        data.period,
        data.topic,
        data.records,
        data.apply_to_all_sessions,
    )
    return {"status": "success", "updated": written}


@router.post("/topic")
async def save_topic(data: AttendanceTopicRequest, user: TeacherOrAdmin):
    course = await get_course_or_404(data.course_id)
    ensure_course_teacher(course, user)
    await attendance_service.save_attendance_topic(
        course, parse_date_param(data.date_str), data.period, data.topic, data.apply_to_all_sessions
    )
    return {"status": "success"}


@router.post("/skip")
async def skip_session(data: SessionRequest, user: TeacherOrAdmin):
    course = await get_course_or_404(data.course_id)
    ensure_course_teacher(course, user)
    await attendance_service.skip_session(course, parse_date_param(data.date_str), data.period)
    return {"status": "success"}


@router.post("/unskip")
async def unskip_session(data: SessionRequest, user: TeacherOrAdmin):
    course = await get_course_or_404(data.course_id)
    ensure_course_teacher(course, user)
    removed = await attendance_service.unskip_session(course, parse_date_param(data.date_str), data.period)
    return {"status": "success", "removed": removed}


@router.post("/skip-all")
async def skip_all_sessions(user: TeacherOrAdmin, date_str: str):
    skipped = await attendance_service.skip_all_sessions(str(user.id), parse_date_param(date_str))
    return {"status": "success", "skipped": skipped}


@router.get("/stats/{course_id}")
async def get_course_stats(course_id: str, user: TeacherOrAdmin):
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    return await attendance_service.get_course_attendance_stats(course)


@router.get("/stats/{course_id}/export")
async def export_course_stats(
    course_id: str,
    user: TeacherOrAdmin,
    format: str = Query("csv", pattern="^(csv|excel)$"),
):
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    stats = await attendance_service.get_course_attendance_stats(course)
    if not stats:
        raise HTTPException(status_code=404, detail="No students enrolled in this course")

    stream, media_type = attendance_service.export_stats(stats, format)
    extension = "csv" if format == "csv" else "xlsx"
    body = iter([stream.getvalue()]) if format == "csv" else stream
    return StreamingResponse(
        body,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename=attendance_{course_id}.{extension}"},
    )
