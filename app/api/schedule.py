"""Weekly timetable: teacher schedules, slot edits and the master schedule."""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from app.api.deps import AdminOnly, TeacherOrAdmin, is_admin
from app.models.schedule import SlotUpdate, TeacherScheduleSave
from app.models.user import User
from app.services import scheduling

router = APIRouter()


def _target_teacher(user: User, teacher_id: Optional[str]) -> str:
    """Teachers act on their own timetable; admins may name any teacher."""
    if teacher_id and teacher_id != str(user.id):
        if not is_admin(user):
            raise HTTPException(status_code=403, detail="Unauthorized")
        return teacher_id
    return str(user.id)


@router.get("/teacher")
async def get_teacher_schedule(user: TeacherOrAdmin, teacher_id: Optional[str] = None):
    return await scheduling.get_teacher_schedule(_target_teacher(user, teacher_id))


@router.put("/teacher/slot")
async def update_slot(data: SlotUpdate, user: TeacherOrAdmin, teacher_id: Optional[str] = None):
    try:
        slot = await scheduling.update_slot(
            _target_teacher(user, teacher_id), data.day_of_week, data.period, data.course_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if slot is None:
        return {"status": "success", "cleared": True}
    return {"status": "success", "id": str(slot.id), "course_id": slot.course_id}


@router.put("/teacher")
async def save_teacher_schedule(data: TeacherScheduleSave, user: TeacherOrAdmin, teacher_id: Optional[str] = None):
    try:
        counts = await scheduling.save_teacher_schedule(_target_teacher(user, teacher_id), data.slots)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "success", **counts}


@router.get("/teacher/conflicts")
async def get_conflicting_courses(
    user: TeacherOrAdmin,
    day_of_week: int = Query(..., ge=0, le=6),
    period: int = Query(..., ge=0, le=7),
    teacher_id: Optional[str] = None,
):
    course_ids = await scheduling.get_conflicting_courses(_target_teacher(user, teacher_id), day_of_week, period)
    return {"conflicting_course_ids": course_ids}


@router.get("/master")
async def get_master_schedule(admin: AdminOnly):
    return await scheduling.get_master_schedule()
