"""Courses, the attendance pool and course enrollment."""
import logging
from datetime import datetime

from beanie import PydanticObjectId
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.api.deps import (
    AdminOnly,
    CurrentUser,
    TeacherOrAdmin,
    ensure_course_teacher,
    get_class_or_404,
    get_course_or_404,
    parse_object_id,
)
from app.models.course import AttendancePoolUpdate, Course, CourseCreate, CourseUpdate
from app.models.user import User, UserRole
from app.services.academic_year import get_active_term_ids
from app.services.schedule_conflict import (
    ScheduleConflict,
    ScheduleConflictError,
    check_student_schedule_conflict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class EnrollRequest(BaseModel):
    student_id: str


class EnrollClassRequest(BaseModel):
    class_id: str


def _course_out(c: Course, teachers: dict[str, User] | None = None) -> dict:
    teacher = (teachers or {}).get(c.teacher_id)
    return {
        "id": str(c.id),
        "name": c.name,
        "report_name": c.report_name,
        "teacher_id": c.teacher_id,
        "teacher_name": teacher.full_name if teacher else None,
        "term_id": c.term_id,
        "class_id": c.class_id,
        "subject_id": c.subject_id,
        "student_count": len(c.student_ids),
        "attendance_pool_score": c.attendance_pool_score,
    }


@router.get("/")
async def list_courses(user: CurrentUser, show_all: bool = False):
    query: dict = {}
    if not show_all:
        query["term_id"] = {"$in": await get_active_term_ids()}
    if user.role == UserRole.TEACHER:
        query["teacher_id"] = str(user.id)
    elif user.role == UserRole.STUDENT:
        query["student_ids"] = str(user.id)
    courses = await Course.active(query).sort("name").to_list()

    teacher_ids = {c.teacher_id for c in courses}
    teachers = {
        str(t.id): t
        for t in await User.find({"_id": {"$in": [PydanticObjectId(t) for t in teacher_ids]}}).to_list()
    } if teacher_ids else {}
    return [_course_out(c, teachers) for c in courses]


@router.get("/{course_id}")
async def get_course(course_id: str, user: CurrentUser):
    course = await get_course_or_404(course_id)
    if user.role == UserRole.STUDENT and str(user.id) not in course.student_ids:
        raise HTTPException(status_code=403, detail="Unauthorized")
    if user.role == UserRole.TEACHER:
        ensure_course_teacher(course, user)
    return _course_out(course)


@router.post("/", status_code=201)
async def create_course(data: CourseCreate, admin: AdminOnly):
    teacher = await User.get(parse_object_id(data.teacher_id, "teacher id"))
    if not teacher or teacher.role != UserRole.TEACHER:
        raise HTTPException(status_code=400, detail="Teacher not found")
    course = Course(**data.model_dump())
    await course.insert()
    logger.info(f"Course created: {course.name} ({course.id})")
    return _course_out(course)


@router.patch("/{course_id}")
async def update_course(course_id: str, data: CourseUpdate, admin: AdminOnly):
    course = await get_course_or_404(course_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(course, key, value)
    course.updated_at = datetime.utcnow()
    await course.save()
    return _course_out(course)


@router.delete("/{course_id}", status_code=204)
async def delete_course(course_id: str, admin: AdminOnly):
    course = await get_course_or_404(course_id)
    await course.soft_delete()
    logger.info(f"Course deleted: {course.name} ({course.id})")
    return None


@router.put("/{course_id}/attendance-pool")
async def update_attendance_pool(course_id: str, data: AttendancePoolUpdate, user: TeacherOrAdmin):
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    course.attendance_pool_score = data.attendance_pool_score
    course.updated_at = datetime.utcnow()
    await course.save()
    return {"status": "success", "attendance_pool_score": course.attendance_pool_score}


@router.get("/{course_id}/students")
async def list_course_students(course_id: str, user: TeacherOrAdmin):
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    if not course.student_ids:
        return []
    students = await User.find(
        {"_id": {"$in": [PydanticObjectId(s) for s in course.student_ids]}}
    ).sort("full_name").to_list()
    return [{"id": str(s.id), "full_name": s.full_name, "email": s.email} for s in students]


@router.post("/{course_id}/students")
async def enroll_student(course_id: str, data: EnrollRequest, admin: AdminOnly):
    course = await get_course_or_404(course_id)
    student = await User.get(parse_object_id(data.student_id, "student id"))
    if not student or student.role != UserRole.STUDENT:
        raise HTTPException(status_code=404, detail="Student not found")
    if data.student_id in course.student_ids:
        raise HTTPException(status_code=400, detail="Student is already enrolled")

    conflict = await check_student_schedule_conflict(data.student_id, course_id)
    if conflict:
        conflict.student_id = str(student.id)
        conflict.student_name = student.full_name
        raise ScheduleConflictError([conflict])

    course.student_ids.append(data.student_id)
    course.updated_at = datetime.utcnow()
    await course.save()
    logger.info(f"Enrolled student {data.student_id} in course {course_id}")
    return {"status": "success"}


@router.delete("/{course_id}/students/{student_id}")
async def remove_student(course_id: str, student_id: str, admin: AdminOnly):
    course = await get_course_or_404(course_id)
    if student_id not in course.student_ids:
        raise HTTPException(status_code=400, detail="Student is not enrolled")
    course.student_ids = [s for s in course.student_ids if s != student_id]
    course.updated_at = datetime.utcnow()
    await course.save()
    return {"status": "success"}


@router.post("/{course_id}/enroll-class")
async def enroll_class(course_id: str, data: EnrollClassRequest, user: TeacherOrAdmin):
    """Enroll every student of a homeroom class; rejected whole on any conflict."""
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    school_class = await get_class_or_404(data.class_id)

    new_ids = [s for s in school_class.student_ids if s not in course.student_ids]
    if not new_ids:
        return {"status": "success", "added": 0, "message": "All class students are already enrolled"}

    students = {
        str(s.id): s
        for s in await User.find({"_id": {"$in": [PydanticObjectId(s) for s in new_ids]}}).to_list()
    }
    conflicts: list[ScheduleConflict] = []
    for student_id in new_ids:
        conflict = await check_student_schedule_conflict(student_id, course_id)
        if conflict:
            student = students.get(student_id)
            conflict.student_id = student_id
            conflict.student_name = student.full_name if student else student_id
            conflicts.append(conflict)
    if conflicts:
        raise ScheduleConflictError(conflicts, "Cannot enroll class: schedule conflicts detected")

    course.student_ids.extend(new_ids)
    course.updated_at = datetime.utcnow()
    await course.save()
    logger.info(f"Enrolled class {data.class_id} into course {course_id}: {len(new_ids)} students")
    return {"status": "success", "added": len(new_ids)}
