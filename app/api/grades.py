"""Grade views for students and course teachers."""
from beanie import PydanticObjectId
from fastapi import APIRouter

from app.api.deps import StudentOnly, TeacherOrAdmin, ensure_course_teacher, get_course_or_404
from app.models.course import Course
from app.models.user import User
from app.services.academic_year import get_active_term_ids
from app.services.attendance import roster
from app.services.gradebook import (
    gradebook_rows,
    load_course_work,
    student_grade_entry,
    student_grade_history,
)

router = APIRouter()


async def teacher_names(courses: list[Course]) -> dict[str, str]:
    ids = {c.teacher_id for c in courses}
    if not ids:
        return {}
    teachers = await User.find({"_id": {"$in": [PydanticObjectId(i) for i in ids]}}).to_list()
    return {str(t.id): t.full_name for t in teachers}


@router.get("/me")
async def get_my_grades(student: StudentOnly):
    """Every active-term course of the current student, graded."""
    student_id = str(student.id)
    term_ids = await get_active_term_ids()
    courses = await Course.active(
        {"student_ids": student_id, "term_id": {"$in": term_ids}}
    ).sort("name").to_list()
    works = await load_course_work(courses, [student_id])
    names = await teacher_names(courses)
    return [
        student_grade_entry(works[str(c.id)], student_id, names.get(c.teacher_id))
        for c in courses
    ]


@router.get("/me/history")
async def get_my_grade_history(student: StudentOnly):
    return await student_grade_history(str(student.id))


@router.get("/course/{course_id}")
async def get_course_gradebook(course_id: str, user: TeacherOrAdmin):
    course = await get_course_or_404(course_id)
    ensure_course_teacher(course, user)
    students = await roster(course)
    works = await load_course_work([course])
    return {
        "course_id": str(course.id),
        "course_name": course.name,
        "attendance_pool_score": course.attendance_pool_score,
        "students": gradebook_rows(works[str(course.id)], students),
    }
