"""Homeroom teacher views: class overview, per-student grades and report cards."""
from datetime import datetime
from typing import Optional

from beanie import PydanticObjectId
from fastapi import APIRouter, HTTPException

from app.api.deps import TeacherOrAdmin, ensure_homeroom_teacher, get_class_or_404, is_admin, parse_object_id
from app.api.grades import teacher_names
from app.models.academic_year import AcademicYear, Term
from app.models.course import Course
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.user import User, UserRole
from app.services.academic_year import get_active_term_ids
from app.services.gradebook import (
    homeroom_student_summary,
    load_course_work,
    report_card_entry,
    student_grade_entry,
    student_grade_history,
    student_semesters,
)

router = APIRouter()


async def _class_students(school_class: SchoolClass) -> list[User]:
    if not school_class.student_ids:
        return []
    return await User.find(
        {"_id": {"$in": [PydanticObjectId(s) for s in school_class.student_ids]}}
    ).sort("full_name").to_list()


async def _get_student(student_id: str) -> User:
    student = await User.get(parse_object_id(student_id, "student id"))
    if not student or student.role != UserRole.STUDENT:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


async def _ensure_homeroom_of_student(user: User, student_id: str) -> None:
    """Admins see everyone; teachers only students of their own homeroom classes."""
    if is_admin(user):
        return
    owned = await SchoolClass.active(
        SchoolClass.homeroom_teacher_id == str(user.id), {"student_ids": student_id}
    ).first_or_none()
    if not owned:
        raise HTTPException(status_code=403, detail="Unauthorized")


@router.get("/classes")
async def list_homeroom_classes(user: TeacherOrAdmin):
    term_ids = await get_active_term_ids()
    query: dict = {"term_id": {"$in": term_ids}}
    if not is_admin(user):
        query["homeroom_teacher_id"] = str(user.id)
    classes = await SchoolClass.active(query).sort("name").to_list()
    return [
        {"id": str(c.id), "name": c.name, "term_id": c.term_id, "student_count": len(c.student_ids)}
        for c in classes
    ]


@router.get("/classes/{class_id}/overview")
async def get_class_overview(class_id: str, user: TeacherOrAdmin):
    school_class = await get_class_or_404(class_id)
    ensure_homeroom_teacher(school_class, user)
    students = await _class_students(school_class)
    courses = await Course.active(Course.class_id == class_id).to_list()
    works = await load_course_work(courses, school_class.student_ids)

    rows = []
    for s in students:
        summary = homeroom_student_summary(works.values(), str(s.id))
        rows.append({"id": str(s.id), "full_name": s.full_name, "email": s.email, **summary})
    return {"id": str(school_class.id), "name": school_class.name, "students": rows}


@router.get("/students/{student_id}/grades")
async def get_student_grades(student_id: str, user: TeacherOrAdmin, term_id: Optional[str] = None):
    student = await _get_student(student_id)
    await _ensure_homeroom_of_student(user, student_id)

    query: dict = {"student_ids": student_id}
    if term_id:
        query["term_id"] = term_id
    courses = await Course.active(query).sort("name").to_list()
    works = await load_course_work(courses, [student_id])
    names = await teacher_names(courses)
    return {
        "student": {"id": str(student.id), "full_name": student.full_name},
        "courses": [
            student_grade_entry(works[str(c.id)], student_id, names.get(c.teacher_id))
            for c in courses
        ],
    }


@router.get("/students/{student_id}/semesters")
async def get_student_semesters(student_id: str, user: TeacherOrAdmin):
    await _get_student(student_id)
    await _ensure_homeroom_of_student(user, student_id)
    return await student_semesters(student_id)


@router.get("/students/{student_id}/history")
async def get_student_grade_history(student_id: str, user: TeacherOrAdmin):
    """Average grade per semester across everything the student has taken."""
    student = await _get_student(student_id)
    await _ensure_homeroom_of_student(user, student_id)
    return {
        "student": {"id": str(student.id), "full_name": student.full_name},
        "history": await student_grade_history(student_id),
    }


@router.get("/classes/{class_id}/students/{student_id}/report-card")
async def get_report_card(class_id: str, student_id: str, user: TeacherOrAdmin):
    school_class = await get_class_or_404(class_id)
    ensure_homeroom_teacher(school_class, user)
    if student_id not in school_class.student_ids:
        raise HTTPException(status_code=404, detail="Student is not in this class")
    student = await _get_student(student_id)

    term = await Term.get_active(parse_object_id(school_class.term_id, "term id"))
    year = await AcademicYear.get(parse_object_id(term.academic_year_id, "academic year id")) if term else None

    courses = await Course.active(
        {"student_ids": student_id, "term_id": school_class.term_id}
    ).sort("name").to_list()
    works = await load_course_work(courses, [student_id])
    names = await teacher_names(courses)
    subject_ids = [PydanticObjectId(c.subject_id) for c in courses if c.subject_id]
    subjects = {
        str(s.id): s for s in await Subject.find({"_id": {"$in": subject_ids}}).to_list()
    } if subject_ids else {}

    homeroom_teacher = None
    if school_class.homeroom_teacher_id:
        homeroom_teacher = await User.get(PydanticObjectId(school_class.homeroom_teacher_id))

    return {
        "student": {"id": str(student.id), "full_name": student.full_name, "email": student.email},
        "class_name": school_class.name,
        "homeroom_teacher": homeroom_teacher.full_name if homeroom_teacher else None,
        "academic_year": year.name if year else None,
        "semester": term.type if term else None,
        "courses": [
            report_card_entry(
                works[str(c.id)],
                student_id,
                subjects.get(c.subject_id) if c.subject_id else None,
                names.get(c.teacher_id),
            )
            for c in courses
        ],
        "generated_at": datetime.utcnow(),
    }
