"""Homeroom class administration and class membership."""
from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.api.deps import AdminOnly, CurrentUser, get_class_or_404, parse_object_id
from app.models.school_class import SchoolClass, SchoolClassCreate, SchoolClassUpdate
from app.models.user import User, UserRole
from app.services.academic_year import get_active_term_ids

router = APIRouter()


class StudentRequest(BaseModel):
    student_id: str


def _class_out(c: SchoolClass) -> dict:
    return {
        "id": str(c.id),
        "name": c.name,
        "term_id": c.term_id,
        "homeroom_teacher_id": c.homeroom_teacher_id,
        "student_count": len(c.student_ids),
    }


@router.get("/")
async def list_classes(user: CurrentUser, active_terms_only: bool = True):
    query = {}
    if active_terms_only:
        query["term_id"] = {"$in": await get_active_term_ids()}
    classes = await SchoolClass.active(query).sort("name").to_list()
    return [_class_out(c) for c in classes]


@router.post("/", status_code=201)
async def create_class(data: SchoolClassCreate, admin: AdminOnly):
    school_class = SchoolClass(**data.model_dump())
    await school_class.insert()
    return _class_out(school_class)


@router.patch("/{class_id}")
async def update_class(class_id: str, data: SchoolClassUpdate, admin: AdminOnly):
    school_class = await get_class_or_404(class_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(school_class, key, value)
    school_class.updated_at = datetime.utcnow()
    await school_class.save()
    return _class_out(school_class)


@router.delete("/{class_id}", status_code=204)
async def delete_class(class_id: str, admin: AdminOnly):
    school_class = await get_class_or_404(class_id)
    await school_class.soft_delete()
    return None


@router.get("/{class_id}/students")
async def list_class_students(class_id: str, user: CurrentUser):
    school_class = await get_class_or_404(class_id)
    if not school_class.student_ids:
        return []
    students = await User.find(
        {"_id": {"$in": [parse_object_id(s) for s in school_class.student_ids]}}
    ).sort("full_name").to_list()
    return [{"id": str(s.id), "full_name": s.full_name, "email": s.email} for s in students]


@router.post("/{class_id}/students")
async def add_class_student(class_id: str, data: StudentRequest, admin: AdminOnly):
    school_class = await get_class_or_404(class_id)
    student = await User.get(parse_object_id(data.student_id, "student id"))
    if not student or student.role != UserRole.STUDENT:
        raise HTTPException(status_code=404, detail="Student not found")
    if data.student_id in school_class.student_ids:
        raise HTTPException(status_code=400, detail="Student is already in this class")
    school_class.student_ids.append(data.student_id)
    school_class.updated_at = datetime.utcnow()
    await school_class.save()
    return {"status": "success"}


@router.delete("/{class_id}/students/{student_id}")
async def remove_class_student(class_id: str, student_id: str, admin: AdminOnly):
    school_class = await get_class_or_404(class_id)
    if student_id not in school_class.student_ids:
        raise HTTPException(status_code=400, detail="Student is not in this class")
    school_class.student_ids = [s for s in school_class.student_ids if s != student_id]
    school_class.updated_at = datetime.utcnow()
    await school_class.save()
    return {"status": "success"}
