"""Courses: a teacher's subject offering for one term, with its roster."""
from typing import Optional

from beanie import Indexed
from pydantic import BaseModel, Field

from app.models.base import SoftDeleteDocument


class Course(SoftDeleteDocument):
    name: Indexed(str)
    report_name: Optional[str] = None
    teacher_id: Indexed(str)
    term_id: Indexed(str)
    class_id: Optional[str] = None
    subject_id: Optional[str] = None

    student_ids: list[str] = Field(default_factory=list)

    # Points attendance contributes to the overall course grade.
    attendance_pool_score: float = 0

    @property
    def display_name(self) -> str:
        return self.report_name or self.name

    class Settings:
        name = "courses"
        use_state_management = True


class CourseCreate(BaseModel):
    name: str
    report_name: Optional[str] = None
    teacher_id: str
    term_id: str
    class_id: Optional[str] = None
    subject_id: Optional[str] = None


class CourseUpdate(BaseModel):
    name: Optional[str] = None
    report_name: Optional[str] = None
    teacher_id: Optional[str] = None
    term_id: Optional[str] = None
    class_id: Optional[str] = None
    subject_id: Optional[str] = None


class AttendancePoolUpdate(BaseModel):
    attendance_pool_score: float = Field(ge=0)
