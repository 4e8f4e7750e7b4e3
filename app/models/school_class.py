from typing import Optional
from beanie import Indexed
from pydantic import BaseModel, Field

from app.models.base import SoftDeleteDocument


class SchoolClass(SoftDeleteDocument):
    """Homeroom group (e.g., 10-A) for one term."""
    name: Indexed(str)
    term_id: Indexed(str)
    homeroom_teacher_id: Optional[str] = None
    student_ids: list[str] = Field(default_factory=list)

    class Settings:
        name = "classes"
        use_state_management = True


class SchoolClassCreate(BaseModel):
    name: str
    term_id: str
    homeroom_teacher_id: Optional[str] = None


class SchoolClassUpdate(BaseModel):
    name: Optional[str] = None
    term_id: Optional[str] = None
    homeroom_teacher_id: Optional[str] = None
