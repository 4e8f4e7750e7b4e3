from beanie import Indexed
from pydantic import BaseModel, Field

from app.models.base import SoftDeleteDocument


class Schedule(SoftDeleteDocument):
    """A weekly slot occupied by a course (day 0 = Sunday, period 0-7)."""
    course_id: Indexed(str)
    day_of_week: int = Field(ge=0, le=6)
    period: int = Field(ge=0, le=7)

    class Settings:
        name = "schedules"
        use_state_management = True


class SlotUpdate(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    period: int = Field(ge=0, le=7)
    course_id: str | None = None  # None clears the slot


class SlotAssignment(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    period: int = Field(ge=0, le=7)
    course_id: str


class TeacherScheduleSave(BaseModel):
    slots: list[SlotAssignment]
