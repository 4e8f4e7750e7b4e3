from datetime import date, datetime
from enum import Enum
from typing import Optional
from beanie import Document, Indexed
from pydantic import Field, BaseModel, model_validator

from app.models.base import SoftDeleteDocument


class SemesterType(str, Enum):
    ODD = "ODD"
    EVEN = "EVEN"


class AcademicYear(Document):
    """Academic year master records."""
    name: Indexed(str, unique=True)  # e.g., "2025/2026"
    start_date: datetime
    end_date: datetime
    is_active: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "academic_years"
        use_state_management = True


class Term(SoftDeleteDocument):
    """A semester window; courses and classes are bound to one term."""
    academic_year_id: Indexed(str)
    type: SemesterType
    start_date: datetime
    end_date: datetime
    is_active: bool = False

    def contains(self, day: date) -> bool:
        return self.start_date.date() <= day <= self.end_date.date()

    class Settings:
        name = "terms"
        use_state_management = True


class AcademicYearCreate(BaseModel):
    name: str
    start_date: datetime
    end_date: datetime


class TermCreate(BaseModel):
    academic_year_name: str
    type: SemesterType
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def _check_window(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TermUpdate(BaseModel):
    type: Optional[SemesterType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
