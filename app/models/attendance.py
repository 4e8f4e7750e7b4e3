from datetime import datetime
from enum import Enum
from typing import Optional
from beanie import Indexed
from pydantic import BaseModel, Field

from app.models.base import SoftDeleteDocument


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"
    SKIPPED = "SKIPPED"  # the session itself did not take place
    PENDING = "PENDING"  # row exists (e.g. topic saved) but attendance not taken


class Attendance(SoftDeleteDocument):
    """One student's attendance for one course session (date + period)."""
    course_id: Indexed(str)
    student_id: Indexed(str)
    date: Indexed(datetime)  # midnight of the session day
    period: int
    status: AttendanceStatus = AttendanceStatus.PENDING
    topic: Optional[str] = None
    excuse_reason: Optional[str] = None

    class Settings:
        name = "attendances"
        use_state_management = True


class AttendanceEntry(BaseModel):
    student_id: str
    status: AttendanceStatus
    excuse_reason: Optional[str] = None


class AttendanceSaveRequest(BaseModel):
    course_id: str
    date_str: str
    period: int = Field(ge=0, le=7)
    topic: Optional[str] = None
    records: list[AttendanceEntry]
    apply_to_all_sessions: bool = False


class AttendanceTopicRequest(BaseModel):
    course_id: str
    date_str: str
    period: int = Field(ge=0, le=7)
    topic: str
    apply_to_all_sessions: bool = False


class SessionRequest(BaseModel):
    course_id: str
    date_str: str
    period: int = Field(ge=0, le=7)
