"""Assignments and the per-student submissions graded against them."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Indexed
from pydantic import BaseModel, Field

from app.models.base import SoftDeleteDocument


class AssignmentType(str, Enum):
    SUBMISSION = "SUBMISSION"
    QUIZ = "QUIZ"
    OFFLINE = "OFFLINE"


class Assignment(SoftDeleteDocument):
    course_id: Indexed(str)
    title: str
    description: Optional[str] = None
    type: AssignmentType = AssignmentType.SUBMISSION
    due_date: Optional[datetime] = None
    max_points: float = Field(default=100, ge=0)
    is_extra_credit: bool = False
    late_penalty: float = Field(default=0, ge=0, le=100)  # percent of earned points
    quiz_id: Optional[str] = None

    class Settings:
        name = "assignments"
        use_state_management = True


class Submission(SoftDeleteDocument):
    """A student's single active submission for an assignment."""
    assignment_id: Indexed(str)
    student_id: Indexed(str)
    grade: Optional[float] = None  # percent of the assignment, 0-100
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    submission_url: Optional[str] = None
    attachment_url: Optional[str] = None
    link: Optional[str] = None
    feedback: Optional[str] = None
    answers: Optional[dict[str, str]] = None  # quiz attempts: question id -> choice id

    @property
    def has_content(self) -> bool:
        return bool(self.submission_url or self.attachment_url or self.link or self.feedback or self.answers)

    class Settings:
        name = "submissions"
        use_state_management = True


class AssignmentCreate(BaseModel):
    course_id: str
    title: str
    description: Optional[str] = None
    type: AssignmentType = AssignmentType.SUBMISSION
    due_date: Optional[datetime] = None
    max_points: float = Field(default=100, ge=0)
    is_extra_credit: bool = False
    late_penalty: float = Field(default=0, ge=0, le=100)
    quiz_id: Optional[str] = None


class AssignmentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[AssignmentType] = None
    due_date: Optional[datetime] = None
    max_points: Optional[float] = Field(default=None, ge=0)
    is_extra_credit: Optional[bool] = None
    late_penalty: Optional[float] = Field(default=None, ge=0, le=100)
    quiz_id: Optional[str] = None


class ScoreUpdate(BaseModel):
    score: Optional[float] = None


class SubmissionCreate(BaseModel):
    content: str = ""
    attachment_url: Optional[str] = None
    link: Optional[str] = None
