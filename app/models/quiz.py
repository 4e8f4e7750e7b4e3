"""Teacher-owned multiple-choice quizzes, attached to QUIZ assignments."""
from typing import Optional
from uuid import uuid4

from beanie import Indexed
from pydantic import BaseModel, Field

from app.models.base import SoftDeleteDocument


def _choice_id() -> str:
    return uuid4().hex


class QuizChoice(BaseModel):
    id: str = Field(default_factory=_choice_id)
    text: str = ""
    image_url: Optional[str] = None
    is_correct: bool = False
    order: int = 0


class Quiz(SoftDeleteDocument):
    teacher_id: Indexed(str)
    title: str
    description: Optional[str] = None

    class Settings:
        name = "quizzes"
        use_state_management = True


class QuizQuestion(SoftDeleteDocument):
    """One question; its choices live inside it."""
    quiz_id: Indexed(str)
    text: str
    image_url: Optional[str] = None
    order: int = 0
    choices: list[QuizChoice] = []

    class Settings:
        name = "quiz_questions"
        use_state_management = True


class QuizCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class ChoiceInput(BaseModel):
    id: Optional[str] = None  # None adds a new choice
    text: str = ""
    image_url: Optional[str] = None
    is_correct: bool = False


class QuestionInput(BaseModel):
    id: Optional[str] = None  # None adds a new question
    text: str = Field(min_length=1)
    image_url: Optional[str] = None
    choices: list[ChoiceInput]


class QuizAttemptRequest(BaseModel):
    answers: dict[str, str] = {}  # question id -> chosen choice id
