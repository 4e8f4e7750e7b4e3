"""Beanie document models and Pydantic schemas."""
from app.models.base import SoftDeleteDocument
from app.models.user import User, UserRole, UserCreate, UserUpdate, UserInDB
from app.models.role import ModulePermission, PermissionSet, Role, RoleCreateRequest, RoleResponse, RoleUpdateRequest
from app.models.academic_year import AcademicYear, AcademicYearCreate, SemesterType, Term, TermCreate, TermUpdate
from app.models.subject import Subject, SubjectCreate
from app.models.school_class import SchoolClass, SchoolClassCreate, SchoolClassUpdate
from app.models.course import Course, CourseCreate, CourseUpdate, AttendancePoolUpdate
from app.models.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentType,
    AssignmentUpdate,
    ScoreUpdate,
    Submission,
    SubmissionCreate,
)
from app.models.attendance import Attendance, AttendanceEntry, AttendanceStatus
from app.models.schedule import Schedule, SlotAssignment, SlotUpdate, TeacherScheduleSave
from app.models.quiz import (
    ChoiceInput,
    QuestionInput,
    Quiz,
    QuizAttemptRequest,
    QuizChoice,
    QuizCreate,
    QuizQuestion,
    QuizUpdate,
)

__all__ = [
    "SoftDeleteDocument",
    "User",
    "UserRole",
    "UserCreate",
    "UserUpdate",
    "UserInDB",
    "Role",
    "PermissionSet",
    "ModulePermission",
    "RoleCreateRequest",
    "RoleUpdateRequest",
    "RoleResponse",
    "AcademicYear",
    "AcademicYearCreate",
    "SemesterType",
    "Term",
    "TermCreate",
    "TermUpdate",
    "Subject",
    "SubjectCreate",
    "SchoolClass",
    "SchoolClassCreate",
    "SchoolClassUpdate",
    "Course",
    "CourseCreate",
    "CourseUpdate",
    "AttendancePoolUpdate",
    "Assignment",
    "AssignmentCreate",
    "AssignmentType",
    "AssignmentUpdate",
    "ScoreUpdate",
    "Submission",
    "SubmissionCreate",
    "Attendance",
    "AttendanceEntry",
    "AttendanceStatus",
    "Schedule",
    "SlotAssignment",
    "SlotUpdate",
    "TeacherScheduleSave",
    "ChoiceInput",
    "QuestionInput",
    "Quiz",
    "QuizAttemptRequest",
    "QuizChoice",
    "QuizCreate",
    "QuizQuestion",
    "QuizUpdate",
]
