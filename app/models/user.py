"""RBAC: Admins, Teachers, Students."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Document):
    """User document for RBAC across Admin, Teacher, Student."""

    email: Indexed(EmailStr, unique=True)
    role: UserRole
    full_name: Indexed(str)
    nickname: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
        use_state_management = True


class UserCreate(BaseModel):
    email: EmailStr
    role: UserRole
    full_name: str
    nickname: Optional[str] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserInDB(BaseModel):
    id: str
    email: str
    role: UserRole
    full_name: str
    nickname: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
