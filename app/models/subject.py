from datetime import datetime
from typing import Optional
from beanie import Document, Indexed
from pydantic import BaseModel, Field


class Subject(Document):
    """Subject catalogue entry; courses may point at one."""
    name: str
    code: Indexed(str, unique=True)
    report_name: Optional[str] = None  # printed on report cards when set
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "subjects"
        use_state_management = True


class SubjectCreate(BaseModel):
    name: str
    code: str
    report_name: Optional[str] = None
    description: Optional[str] = None
