"""
Lesson Models
FILE: quizblitz/models/lesson.py
"""
from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel, Field, field_validator


class Lesson(BaseModel):
    """Lesson content authored by a teacher"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    teacher_id: str
    title: str
    content: str
    subject: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LessonCreateRequest(BaseModel):
    """Request model for creating a lesson"""
    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1)
    subject: Optional[str] = Field(default=None, max_length=80)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        """Reject whitespace-only titles"""
        if not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()
