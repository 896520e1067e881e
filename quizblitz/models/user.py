"""
User Models
Teachers and students share one user record; role decides what they may do
FILE: quizblitz/models/user.py
"""
from datetime import datetime, timezone
from typing import Literal, Optional
import uuid

from pydantic import BaseModel, EmailStr, Field


UserRole = Literal["teacher", "student"]


class User(BaseModel):
    """Stored user record including cumulative game statistics"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    email: str
    password_hash: str
    name: str
    role: UserRole = "student"
    avatar_url: Optional[str] = None
    total_score: int = 0
    games_played: int = 0
    games_won: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_public(self) -> "PublicUser":
        return PublicUser(**self.model_dump(exclude={"password_hash"}))


class PublicUser(BaseModel):
    """User as returned to clients (no password hash)"""
    id: str
    email: str
    name: str
    role: UserRole
    avatar_url: Optional[str] = None
    total_score: int = 0
    games_played: int = 0
    games_won: int = 0
    created_at: datetime


class RegisterRequest(BaseModel):
    """Request model for account registration"""
    email: EmailStr = Field(..., description="Login email, unique per account")
    password: str = Field(..., min_length=6, description="At least 6 characters")
    name: str = Field(..., min_length=2, max_length=80)
    role: UserRole = Field(default="student")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "ms.rivera@school.edu",
                "password": "s3cret!",
                "name": "Ms Rivera",
                "role": "teacher"
            }
        }


class LoginRequest(BaseModel):
    """Request model for login"""
    email: EmailStr
    password: str = Field(..., min_length=6)


class AuthResponse(BaseModel):
    """Response model for register/login"""
    user: PublicUser
