from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional

from ulingo.schemas.progress import ProgressResponse

# Languages offered on the language selection screen
LANGUAGES = ("mandarin", "korean", "malay", "iban", "french")


def _check_language(value: str) -> str:
    value = value.strip().lower()
    if value not in LANGUAGES:
        raise ValueError(f"language must be one of: {', '.join(LANGUAGES)}")
    return value


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6)
    name: str = "Student"
    selected_language: str = "mandarin"

    @field_validator("selected_language")
    @classmethod
    def check_language(cls, value: str) -> str:
        return _check_language(value)


class UserLogin(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    name: str
    selected_language: str
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class LanguageUpdate(BaseModel):
    selected_language: str

    @field_validator("selected_language")
    @classmethod
    def check_language(cls, value: str) -> str:
        return _check_language(value)


class ProfileResponse(UserResponse):
    """Профиль: аккаунт и прогресс"""
    progress: ProgressResponse


class StudentSummary(BaseModel):
    id: int
    username: str
    name: str
    selected_language: str
    created_at: datetime
    streak: int
    current_level: int
    completed_levels: List[int]
    achievements: List[str]
    last_access_date: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str
