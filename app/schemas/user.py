from datetime import datetime

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    nickname: str = Field(min_length=1, max_length=50)
    student_id: str = Field(min_length=1, max_length=20)
    department: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=500)


class UserSummary(CamelModel):
    id: str
    nickname: str
    avatar_url: str | None = None


class UserRead(CamelModel):
    id: str
    email: EmailStr
    nickname: str
    student_id: str
    department: str | None
    avatar_url: str | None
    trust_score: int
    created_at: datetime
