from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from taskhub.config import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from taskhub.models.user import UserRole


def _clean_email(value: str) -> str:
    cleaned = value.strip().lower()
    if "@" not in cleaned:
        raise ValueError("Invalid email format")
    return cleaned


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    role: UserRole

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _clean_email(value)


class UserUpdate(BaseModel):
    email: str | None = Field(default=None, min_length=3, max_length=255)
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH
    )
    role: UserRole | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _clean_email(value)


class UserResponse(BaseModel):
    id: int
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime
