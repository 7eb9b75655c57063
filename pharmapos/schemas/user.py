import re
from pydantic import EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional

from pharmapos.models.user import UserRole
from pharmapos.schemas.base import CamelModel


def normalize_email(value):
    """Trim and lower-case an email before it is validated."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


def validate_password(value: str) -> str:
    """Enforce the password complexity policy."""
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long.")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter.")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter.")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number.")
    if not re.search(r"[^A-Za-z0-9]", value):
        raise ValueError("Password must contain at least one special character.")
    return value


class UserCreate(CamelModel):
    """Schema for creating a staff account."""
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str
    role: UserRole

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password(value)


class UserUpdate(CamelModel):
    """
    Schema for updating a staff account. All fields are optional; an empty
    password means "keep the current one".
    """
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return validate_password(value)


class UserResponse(CamelModel):
    """Schema for a user, never including the password hash."""
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value):
        return normalize_email(value)


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
