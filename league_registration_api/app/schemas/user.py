"""
Pydantic models for staff users and authentication.

Passwords are only ever accepted, never returned.
"""

from typing import Optional

from pydantic import Field, field_validator

from ..core.security import UserRole
from .common import ApiModel, normalize_email

MIN_PASSWORD_LENGTH = 6


class UserBase(ApiModel):
    email: str = Field(..., example="admin@example.com")
    name: str = Field(..., example="League Admin")


class UserCreate(UserBase):
    """Registration payload.

    ``role`` is a request, not a grant: it is honoured only when an
    administrator creates the user.  The very first account is always
    an administrator.
    """

    password: str = Field(..., example="strongpassword")
    role: Optional[UserRole] = Field(None, example="moderator")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class UserLogin(ApiModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.strip().lower()


class UserRead(UserBase):
    id: str
    role: UserRole = UserRole.USER
    created_at: str
    updated_at: str


class AuthResult(ApiModel):
    user: UserRead
    token: str
