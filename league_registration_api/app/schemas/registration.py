"""
Pydantic models for league registrations.

``RegistrationCreate`` validates the public signup form with the same
messages the frontend shows.  ``RegistrationRead`` is what staff and
the payment endpoints return.
"""

import re
from enum import Enum
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator

from .common import ApiModel, normalize_email

MOBILE_RE = re.compile(r"^[0-9]{10}$")
MIN_AGE = 10
MAX_AGE = 30


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CricketRole(str, Enum):
    BATSMAN = "Batsman"
    BOWLER = "Bowler"
    ALL_ROUNDER = "All-rounder"
    WICKETKEEPER = "Wicketkeeper"


class RegistrationBase(ApiModel):
    league_type: str = Field("trial", example="t20-2026")
    name: str = Field(..., example="Rahul Sharma")
    age: int = Field(..., example=21)
    mobile: str = Field(..., example="9876543210")
    email: str = Field(..., example="rahul@example.com")
    district: str = Field(..., example="Pune")
    state: str = Field(..., example="Maharashtra")
    role: CricketRole = Field(..., example="Batsman")
    profile_image: Optional[str] = Field(None, example="https://cdn.example.com/p/rahul.png")
    documents: List[str] = Field(default_factory=list)


class RegistrationCreate(RegistrationBase):
    """Public signup payload."""

    @field_validator("league_type")
    @classmethod
    def validate_league_type(cls, v: str) -> str:
        v = v.strip()
        return v or "trial"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("age")
    @classmethod
    def validate_age(cls, v: int) -> int:
        if v < MIN_AGE or v > MAX_AGE:
            raise ValueError(f"Age must be between {MIN_AGE} and {MAX_AGE}")
        return v

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v: str) -> str:
        v = v.strip()
        if not MOBILE_RE.match(v):
            raise ValueError("Mobile must be a valid 10-digit number")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("district", "state")
    @classmethod
    def validate_required_text(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v

    @field_validator("profile_image")
    @classmethod
    def validate_profile_image(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class RegistrationRead(RegistrationBase):
    id: str
    status: RegistrationStatus = RegistrationStatus.PENDING
    registered_at: str
    created_at: str
    updated_at: str


class RegistrationStatusUpdate(ApiModel):
    """Body of ``PATCH /registrations/{id}/status``.

    ``status`` is a plain string so that an unknown value is reported
    by the service with the dedicated message rather than a generic
    validation error.
    """

    status: str = Field(..., example="approved")
