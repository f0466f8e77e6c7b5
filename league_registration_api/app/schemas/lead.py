"""Pydantic models for contact‑form leads."""

from pydantic import Field, field_validator

from .common import ApiModel, normalize_email


class LeadCreate(ApiModel):
    name: str = Field(..., example="Priya")
    email: str = Field(..., example="priya@example.com")
    message: str = Field(..., example="When do the trials start?")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v


class LeadRead(ApiModel):
    id: str
    name: str
    email: str
    message: str
    created_at: str
