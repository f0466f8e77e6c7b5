"""
Shared schema building blocks: the camelCase base model and the
response envelope used by every endpoint.
"""

import re
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


def normalize_email(value: str) -> str:
    """Trim and lower‑case an e‑mail address, rejecting obviously invalid ones."""
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email")
    return value


class ApiModel(BaseModel):
    """Base model serialised with camelCase keys; accepts either form on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(BaseModel):
    page: int = Field(..., example=1)
    limit: int = Field(..., example=10)
    total: int = Field(..., example=25)
    pages: int = Field(..., example=3)


class ApiResponse(BaseModel, Generic[DataT]):
    """Fixed response envelope: ``{success, message, data?, error?}``."""

    success: bool = True
    message: str
    data: Optional[DataT] = None
    error: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[DataT]):
    """Envelope for list endpoints, adding a ``pagination`` block."""

    success: bool = True
    message: str
    data: List[DataT]
    pagination: Pagination
