"""
Authentication endpoints for API v1.

``/register`` is open so the very first administrator can be created.
Later self‑registrations receive the ``user`` role; an administrator
can create staff accounts by calling it with their own token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from ....core.security import CurrentUser, get_optional_user
from ....schemas.common import ApiResponse
from ....schemas.user import AuthResult, UserCreate, UserLogin
from ....services.user_service import UserService
from ...deps import get_users

router = APIRouter()


@router.post("/register", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    creator: Optional[CurrentUser] = Depends(get_optional_user),
    service: UserService = Depends(get_users),
) -> ApiResponse[AuthResult]:
    user = await service.create_user(data, creator=creator)
    return ApiResponse[AuthResult](message="User registered successfully", data=service.issue_token(user))


@router.post("/login", response_model=ApiResponse[AuthResult])
async def login(
    data: UserLogin,
    service: UserService = Depends(get_users),
) -> ApiResponse[AuthResult]:
    """Exchange e‑mail and password for a bearer token."""
    user = await service.authenticate(data.email, data.password)
    return ApiResponse[AuthResult](message="Login successful", data=service.issue_token(user))
