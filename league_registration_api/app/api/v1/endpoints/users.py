"""
User endpoints for API v1.
"""

from typing import List

from fastapi import APIRouter, Depends

from ....core.security import CurrentUser, UserRole, get_current_user, require_roles
from ....schemas.common import ApiResponse
from ....schemas.user import UserRead
from ....services.user_service import UserService
from ...deps import get_users

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserRead])
async def read_me(
    current_user: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_users),
) -> ApiResponse[UserRead]:
    """Return the profile of the authenticated user."""
    user = await service.get_user(current_user.id)
    return ApiResponse[UserRead](message="User retrieved successfully", data=user)


@router.get(
    "",
    response_model=ApiResponse[List[UserRead]],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def list_users(service: UserService = Depends(get_users)) -> ApiResponse[List[UserRead]]:
    """List every staff account (administrators only)."""
    users = await service.list_users()
    return ApiResponse[List[UserRead]](message="Users retrieved successfully", data=users)
