"""
Registration endpoints for API v1.

Signup is public; everything else is staff only.  Deleting a
registration is reserved for administrators.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from ....core.security import STAFF_ROLES, UserRole, require_roles
from ....schemas.common import ApiResponse, PaginatedResponse
from ....schemas.registration import RegistrationCreate, RegistrationRead, RegistrationStatusUpdate
from ....services.registration_service import RegistrationService
from ...deps import get_registrations

router = APIRouter()


@router.post("", response_model=ApiResponse[RegistrationRead], status_code=status.HTTP_201_CREATED)
async def create_registration(
    data: RegistrationCreate,
    service: RegistrationService = Depends(get_registrations),
) -> ApiResponse[RegistrationRead]:
    """Register a player for a league.

    The same e‑mail may be used once per league type; a second signup
    for the same league is rejected.
    """
    registration = await service.create_registration(data)
    return ApiResponse[RegistrationRead](
        message="Registration created successfully",
        data=registration,
    )


@router.get(
    "",
    response_model=PaginatedResponse[RegistrationRead],
    dependencies=[Depends(require_roles(*STAFF_ROLES))],
)
async def list_registrations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = Query("registeredAt", description="Any registration field"),
    order: str = Query("desc", description="asc or desc"),
    status_filter: Optional[str] = Query(None, alias="status"),
    league_type: Optional[str] = Query(None, alias="leagueType"),
    service: RegistrationService = Depends(get_registrations),
) -> PaginatedResponse[RegistrationRead]:
    """List registrations with pagination, sorting and filters."""
    registrations, pagination = await service.list_registrations(
        page=page,
        limit=limit,
        sort=sort,
        order=order,
        status=status_filter,
        league_type=league_type,
    )
    return PaginatedResponse[RegistrationRead](
        message="Registrations retrieved successfully",
        data=registrations,
        pagination=pagination,
    )


@router.get(
    "/{registration_id}",
    response_model=ApiResponse[RegistrationRead],
    dependencies=[Depends(require_roles(*STAFF_ROLES))],
)
async def get_registration(
    registration_id: str = Path(..., description="Registration ID"),
    service: RegistrationService = Depends(get_registrations),
) -> ApiResponse[RegistrationRead]:
    registration = await service.get_registration(registration_id)
    return ApiResponse[RegistrationRead](
        message="Registration retrieved successfully",
        data=registration,
    )


@router.patch(
    "/{registration_id}/status",
    response_model=ApiResponse[RegistrationRead],
    dependencies=[Depends(require_roles(*STAFF_ROLES))],
)
async def update_registration_status(
    body: RegistrationStatusUpdate,
    registration_id: str = Path(..., description="Registration ID"),
    service: RegistrationService = Depends(get_registrations),
) -> ApiResponse[RegistrationRead]:
    """Approve, reject or reset a registration to pending."""
    registration = await service.update_status(registration_id, body.status)
    return ApiResponse[RegistrationRead](
        message="Registration status updated successfully",
        data=registration,
    )


@router.delete(
    "/{registration_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def delete_registration(
    registration_id: str = Path(..., description="Registration ID"),
    service: RegistrationService = Depends(get_registrations),
) -> ApiResponse[None]:
    """Delete a registration (administrators only).  Its payments are kept."""
    await service.delete_registration(registration_id)
    return ApiResponse[None](message="Registration deleted successfully")
