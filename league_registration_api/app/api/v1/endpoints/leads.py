"""
Contact‑form endpoints for API v1.

Anyone may leave a message; staff read them newest first.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from ....core.security import STAFF_ROLES, require_roles
from ....schemas.common import ApiResponse
from ....schemas.lead import LeadCreate, LeadRead
from ....services.lead_service import LeadService
from ...deps import get_leads

router = APIRouter()


@router.post("", response_model=ApiResponse[LeadRead], status_code=status.HTTP_201_CREATED)
async def create_lead(
    data: LeadCreate,
    service: LeadService = Depends(get_leads),
) -> ApiResponse[LeadRead]:
    lead = await service.create_lead(data)
    return ApiResponse[LeadRead](
        message="Thank you for contacting us! We'll get back to you soon.",
        data=lead,
    )


@router.get(
    "",
    response_model=ApiResponse[List[LeadRead]],
    dependencies=[Depends(require_roles(*STAFF_ROLES))],
)
async def list_leads(service: LeadService = Depends(get_leads)) -> ApiResponse[List[LeadRead]]:
    leads = await service.list_leads()
    return ApiResponse[List[LeadRead]](message="Leads retrieved successfully", data=leads)
