"""
Reminder e‑mail endpoints for API v1 (staff only).
"""

from fastapi import APIRouter, Depends, Path

from ....core.security import STAFF_ROLES, require_roles
from ....schemas.common import ApiResponse
from ....schemas.reminder import ReminderBatchResult
from ....services.reminder_service import ReminderService
from ...deps import get_reminders

router = APIRouter(dependencies=[Depends(require_roles(*STAFF_ROLES))])


@router.post("/payment-reminders", response_model=ApiResponse[ReminderBatchResult])
async def send_payment_reminders(
    service: ReminderService = Depends(get_reminders),
) -> ApiResponse[ReminderBatchResult]:
    """Send a reminder to every registration without a completed payment.

    Individual delivery failures are counted in ``failed`` and do not
    stop the batch.
    """
    result = await service.send_payment_reminders()
    if result.total == 0:
        return ApiResponse[ReminderBatchResult](message="No pending payments found", data=result)
    return ApiResponse[ReminderBatchResult](
        message=f"Payment reminders sent to {result.sent} of {result.total} registrations",
        data=result,
    )


@router.post("/payment-reminder/{registration_id}", response_model=ApiResponse[None])
async def send_payment_reminder(
    registration_id: str = Path(..., description="Registration ID"),
    service: ReminderService = Depends(get_reminders),
) -> ApiResponse[None]:
    await service.send_payment_reminder(registration_id)
    return ApiResponse[None](message="Payment reminder sent successfully")
