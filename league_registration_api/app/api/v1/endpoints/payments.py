"""
Payment endpoints for API v1.

The checkout flow is public: the player initializes a payment for a
registration, pays through the Razorpay widget and posts the
signature it receives back to ``/verify``.
"""

from fastapi import APIRouter, Depends, Path, Response, status

from ....schemas.common import ApiResponse
from ....schemas.payment import (
    PaymentInitialize,
    PaymentOrder,
    PaymentRead,
    PaymentVerify,
    PaymentWithRegistration,
)
from ....services.payment_service import PaymentService
from ...deps import get_payments

router = APIRouter()


@router.post(
    "/initialize",
    response_model=ApiResponse[PaymentOrder],
    status_code=status.HTTP_201_CREATED,
)
async def initialize_payment(
    body: PaymentInitialize,
    response: Response,
    service: PaymentService = Depends(get_payments),
) -> ApiResponse[PaymentOrder]:
    """Create a gateway order for a registration.

    Returns 201 with a new order, or 200 with the existing order if a
    payment is already pending for the registration.
    """
    order, created = await service.initialize(body.registration_id)
    if not created:
        response.status_code = status.HTTP_200_OK
        return ApiResponse[PaymentOrder](message="Payment already initialized", data=order)
    return ApiResponse[PaymentOrder](message="Payment initialized successfully", data=order)


@router.post("/verify", response_model=ApiResponse[PaymentRead])
async def verify_payment(
    body: PaymentVerify,
    service: PaymentService = Depends(get_payments),
) -> ApiResponse[PaymentRead]:
    payment = await service.verify(
        payment_id=body.payment_id,
        order_id=body.razorpay_order_id,
        gateway_payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
    )
    return ApiResponse[PaymentRead](message="Payment verified successfully", data=payment)


@router.get("/{payment_id}", response_model=ApiResponse[PaymentWithRegistration])
async def get_payment_status(
    payment_id: str = Path(..., description="Payment ID"),
    service: PaymentService = Depends(get_payments),
) -> ApiResponse[PaymentWithRegistration]:
    """Payment status with the registration it belongs to."""
    payment = await service.get_status(payment_id)
    return ApiResponse[PaymentWithRegistration](
        message="Payment status retrieved successfully",
        data=payment,
    )
