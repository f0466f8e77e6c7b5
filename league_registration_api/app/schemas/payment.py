"""
Pydantic models for payments.

Amounts are stored in minor units (paise).  ``PaymentOrder.amount``
is the only place where the display unit (rupees) is used, because it
is handed straight to the checkout widget.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import ApiModel
from .registration import RegistrationRead


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentInitialize(ApiModel):
    registration_id: str = Field(..., min_length=1, example="3f1c2a9e0b7d4c55a1e2f3b4c5d6e7f8")


class PaymentVerify(BaseModel):
    """Checkout callback payload.

    The ``razorpay_*`` names are the ones the Razorpay checkout hands
    to the client, so they are accepted verbatim.
    """

    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str = Field(..., min_length=1, example="order_NfR1aX2bC3dE4f")
    razorpay_payment_id: str = Field(..., min_length=1, example="pay_NfR2bY3cD4eF5g")
    razorpay_signature: str = Field(..., min_length=1)
    payment_id: str = Field(..., alias="paymentId", min_length=1)


class PaymentOrder(ApiModel):
    """Order details returned to the client for checkout."""

    payment_id: str
    order_id: str
    amount: float = Field(..., example=1000, description="Amount in display units (rupees)")
    currency: str = Field("INR", example="INR")
    key_id: str = Field(..., description="Razorpay public key for the checkout widget")


class PaymentRead(ApiModel):
    id: str
    registration_id: str
    amount: int = Field(..., description="Amount in minor units (paise)")
    currency: str = "INR"
    razorpay_order_id: str
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: str
    updated_at: str


class PaymentWithRegistration(PaymentRead):
    """Payment joined with its registration; ``registration`` is ``None`` once deleted."""

    registration: Optional[RegistrationRead] = None
