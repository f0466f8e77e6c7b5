"""
Payment lifecycle: initialize, verify and status lookup.

The flow is::

    initialize(registration) -> gateway order + pending payment
    (client pays through the Razorpay checkout)
    verify(payment, order id, payment id, signature) -> completed

``initialize`` is idempotent while a payment is pending: it returns the
existing order instead of creating a new one.  A completed payment
blocks further attempts.  A failed attempt stays in the table and a new
pending payment supersedes it.

At most one active (pending or completed) payment may exist per
registration.  The partial unique index ``ux_payments_active_registration``
enforces this even when two ``initialize`` calls race; the loser reads
back and returns the winner's order.

``verify`` only checks the checkout signature locally.  It does not ask
Razorpay to confirm the payment.
"""

import asyncio
import logging
import sqlite3
import time
from typing import Optional, Tuple

from ..core.config import Settings
from ..core.db import Database, new_id, utcnow_iso
from ..core.errors import BadRequest, Conflict, InternalError, NotFound
from ..schemas.payment import PaymentOrder, PaymentRead, PaymentStatus, PaymentWithRegistration
from .gateway import MAX_RECEIPT_LENGTH, GatewayError, PaymentGateway
from .registration_service import RegistrationService

logger = logging.getLogger(__name__)

PAYMENT_COLUMNS = (
    "id, registration_id, amount, currency, razorpay_order_id, razorpay_payment_id, "
    "razorpay_signature, status, created_at, updated_at"
)

ALREADY_PAID_MESSAGE = "Payment already completed for this registration"
INVALID_SIGNATURE_MESSAGE = "Invalid payment signature"
NOT_FOUND_MESSAGE = "Payment not found"


def row_to_payment(row: sqlite3.Row) -> PaymentRead:
    return PaymentRead(
        id=row["id"],
        registration_id=row["registration_id"],
        amount=row["amount"],
        currency=row["currency"],
        razorpay_order_id=row["razorpay_order_id"],
        razorpay_payment_id=row["razorpay_payment_id"],
        razorpay_signature=row["razorpay_signature"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def build_receipt(registration_id: str, now_ms: Optional[int] = None) -> str:
    """Receipt id for the gateway: registration suffix + timestamp suffix.

    Always at most ``MAX_RECEIPT_LENGTH`` characters; longer values keep
    their right‑hand end.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    receipt = f"{registration_id[-12:]}_{str(now_ms)[-8:]}"
    return receipt[-MAX_RECEIPT_LENGTH:]


class PaymentService:
    """Orchestrates the payment lifecycle for registrations."""

    def __init__(
        self,
        db: Database,
        gateway: PaymentGateway,
        registrations: RegistrationService,
        settings: Settings,
    ) -> None:
        self.db = db
        self.gateway = gateway
        self.registrations = registrations
        self.settings = settings

    @property
    def currency(self) -> str:
        return self.settings.payment_currency

    def price_for(self, league_type: str) -> int:
        """League price in display units; unknown leagues use the default price."""
        return int(self.settings.league_pricing.get(league_type, self.settings.default_league_price))

    def _order_details(self, payment: PaymentRead) -> PaymentOrder:
        return PaymentOrder(
            payment_id=payment.id,
            order_id=payment.razorpay_order_id,
            amount=payment.amount / 100,
            currency=payment.currency,
            key_id=self.gateway.key_id,
        )

    def _find_active(self, cursor: sqlite3.Cursor, registration_id: str) -> Optional[PaymentRead]:
        row = cursor.execute(
            f"SELECT {PAYMENT_COLUMNS} FROM payments "
            "WHERE registration_id = ? AND status IN ('pending', 'completed') "
            "ORDER BY created_at DESC LIMIT 1",
            (registration_id,),
        ).fetchone()
        return row_to_payment(row) if row else None

    async def initialize(self, registration_id: str) -> Tuple[PaymentOrder, bool]:
        """Create (or return) the gateway order for a registration.

        Returns the order details and ``True`` if a new order was created,
        ``False`` if an existing pending one was returned.

        Raises ``NotFound`` for an unknown registration, ``Conflict`` if
        it is already paid and ``InternalError`` when the gateway or the
        store fails.
        """
        registration = await self.registrations.get_registration(registration_id)

        with self.db.cursor() as cursor:
            existing = self._find_active(cursor, registration_id)
        if existing is not None:
            if existing.status == PaymentStatus.COMPLETED:
                raise Conflict(ALREADY_PAID_MESSAGE)
            logger.info("Reusing pending payment %s for registration %s", existing.id, registration_id)
            return self._order_details(existing), False

        amount = self.price_for(registration.league_type)
        receipt = build_receipt(registration_id)
        try:
            # The gateway client blocks on HTTP; keep it off the event loop.
            order = await asyncio.to_thread(
                self.gateway.create_order,
                amount=amount * 100,
                currency=self.currency,
                receipt=receipt,
                notes={
                    "registrationId": registration_id,
                    "leagueType": registration.league_type,
                    "email": registration.email,
                },
            )
        except GatewayError as e:
            raise InternalError("Failed to initialize payment", str(e))

        payment_id = new_id()
        now = utcnow_iso()
        try:
            with self.db.cursor() as cursor:
                cursor.execute(
                    f"INSERT INTO payments ({PAYMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        payment_id,
                        registration_id,
                        order.amount,
                        order.currency,
                        order.id,
                        None,
                        None,
                        PaymentStatus.PENDING.value,
                        now,
                        now,
                    ),
                )
                row = cursor.execute(
                    f"SELECT {PAYMENT_COLUMNS} FROM payments WHERE id = ?", (payment_id,)
                ).fetchone()
        except sqlite3.IntegrityError as e:
            winner = self._resolve_race(registration_id)
            if winner is None:
                raise InternalError("Failed to initialize payment", str(e))
            logger.warning(
                "Concurrent initialize for registration %s; abandoning order %s",
                registration_id,
                order.id,
            )
            if winner.status == PaymentStatus.COMPLETED:
                raise Conflict(ALREADY_PAID_MESSAGE)
            return self._order_details(winner), False
        except sqlite3.Error as e:
            raise InternalError("Failed to initialize payment", str(e))

        payment = row_to_payment(row)
        logger.info(
            "Initialized payment %s (order %s) for registration %s",
            payment.id,
            order.id,
            registration_id,
        )
        return self._order_details(payment), True

    def _resolve_race(self, registration_id: str) -> Optional[PaymentRead]:
        with self.db.cursor() as cursor:
            return self._find_active(cursor, registration_id)

    async def verify(
        self,
        payment_id: str,
        order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> PaymentRead:
        """Verify a checkout signature and mark the payment completed.

        Safe to repeat: verifying an already completed payment with the
        same gateway payment id returns it unchanged.  A bad signature
        or mismatched order raises ``BadRequest`` and leaves the record
        untouched.
        """
        payment = await self.get_payment(payment_id)

        if not self.gateway.verify_signature(order_id, gateway_payment_id, signature):
            logger.warning("Invalid signature for payment %s", payment_id)
            raise BadRequest(INVALID_SIGNATURE_MESSAGE)
        if order_id != payment.razorpay_order_id:
            logger.warning("Order %s does not belong to payment %s", order_id, payment_id)
            raise BadRequest("Order id does not match this payment")

        if payment.status == PaymentStatus.COMPLETED:
            if payment.razorpay_payment_id == gateway_payment_id:
                return payment
            raise Conflict(ALREADY_PAID_MESSAGE)

        try:
            with self.db.cursor() as cursor:
                # The status guard makes the pending -> completed flip happen once.
                cursor.execute(
                    "UPDATE payments SET razorpay_payment_id = ?, razorpay_signature = ?, "
                    "status = ?, updated_at = ? WHERE id = ? AND status != ?",
                    (
                        gateway_payment_id,
                        signature,
                        PaymentStatus.COMPLETED.value,
                        utcnow_iso(),
                        payment_id,
                        PaymentStatus.COMPLETED.value,
                    ),
                )
                row = cursor.execute(
                    f"SELECT {PAYMENT_COLUMNS} FROM payments WHERE id = ?", (payment_id,)
                ).fetchone()
        except sqlite3.IntegrityError:
            # A failed attempt cannot complete while a newer attempt is active.
            raise Conflict("Another payment is already active for this registration")
        updated = row_to_payment(row)
        if updated.razorpay_payment_id != gateway_payment_id:
            raise Conflict(ALREADY_PAID_MESSAGE)
        logger.info("Payment %s completed (gateway payment %s)", payment_id, gateway_payment_id)
        return updated

    async def get_payment(self, payment_id: str) -> PaymentRead:
        with self.db.cursor() as cursor:
            row = cursor.execute(
                f"SELECT {PAYMENT_COLUMNS} FROM payments WHERE id = ?", (payment_id,)
            ).fetchone()
        if not row:
            raise NotFound(NOT_FOUND_MESSAGE)
        return row_to_payment(row)

    async def get_status(self, payment_id: str) -> PaymentWithRegistration:
        """Payment with its registration embedded (``None`` if it was deleted)."""
        payment = await self.get_payment(payment_id)
        try:
            registration = await self.registrations.get_registration(payment.registration_id)
        except NotFound:
            registration = None
        return PaymentWithRegistration(**payment.model_dump(), registration=registration)

    async def has_completed_payment(self, registration_id: str) -> bool:
        with self.db.cursor() as cursor:
            row = cursor.execute(
                "SELECT 1 FROM payments WHERE registration_id = ? AND status = ? LIMIT 1",
                (registration_id, PaymentStatus.COMPLETED.value),
            ).fetchone()
        return row is not None
