"""
Payment reminders for registrations that have not paid yet.

A batch walks every unpaid registration in signup order and sends one
reminder each.  A failing recipient is logged and counted; it never
aborts the rest of the batch.  SMTP calls block, so each send runs in a
worker thread to keep the event loop free.
"""

import asyncio
import logging

from ..core.errors import Conflict
from ..schemas.reminder import ReminderBatchResult
from .mailer import Mailer
from .payment_service import ALREADY_PAID_MESSAGE, PaymentService
from .registration_service import RegistrationService

logger = logging.getLogger(__name__)


class ReminderService:
    def __init__(
        self,
        registrations: RegistrationService,
        payments: PaymentService,
        mailer: Mailer,
    ) -> None:
        self.registrations = registrations
        self.payments = payments
        self.mailer = mailer

    async def send_payment_reminders(self) -> ReminderBatchResult:
        """Remind every registration without a completed payment.

        Returns the number of reminders sent, failed and attempted.
        """
        pending = await self.registrations.list_unpaid()
        result = ReminderBatchResult(total=len(pending))
        for registration in pending:
            try:
                await asyncio.to_thread(
                    self.mailer.send_payment_reminder,
                    registration.email,
                    registration.name,
                    registration.league_type,
                    self.payments.price_for(registration.league_type),
                    registration.id,
                )
            except Exception as e:
                logger.error("Failed to send reminder to %s: %s", registration.email, e)
                result.failed += 1
            else:
                result.sent += 1
        logger.info(
            "Payment reminders: %s sent, %s failed, %s total",
            result.sent,
            result.failed,
            result.total,
        )
        return result

    async def send_payment_reminder(self, registration_id: str) -> None:
        """Remind a single registration.

        Raises ``NotFound`` for an unknown registration and ``Conflict`` if
        it is already paid.  Delivery errors propagate to the caller.
        """
        registration = await self.registrations.get_registration(registration_id)
        if await self.payments.has_completed_payment(registration_id):
            raise Conflict(ALREADY_PAID_MESSAGE)
        await asyncio.to_thread(
            self.mailer.send_payment_reminder,
            registration.email,
            registration.name,
            registration.league_type,
            self.payments.price_for(registration.league_type),
            registration.id,
        )
