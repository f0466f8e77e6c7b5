"""
FastAPI dependencies resolving the services stored on ``app.state``.

``create_app`` builds every service once; handlers declare what they
need, e.g. ``service: RegistrationService = Depends(get_registrations)``.
Tests swap collaborators by passing them to ``create_app``.
"""

from fastapi import Request

from ..services.lead_service import LeadService
from ..services.payment_service import PaymentService
from ..services.registration_service import RegistrationService
from ..services.reminder_service import ReminderService
from ..services.user_service import UserService


def get_registrations(request: Request) -> RegistrationService:
    return request.app.state.registrations


def get_payments(request: Request) -> PaymentService:
    return request.app.state.payments


def get_reminders(request: Request) -> ReminderService:
    return request.app.state.reminders


def get_users(request: Request) -> UserService:
    return request.app.state.users


def get_leads(request: Request) -> LeadService:
    return request.app.state.leads
