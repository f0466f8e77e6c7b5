"""
Top‑level router for version 1 of the API.

Aggregates the domain routers under their prefixes.  When a new
domain is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import auth, emails, leads, payments, registrations, users

router = APIRouter()

router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(emails.router, prefix="/emails", tags=["emails"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(leads.router, prefix="/leads", tags=["leads"])
