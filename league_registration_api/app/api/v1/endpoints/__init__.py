"""
Endpoint modules for API v1.

Each module defines an ``APIRouter`` for one domain (registrations,
payments, emails, auth, users, leads).  They are aggregated in
``api/v1/router.py``.
"""
