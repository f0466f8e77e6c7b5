"""
Application package initializer.

Each domain (registrations, payments, reminders, users, leads) has a
schema module, a service and a router under ``api/v1/endpoints``.
Cross‑cutting pieces (configuration, database, errors, security,
logging) live in ``core``.
"""

from .main import app  # noqa: F401
