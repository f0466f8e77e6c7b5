"""
Main entrypoint for the League Registration API.

This module assembles the FastAPI application.  ``create_app`` sets up
logging and per-client rate limiting, builds the database handle and
every service once, stores them on ``app.state`` and mounts the
versioned routers.  An instance is created at import time as ``app``
so it can be served directly::

    uvicorn league_registration_api.app.main:app --reload

Tests call ``create_app`` themselves with their own settings, database,
payment gateway and mailer.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.db import Database
from .core.errors import register_exception_handlers
from .core.logging_config import install_request_logging, setup_logging
from .services.gateway import PaymentGateway, RazorpayGateway
from .services.lead_service import LeadService
from .services.mailer import Mailer
from .services.payment_service import PaymentService
from .services.registration_service import RegistrationService
from .services.reminder_service import ReminderService
from .services.user_service import UserService


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[PaymentGateway] = None,
    mailer: Optional[Mailer] = None,
    db: Optional[Database] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Settings, optional
        Configuration; defaults to the values read from the environment.
    gateway : PaymentGateway, optional
        Payment gateway; defaults to ``RazorpayGateway`` built from settings.
    mailer : Mailer, optional
        SMTP mailer; defaults to one built from settings.
    db : Database, optional
        Database handle; defaults to ``settings.database_url``.

    Returns
    -------
    FastAPI
        A configured application.  The database is migrated on startup.
    """
    settings = settings or default_settings
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title=settings.project_name, version=settings.api_version)

    # Counters live in memory and belong to this application instance.
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        application_limits=[settings.rate_limit],
        headers_enabled=True,
    )
    app.add_middleware(SlowAPIMiddleware)
    install_request_logging(app)
    # Added last so it wraps the limiter and 429 responses carry CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, debug=settings.debug)

    db = db or Database(settings.database_url)
    gateway = gateway or RazorpayGateway(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        api_url=settings.razorpay_api_url,
        timeout=settings.razorpay_timeout,
    )
    mailer = mailer or Mailer.from_settings(settings)

    registrations = RegistrationService(db)
    payments = PaymentService(db, gateway, registrations, settings)
    app.state.settings = settings
    app.state.db = db
    app.state.registrations = registrations
    app.state.payments = payments
    app.state.reminders = ReminderService(registrations, payments, mailer)
    app.state.users = UserService(db, settings)
    app.state.leads = LeadService(db)

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies pending migrations.
        db.init()

    @app.get("/", tags=["health"])
    async def health() -> dict:
        return {
            "status": "OK",
            "message": f"{settings.project_name} is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(v1_router, prefix="/api/v1")

    return app


# Created at import time so that uvicorn can discover it without
# calling create_app manually.
app = create_app()
