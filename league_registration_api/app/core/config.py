"""
Configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API starts in development without any environment at all; in a
production deployment the Razorpay credentials, SMTP account and
``SECRET_KEY`` must be overridden.

League pricing and display names are JSON objects, e.g.::

    LEAGUE_PRICING='{"t20-2026": 5000, "trial": 1000}'

Prices are expressed in display units (rupees); the payment service
converts them to paise before talking to the gateway.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger(__name__)


DEFAULT_LEAGUE_PRICING: Dict[str, int] = {
    "t20-2026": 5000,
    "t10-2026": 3000,
    "trial": 1000,
}

DEFAULT_LEAGUE_NAMES: Dict[str, str] = {
    "t20-2026": "T20 League 2026",
    "t10-2026": "T10 League 2026",
    "trial": "Trial Registration",
}


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_json(name: str, default: Dict) -> Dict:
    """Parse a JSON object from the environment, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return dict(default)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed JSON in %s", name)
        return dict(default)
    if not isinstance(value, dict):
        logger.warning("Ignoring %s: expected a JSON object", name)
        return dict(default)
    return value


def _env_pricing(name: str, default: Dict[str, int]) -> Dict[str, int]:
    """Parse the league price table; every price must be a positive integer."""
    value = _env_json(name, default)
    for league, price in value.items():
        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            logger.warning(
                "Ignoring %s: price for %r must be a positive integer, got %r", name, league, price
            )
            return dict(default)
    return value


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "League Registration API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    # Exposes exception messages in 500 responses.  Never enable in production.
    debug: bool = _env_bool("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "league_registration.db")

    cors_origins: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # Global per-client request limit: at most RATE_LIMIT_MAX_REQUESTS per
    # RATE_LIMIT_WINDOW_MS milliseconds.
    rate_limit_window_ms: int = int(os.getenv("RATE_LIMIT_WINDOW_MS", str(15 * 60 * 1000)))
    rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))

    razorpay_key_id: str = os.getenv("RAZORPAY_KEY_ID", "")
    razorpay_key_secret: str = os.getenv("RAZORPAY_KEY_SECRET", "")
    razorpay_api_url: str = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
    razorpay_timeout: float = float(os.getenv("RAZORPAY_TIMEOUT", "10"))
    payment_currency: str = os.getenv("PAYMENT_CURRENCY", "INR")

    league_pricing: Dict[str, int] = field(
        default_factory=lambda: _env_pricing("LEAGUE_PRICING", DEFAULT_LEAGUE_PRICING)
    )
    default_league_price: int = int(os.getenv("DEFAULT_LEAGUE_PRICE", "1000"))
    league_names: Dict[str, str] = field(
        default_factory=lambda: _env_json("LEAGUE_NAMES", DEFAULT_LEAGUE_NAMES)
    )

    smtp_host: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = _env_bool("SMTP_USE_TLS", "true")
    # Implicit TLS (port 465).  Takes precedence over STARTTLS.
    smtp_ssl: bool = _env_bool("SMTP_SSL")
    mail_from_name: str = os.getenv("MAIL_FROM_NAME", "Turbo Cricket League")

    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    @property
    def rate_limit(self) -> str:
        """Limit string in the ``limits`` notation, e.g. ``"100 per 900 seconds"``."""
        window_seconds = max(1, self.rate_limit_window_ms // 1000)
        return f"{self.rate_limit_max_requests} per {window_seconds} seconds"

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
