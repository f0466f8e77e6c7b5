"""
Logging for the application.

``setup_logging`` configures the root logger once (console handler plus
an optional file handler).  ``install_request_logging`` adds an access
log line per request to the ``league_registration_api.access`` logger::

    2026-10-19 12:00:00 [INFO] league_registration_api.access: POST /api/v1/payments/initialize 201 48.2ms

Requests that end in a 5xx are logged at ``ERROR``, 4xx at ``WARNING``.
"""

import logging
import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

access_logger = logging.getLogger("league_registration_api.access")


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger.

    The level is always applied; handlers are only attached the first
    time (``create_app`` may run several times in one process).  The
    directory of ``logfile`` is created if missing.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if root.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def install_request_logging(app: FastAPI) -> None:
    """Log method, path, status and duration of every request."""

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_logger.log(
            _level_for(response.status_code),
            "%s %s %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response
