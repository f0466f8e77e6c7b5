"""
Service error taxonomy and the JSON error envelope.

Services raise subclasses of ``ServiceError``; they never build HTTP
responses themselves.  ``register_exception_handlers`` installs FastAPI
handlers that render every failure in the same envelope as successful
responses::

    {"success": false, "message": "...", "error": "..."}

Clients over the request limit get a 429 in the same envelope.
Unexpected exceptions are logged with their traceback and returned as
a generic 500.  The underlying message of an unexpected exception or
an ``InternalError`` is only exposed when the application runs with
``debug`` enabled.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Too many requests from this IP, please try again later."


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation Error"


class BadRequest(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class Conflict(ServiceError):
    """Duplicate record or a state that forbids the operation (e.g. already paid)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested resource does not exist"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required."


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class InternalError(ServiceError):
    """Store or gateway failure; ``error`` carries the underlying message."""


def error_body(message: str, error: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    return body


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render a 429 in the envelope and attach the ``X-RateLimit-*``/``Retry-After`` headers.

    Must stay synchronous: the rate‑limit middleware calls it directly.
    """
    client = request.client.host if request.client else "unknown"
    logger.warning("Rate limit exceeded for %s on %s %s", client, request.method, request.url.path)
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_body(TOO_MANY_REQUESTS_MESSAGE),
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Join pydantic errors into ``"field: message"`` pairs."""
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return ", ".join(messages)


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Attach envelope‑rendering exception handlers to ``app``."""

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        detail = exc.error
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
            if not debug:
                detail = None
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, detail),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation Error", _format_validation_errors(exc)),
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal Server Error", str(exc) if debug else None),
        )
