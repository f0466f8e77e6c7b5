"""
Security helpers for password hashing, JWT authentication and roles.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens carry the
user id (``sub``), ``email``, ``role`` and an expiration timestamp
(``exp``).  Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random
salt, stored as ``"salthex$hashhex"``.

Staff roles form a closed ``UserRole`` enum.  Route protection is
expressed with ``require_roles``::

    @router.get("/", dependencies=[Depends(require_roles(*STAFF_ROLES))])

The signing secret is read from the ``Settings`` instance stored on
``app.state`` so tests can run the application with their own key.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import Forbidden, NotFound, Unauthorized

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000


class UserRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


STAFF_ROLES = (UserRole.ADMIN, UserRole.MODERATOR)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated principal decoded from a bearer token."""

    id: str
    email: str
    role: UserRole


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], secret: str, expires_delta: int) -> str:
    """Create a signed HS256 JWT with the given claims.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": user_id}``).
    secret : str
        Signing key.
    expires_delta : int
        Lifetime of the token in seconds.

    Returns
    -------
    str
        Token of the form ``header.payload.signature``.
    """
    to_encode = dict(data)
    to_encode["exp"] = int(time.time()) + expires_delta
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Returns the payload if the signature is valid and the token has
    not expired, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    try:
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(_sign(signing_input, secret), actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    exp = data.get("exp")
    if not isinstance(exp, int) or exp < int(time.time()):
        return None
    return data


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256 and a 16‑byte salt."""
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string."""
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def parse_role(value: Any) -> Optional[UserRole]:
    """Map a stored or claimed role string onto ``UserRole``; unknown values give ``None``."""
    try:
        return UserRole(value)
    except ValueError:
        return None


security = HTTPBearer(auto_error=False)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[CurrentUser]:
    """Resolve the bearer token if one was sent, else return ``None``.

    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    settings = request.app.state.settings
    payload = decode_access_token(credentials.credentials, settings.secret_key)
    if not payload or not payload.get("sub"):
        raise Unauthorized("Invalid or expired token.")
    # The account may have been deleted or its role changed since the
    # token was issued, so the stored record wins over the claims.
    try:
        user = await request.app.state.users.get_user(str(payload["sub"]))
    except NotFound:
        raise Unauthorized("User not found. Token is invalid.")
    role = parse_role(user.role)
    if role is None:
        raise Unauthorized("Invalid or expired token.")
    return CurrentUser(id=user.id, email=user.email, role=role)


async def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    """Dependency that requires an authenticated user."""
    if user is None:
        raise Unauthorized("Authentication required. Please provide a token.")
    return user


def require_roles(*roles: UserRole) -> Callable[..., CurrentUser]:
    """Dependency factory enforcing that the current user has one of ``roles``."""
    allowed = frozenset(roles)

    async def _role_dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            logger.info("User %s (%s) denied access", current_user.id, current_user.role.value)
            raise Forbidden()
        return current_user

    return _role_dependency
