"""
Business logic for staff users.

The first account ever created becomes ``admin``.  Later accounts get
the plain ``user`` role unless an administrator creates them, in which
case the requested role is honoured.  Passwords are stored as PBKDF2
hashes (see ``core.security``) and never leave this module.
"""

import logging
import sqlite3
from typing import List, Optional

from ..core.config import Settings
from ..core.db import Database, new_id, utcnow_iso
from ..core.errors import Conflict, NotFound, Unauthorized
from ..core.security import (
    CurrentUser,
    UserRole,
    create_access_token,
    hash_password,
    verify_password,
)
from ..schemas.user import AuthResult, UserCreate, UserRead

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, email, name, role, created_at, updated_at"

DUPLICATE_MESSAGE = "User already exists with this email"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


def row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    def __init__(self, db: Database, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def create_user(self, data: UserCreate, creator: Optional[CurrentUser] = None) -> UserRead:
        """Create a staff account.

        Raises ``Conflict`` if the e‑mail is already taken.
        """
        user_id = new_id()
        now = utcnow_iso()
        with self.db.cursor() as cursor:
            if cursor.execute("SELECT id FROM users WHERE email = ?", (data.email,)).fetchone():
                raise Conflict(DUPLICATE_MESSAGE)
            is_first = cursor.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"] == 0
            if is_first:
                role = UserRole.ADMIN
            elif creator is not None and creator.role == UserRole.ADMIN and data.role is not None:
                role = data.role
            else:
                role = UserRole.USER
            try:
                cursor.execute(
                    "INSERT INTO users (id, email, name, password, role, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (user_id, data.email, data.name, hash_password(data.password), role.value, now, now),
                )
            except sqlite3.IntegrityError:
                raise Conflict(DUPLICATE_MESSAGE)
            row = cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        logger.info("Created user %s with role %s", data.email, role.value)
        return row_to_user(row)

    async def authenticate(self, email: str, password: str) -> UserRead:
        """Check credentials; raises ``Unauthorized`` on any mismatch."""
        with self.db.cursor() as cursor:
            row = cursor.execute(
                f"SELECT {USER_COLUMNS}, password FROM users WHERE email = ?", (email,)
            ).fetchone()
        if not row or not verify_password(password, row["password"]):
            logger.info("Failed login for %s", email)
            raise Unauthorized(INVALID_CREDENTIALS_MESSAGE)
        return row_to_user(row)

    async def get_user(self, user_id: str) -> UserRead:
        with self.db.cursor() as cursor:
            row = cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            raise NotFound("User not found")
        return row_to_user(row)

    async def list_users(self) -> List[UserRead]:
        with self.db.cursor() as cursor:
            rows = cursor.execute(
                f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at ASC, rowid ASC"
            ).fetchall()
        return [row_to_user(row) for row in rows]

    def issue_token(self, user: UserRead) -> AuthResult:
        token = create_access_token(
            {"sub": user.id, "email": user.email, "role": user.role.value},
            self.settings.secret_key,
            self.settings.access_token_expire_minutes * 60,
        )
        return AuthResult(user=user, token=token)
