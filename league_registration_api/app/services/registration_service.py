"""
Business logic for league registrations.

A registration is unique per (email, league type): the same player may
sign up for several leagues but only once for each.  The service checks
this before inserting and the unique index
``ux_registrations_email_league`` backs it up when two signups race.
"""

import json
import logging
import math
import sqlite3
from typing import Dict, List, Optional, Tuple

from pydantic.alias_generators import to_camel

from ..core.db import Database, new_id, utcnow_iso
from ..core.errors import BadRequest, Conflict, NotFound, ValidationFailed
from ..schemas.common import Pagination
from ..schemas.registration import RegistrationCreate, RegistrationRead, RegistrationStatus

logger = logging.getLogger(__name__)

REGISTRATION_COLUMNS = (
    "id, league_type, name, age, mobile, email, district, state, role, "
    "profile_image, documents, status, registered_at, created_at, updated_at"
)

DUPLICATE_MESSAGE = "This email has already been registered for this league"
NOT_FOUND_MESSAGE = "Registration not found"
INVALID_STATUS_MESSAGE = "Invalid status. Must be pending, approved, or rejected"


def _sortable_fields() -> Dict[str, str]:
    """Map both snake_case and camelCase field names to their column."""
    fields: Dict[str, str] = {}
    for name in RegistrationRead.model_fields:
        if name == "documents":
            continue
        fields[name] = name
        fields[to_camel(name)] = name
    return fields


SORTABLE_FIELDS = _sortable_fields()


def row_to_registration(row: sqlite3.Row) -> RegistrationRead:
    return RegistrationRead(
        id=row["id"],
        league_type=row["league_type"],
        name=row["name"],
        age=row["age"],
        mobile=row["mobile"],
        email=row["email"],
        district=row["district"],
        state=row["state"],
        role=row["role"],
        profile_image=row["profile_image"],
        documents=json.loads(row["documents"]) if row["documents"] else [],
        status=row["status"],
        registered_at=row["registered_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class RegistrationService:
    """Create, query and moderate league registrations."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_registration(self, data: RegistrationCreate) -> RegistrationRead:
        """Persist a new registration with status ``pending``.

        Raises ``Conflict`` if the e‑mail is already registered for the
        same league type; the existing record is left untouched.
        """
        with self.db.cursor() as cursor:
            existing = cursor.execute(
                "SELECT id FROM registrations WHERE email = ? AND league_type = ?",
                (data.email, data.league_type),
            ).fetchone()
            if existing:
                logger.info("Duplicate registration for %s in %s", data.email, data.league_type)
                raise Conflict(DUPLICATE_MESSAGE)

            registration_id = new_id()
            now = utcnow_iso()
            try:
                cursor.execute(
                    f"INSERT INTO registrations ({REGISTRATION_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        registration_id,
                        data.league_type,
                        data.name,
                        data.age,
                        data.mobile,
                        data.email,
                        data.district,
                        data.state,
                        data.role.value,
                        data.profile_image,
                        json.dumps(data.documents),
                        RegistrationStatus.PENDING.value,
                        now,
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError:
                raise Conflict(DUPLICATE_MESSAGE)
            row = cursor.execute(
                f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE id = ?",
                (registration_id,),
            ).fetchone()
        logger.info("Registered %s for league %s (%s)", data.email, data.league_type, registration_id)
        return row_to_registration(row)

    async def list_registrations(
        self,
        page: int = 1,
        limit: int = 10,
        sort: str = "registeredAt",
        order: str = "desc",
        status: Optional[str] = None,
        league_type: Optional[str] = None,
    ) -> Tuple[List[RegistrationRead], Pagination]:
        """Return one page of registrations plus pagination metadata.

        - ``sort`` accepts any registration field in either naming style.
        - ``order`` is ``asc`` or ``desc``.
        - ``status`` and ``league_type`` filter the result set.
        """
        column = SORTABLE_FIELDS.get(sort)
        if column is None:
            raise ValidationFailed(error=f"sort: unknown field '{sort}'")
        direction = order.lower()
        if direction not in {"asc", "desc"}:
            raise ValidationFailed(error="order: must be 'asc' or 'desc'")

        where_clauses: List[str] = []
        params: list = []
        if status is not None:
            if status not in {s.value for s in RegistrationStatus}:
                raise BadRequest(INVALID_STATUS_MESSAGE)
            where_clauses.append("status = ?")
            params.append(status)
        if league_type:
            where_clauses.append("league_type = ?")
            params.append(league_type)
        where = f" WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        with self.db.cursor() as cursor:
            total = cursor.execute(
                f"SELECT COUNT(*) AS count FROM registrations{where}", tuple(params)
            ).fetchone()["count"]
            # rowid keeps the order stable between records sharing a sort value.
            rows = cursor.execute(
                f"SELECT {REGISTRATION_COLUMNS} FROM registrations{where} "
                f"ORDER BY {column} {direction.upper()}, rowid {direction.upper()} "
                "LIMIT ? OFFSET ?",
                tuple(params) + (limit, (page - 1) * limit),
            ).fetchall()

        pagination = Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        )
        return [row_to_registration(row) for row in rows], pagination

    async def get_registration(self, registration_id: str) -> RegistrationRead:
        with self.db.cursor() as cursor:
            row = cursor.execute(
                f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE id = ?",
                (registration_id,),
            ).fetchone()
        if not row:
            raise NotFound(NOT_FOUND_MESSAGE)
        return row_to_registration(row)

    async def update_status(self, registration_id: str, status: str) -> RegistrationRead:
        """Set the moderation status; ``status`` must be pending, approved or rejected."""
        if status not in {s.value for s in RegistrationStatus}:
            raise BadRequest(INVALID_STATUS_MESSAGE)
        with self.db.cursor() as cursor:
            cursor.execute(
                "UPDATE registrations SET status = ?, updated_at = ? WHERE id = ?",
                (status, utcnow_iso(), registration_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(NOT_FOUND_MESSAGE)
            row = cursor.execute(
                f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE id = ?",
                (registration_id,),
            ).fetchone()
        logger.info("Registration %s status set to %s", registration_id, status)
        return row_to_registration(row)

    async def delete_registration(self, registration_id: str) -> None:
        """Hard‑delete a registration.  Its payments are kept as history."""
        with self.db.cursor() as cursor:
            cursor.execute("DELETE FROM registrations WHERE id = ?", (registration_id,))
            if cursor.rowcount == 0:
                raise NotFound(NOT_FOUND_MESSAGE)
        logger.info("Registration %s deleted", registration_id)

    async def list_unpaid(self) -> List[RegistrationRead]:
        """Registrations without a completed payment, oldest first."""
        with self.db.cursor() as cursor:
            rows = cursor.execute(
                f"SELECT {REGISTRATION_COLUMNS} FROM registrations r "
                "WHERE NOT EXISTS ("
                "  SELECT 1 FROM payments p "
                "  WHERE p.registration_id = r.id AND p.status = 'completed'"
                ") ORDER BY registered_at ASC, rowid ASC"
            ).fetchall()
        return [row_to_registration(row) for row in rows]
