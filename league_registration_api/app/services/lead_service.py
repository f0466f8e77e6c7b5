"""Contact‑form leads."""

import logging
from typing import List

from ..core.db import Database, new_id, utcnow_iso
from ..schemas.lead import LeadCreate, LeadRead

logger = logging.getLogger(__name__)


class LeadService:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_lead(self, data: LeadCreate) -> LeadRead:
        lead = LeadRead(id=new_id(), created_at=utcnow_iso(), **data.model_dump())
        with self.db.cursor() as cursor:
            cursor.execute(
                "INSERT INTO leads (id, name, email, message, created_at) VALUES (?, ?, ?, ?, ?)",
                (lead.id, lead.name, lead.email, lead.message, lead.created_at),
            )
        logger.info("New lead from %s", lead.email)
        return lead

    async def list_leads(self) -> List[LeadRead]:
        """All leads, newest first."""
        with self.db.cursor() as cursor:
            rows = cursor.execute(
                "SELECT id, name, email, message, created_at FROM leads "
                "ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [LeadRead(**dict(row)) for row in rows]
