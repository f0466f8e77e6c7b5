"""Result of a payment‑reminder batch."""

from pydantic import BaseModel


class ReminderBatchResult(BaseModel):
    sent: int = 0
    failed: int = 0
    total: int = 0
