"""Audit Log Writer.

Appends one record per execution attempt to the agent_actions table.
Audit logging is strictly best-effort: a failed write is logged and
swallowed so it can never change a unit's reported outcome or stop a
batch from moving on to the next unit.

Table schema (create via Supabase SQL editor):

    CREATE TABLE IF NOT EXISTS agent_actions (
        id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        agent       TEXT NOT NULL,
        action      TEXT NOT NULL,
        status      TEXT NOT NULL CHECK (status IN ('success', 'degraded', 'failed')),
        entity_type TEXT,
        metadata    JSONB,
        created_at  TIMESTAMPTZ DEFAULT NOW()
    );
"""

from __future__ import annotations

import logging

from .data_store import AGENT_ACTIONS, DataStore, Record
from .errors import AuditWriteError
from .models import AuditRecord

logger = logging.getLogger("opspilot.audit")


class AuditLogWriter:
    """Best-effort writer for the append-only audit table."""

    def __init__(self, store: DataStore, table: str = AGENT_ACTIONS) -> None:
        self.store = store
        self.table = table

    async def _persist(self, record: AuditRecord) -> None:
        try:
            await self.store.insert(self.table, record.to_row())
        except Exception as e:
            raise AuditWriteError(
                f"Failed to write audit record for {record.agent}: {e}"
            ) from e

    async def append(self, record: AuditRecord) -> bool:
        """Persist ``record``. Returns False (and logs) when the write fails."""
        try:
            await self._persist(record)
        except AuditWriteError as e:
            logger.warning("%s (status=%s)", e, record.status.value)
            return False
        return True

    async def recent(self, limit: int = 10) -> list[Record]:
        """Newest audit rows first, for the activity feed."""
        return await self.store.select(
            self.table, order="created_at.desc", limit=limit
        )
