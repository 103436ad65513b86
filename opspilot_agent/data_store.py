"""Data Store persistence layer.

Supports two backends:
    - InMemoryDataStore: ephemeral, for dev/testing
    - SupabaseDataStore: persistent, for production (uses PostgREST API)

Usage:
    store = create_data_store(supabase_url, supabase_service_key)
    # Automatically picks SupabaseDataStore if credentials are present,
    # otherwise falls back to InMemoryDataStore.

Filters are plain dicts mapping a column to a value. A list/tuple/set value
matches any of its members (PostgREST ``in``), ``None`` matches NULL,
anything else is an equality match. Ordering uses PostgREST syntax,
e.g. ``"created_at.desc"``.

All backends share one connection per process; analysis units run
sequentially against it (see orchestrator.py).
"""

from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import httpx

from .errors import StorageError

logger = logging.getLogger("opspilot.data_store")

Record = dict[str, Any]

VENDORS = "vendors"
ESG_SCORES = "esg_scores"
SHIPMENTS = "shipments"
INVOICES = "invoices"
INVOICE_DISCREPANCIES = "invoice_discrepancies"
VENDOR_RISKS = "vendor_risks"
ESG_RISKS = "esg_risks"
AGENT_ACTIONS = "agent_actions"

TABLES = (
    VENDORS,
    ESG_SCORES,
    SHIPMENTS,
    INVOICES,
    INVOICE_DISCREPANCIES,
    VENDOR_RISKS,
    ESG_RISKS,
    AGENT_ACTIONS,
)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class DataStore(ABC):
    """Abstract Data Store interface."""

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """Return matching records."""
        ...

    @abstractmethod
    async def insert(self, table: str, records: Record | list[Record]) -> list[Record]:
        """Insert one or many records. Returns the inserted rows."""
        ...

    @abstractmethod
    async def upsert(self, table: str, records: Record | list[Record]) -> list[Record]:
        """Insert records, replacing any existing row with the same ``id``."""
        ...

    @abstractmethod
    async def update(
        self, table: str, filters: dict[str, Any], patch: Record
    ) -> list[Record]:
        """Apply ``patch`` to matching records. Returns the updated rows."""
        ...

    async def close(self) -> None:
        """Release connections. No-op by default."""


# ---------------------------------------------------------------------------
# In-memory implementation (dev/testing)
# ---------------------------------------------------------------------------


def _matches(record: Record, filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    for column, expected in filters.items():
        actual = record.get(column)
        if isinstance(expected, (list, tuple, set)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def _parse_order(order: str) -> tuple[str, bool]:
    column, _, direction = order.partition(".")
    return column, direction == "desc"


def _sort_key(value: Any) -> Any:
    # Rows stamped by the store hold ISO strings; callers may pass datetimes.
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat()
    return value


class InMemoryDataStore(DataStore):
    """Ephemeral in-memory store. Tables are created on first write."""

    def __init__(self, seed: dict[str, list[Record]] | None = None) -> None:
        self._tables: dict[str, list[Record]] = {}
        for table, rows in (seed or {}).items():
            self._tables[table] = [self._stamp(dict(row)) for row in rows]

    @staticmethod
    def _stamp(row: Record) -> Record:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(UTC).isoformat())
        return row

    def rows(self, table: str) -> list[Record]:
        """Direct view of a table, for tests and the CLI."""
        return self._tables.get(table, [])

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        rows = [r for r in self._tables.get(table, []) if _matches(r, filters)]
        if order:
            column, descending = _parse_order(order)
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: _sort_key(r[column]), reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, table: str, records: Record | list[Record]) -> list[Record]:
        batch = [records] if isinstance(records, dict) else list(records)
        inserted = [self._stamp(dict(r)) for r in batch]
        self._tables.setdefault(table, []).extend(inserted)
        logger.debug("InMemoryDataStore: inserted %d row(s) into %s", len(inserted), table)
        return copy.deepcopy(inserted)

    async def upsert(self, table: str, records: Record | list[Record]) -> list[Record]:
        batch = [records] if isinstance(records, dict) else list(records)
        rows = self._tables.setdefault(table, [])
        written = []
        for record in batch:
            row = self._stamp(dict(record))
            for i, existing in enumerate(rows):
                if existing.get("id") == row["id"]:
                    rows[i] = row
                    break
            else:
                rows.append(row)
            written.append(row)
        return copy.deepcopy(written)

    async def update(
        self, table: str, filters: dict[str, Any], patch: Record
    ) -> list[Record]:
        updated = []
        for row in self._tables.get(table, []):
            if _matches(row, filters):
                row.update(patch)
                updated.append(row)
        return copy.deepcopy(updated)


# ---------------------------------------------------------------------------
# Supabase implementation (production)
# ---------------------------------------------------------------------------


def _postgrest_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    if isinstance(value, (list, tuple, set)):
        members = ",".join(f'"{v}"' for v in value)
        return f"in.({members})"
    return f"eq.{value}"


def _postgrest_params(filters: dict[str, Any] | None) -> dict[str, str]:
    return {col: _postgrest_value(val) for col, val in (filters or {}).items()}


class SupabaseDataStore(DataStore):
    """Persistent store using the Supabase PostgREST API.

    Uses the service role key for server-side access (bypasses RLS).
    A single AsyncClient is shared by every caller for the process lifetime.
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        self._client = client or httpx.AsyncClient(timeout=timeout)
        logger.info("SupabaseDataStore: initialized with %s", url)

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[Record]:
        url = f"{self._base_url}/{table}"
        headers = self._headers
        if prefer:
            headers = {**headers, "Prefer": f"{headers['Prefer']},{prefer}"}
        try:
            resp = await self._client.request(
                method, url, headers=headers, params=params, json=json
            )
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {table} failed: {e}") from e

        if resp.status_code not in (200, 201, 204):
            raise StorageError(
                f"{method} {table} failed ({resp.status_code}): {resp.text}"
            )
        if resp.status_code == 204 or not resp.content:
            return []
        return resp.json()

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        params = {"select": "*", **_postgrest_params(filters)}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, records: Record | list[Record]) -> list[Record]:
        return await self._request("POST", table, json=records)

    async def upsert(self, table: str, records: Record | list[Record]) -> list[Record]:
        return await self._request(
            "POST", table, json=records, prefer="resolution=merge-duplicates"
        )

    async def update(
        self, table: str, filters: dict[str, Any], patch: Record
    ) -> list[Record]:
        if not filters:
            raise StorageError(f"Refusing unfiltered update on {table}")
        return await self._request(
            "PATCH", table, params=_postgrest_params(filters), json=patch
        )

    async def close(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_data_store(
    supabase_url: str = "",
    supabase_service_key: str = "",
    *,
    timeout: float = 10.0,
) -> DataStore:
    """Create a Data Store.

    Returns SupabaseDataStore if credentials are provided, InMemoryDataStore otherwise.
    """
    if supabase_url and supabase_service_key:
        return SupabaseDataStore(supabase_url, supabase_service_key, timeout=timeout)

    logger.info("Using in-memory data store (non-persistent)")
    return InMemoryDataStore()
