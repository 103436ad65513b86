"""Tests for the Data Store backends.

InMemoryDataStore is exercised directly; SupabaseDataStore runs against an
httpx.MockTransport that records the PostgREST requests it receives.
"""

import json
from datetime import UTC, datetime

import httpx
import pytest
from opspilot_agent.data_store import (
    INVOICES,
    SHIPMENTS,
    VENDORS,
    InMemoryDataStore,
    SupabaseDataStore,
    create_data_store,
)
from opspilot_agent.errors import StorageError

# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class TestInMemoryDataStore:
    @pytest.mark.asyncio
    async def test_insert_stamps_id_and_created_at(self, store):
        (row,) = await store.insert(VENDORS, {"name": "Acme"})

        assert row["name"] == "Acme"
        assert row["id"]
        assert row["created_at"]

    @pytest.mark.asyncio
    async def test_insert_keeps_given_id(self, store):
        (row,) = await store.insert(VENDORS, {"id": "v-1", "name": "Acme"})
        assert row["id"] == "v-1"

    @pytest.mark.asyncio
    async def test_bulk_insert(self, store):
        rows = await store.insert(VENDORS, [{"name": "A"}, {"name": "B"}])

        assert len(rows) == 2
        assert len(store.rows(VENDORS)) == 2

    @pytest.mark.asyncio
    async def test_select_unknown_table_is_empty(self, store):
        assert await store.select("nope") == []

    @pytest.mark.asyncio
    async def test_equality_and_in_filters(self):
        store = InMemoryDataStore(
            {
                SHIPMENTS: [
                    {"id": "1", "status": "pending"},
                    {"id": "2", "status": "in-transit"},
                    {"id": "3", "status": "delivered"},
                ]
            }
        )

        active = await store.select(SHIPMENTS, {"status": ["pending", "in-transit"]})
        delivered = await store.select(SHIPMENTS, {"status": "delivered"})

        assert [r["id"] for r in active] == ["1", "2"]
        assert [r["id"] for r in delivered] == ["3"]

    @pytest.mark.asyncio
    async def test_order_and_limit(self):
        store = InMemoryDataStore(
            {VENDORS: [{"id": "a", "score": 70}, {"id": "b", "score": None}, {"id": "c", "score": 90}]}
        )

        desc = await store.select(VENDORS, order="score.desc")
        asc = await store.select(VENDORS, order="score.asc", limit=2)

        assert [r["id"] for r in desc] == ["c", "a", "b"]
        assert [r["id"] for r in asc] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_order_mixes_datetimes_and_stamped_strings(self, store):
        await store.insert(INVOICES, {"id": "old", "created_at": datetime(2024, 1, 1, tzinfo=UTC)})
        await store.insert(INVOICES, {"id": "new"})
        await store.insert(INVOICES, {"id": "naive", "created_at": datetime(2024, 6, 1)})

        rows = await store.select(INVOICES, order="created_at.desc")

        assert [r["id"] for r in rows] == ["new", "naive", "old"]

    @pytest.mark.asyncio
    async def test_upsert_replaces_by_id(self, store):
        await store.insert(VENDORS, {"id": "a", "score": 70})

        written = await store.upsert(VENDORS, [{"id": "a", "score": 75}, {"id": "b", "score": 90}])

        assert [r["id"] for r in written] == ["a", "b"]
        assert [(r["id"], r["score"]) for r in store.rows(VENDORS)] == [("a", 75), ("b", 90)]

    @pytest.mark.asyncio
    async def test_select_returns_copies(self, store):
        await store.insert(VENDORS, {"id": "a", "score": 70})

        (row,) = await store.select(VENDORS)
        row["score"] = 0

        assert store.rows(VENDORS)[0]["score"] == 70

    @pytest.mark.asyncio
    async def test_update(self, store):
        await store.insert(SHIPMENTS, [{"id": "1", "status": "pending"}, {"id": "2", "status": "pending"}])

        updated = await store.update(SHIPMENTS, {"id": "1"}, {"status": "in-transit"})

        assert [r["id"] for r in updated] == ["1"]
        assert [r["status"] for r in store.rows(SHIPMENTS)] == ["in-transit", "pending"]


# ---------------------------------------------------------------------------
# Supabase (PostgREST)
# ---------------------------------------------------------------------------


@pytest.fixture
def requests():
    return []


def _supabase(requests, status_code=200, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=body if body is not None else [])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseDataStore("https://proj.supabase.co/", "service-key", client=client)


class TestSupabaseDataStore:
    @pytest.mark.asyncio
    async def test_select_builds_postgrest_query(self, requests):
        store = _supabase(requests, body=[{"id": "1"}])

        rows = await store.select(
            SHIPMENTS,
            {"status": ["pending", "customs"], "carrier": None, "customs_hold": True},
            order="created_at.desc",
            limit=50,
        )

        assert rows == [{"id": "1"}]
        (req,) = requests
        assert req.method == "GET"
        assert req.url.path == "/rest/v1/shipments"
        params = req.url.params
        assert params["select"] == "*"
        assert params["status"] == 'in.("pending","customs")'
        assert params["carrier"] == "is.null"
        assert params["customs_hold"] == "eq.true"
        assert params["order"] == "created_at.desc"
        assert params["limit"] == "50"
        assert req.headers["apikey"] == "service-key"
        assert req.headers["authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_insert_posts_json(self, requests):
        store = _supabase(requests, status_code=201, body=[{"id": "x", "name": "Acme"}])

        rows = await store.insert(VENDORS, {"name": "Acme"})

        assert rows == [{"id": "x", "name": "Acme"}]
        (req,) = requests
        assert req.method == "POST"
        assert json.loads(req.content) == {"name": "Acme"}
        assert req.headers["prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_upsert_merges_duplicates(self, requests):
        store = _supabase(requests, status_code=201, body=[{"id": "a"}])

        await store.upsert(VENDORS, [{"id": "a", "name": "Acme"}])

        (req,) = requests
        assert req.method == "POST"
        assert req.headers["prefer"] == "return=representation,resolution=merge-duplicates"

    @pytest.mark.asyncio
    async def test_update_patches_with_filter(self, requests):
        store = _supabase(requests, body=[{"id": "1", "status": "delivered"}])

        await store.update(SHIPMENTS, {"id": "1"}, {"status": "delivered"})

        (req,) = requests
        assert req.method == "PATCH"
        assert req.url.params["id"] == "eq.1"
        assert json.loads(req.content) == {"status": "delivered"}

    @pytest.mark.asyncio
    async def test_unfiltered_update_refused(self, requests):
        store = _supabase(requests)

        with pytest.raises(StorageError):
            await store.update(SHIPMENTS, {}, {"status": "delivered"})
        assert requests == []

    @pytest.mark.asyncio
    async def test_http_error_status_raises_storage_error(self, requests):
        store = _supabase(requests, status_code=500, body={"message": "boom"})

        with pytest.raises(StorageError, match="500"):
            await store.select(VENDORS)

    @pytest.mark.asyncio
    async def test_transport_error_raises_storage_error(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = SupabaseDataStore("https://proj.supabase.co", "k", client=client)

        with pytest.raises(StorageError, match="refused"):
            await store.select(VENDORS)

    @pytest.mark.asyncio
    async def test_empty_response(self):
        def handler(request):
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        store = SupabaseDataStore("https://proj.supabase.co", "k", client=client)

        assert await store.insert(VENDORS, {"name": "A"}) == []
        await store.close()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateDataStore:
    def test_in_memory_without_credentials(self):
        assert isinstance(create_data_store("", ""), InMemoryDataStore)
        assert isinstance(create_data_store("https://x.supabase.co", ""), InMemoryDataStore)

    @pytest.mark.asyncio
    async def test_supabase_with_credentials(self):
        store = create_data_store("https://x.supabase.co", "key")
        assert isinstance(store, SupabaseDataStore)
        await store.close()
