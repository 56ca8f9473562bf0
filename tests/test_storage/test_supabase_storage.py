"""
Supabase 저장소 테스트 (클라이언트 Mock)
"""

from unittest.mock import MagicMock, patch

import pytest

from dropship_engine.storage.supabase_storage import SupabaseStorage, _column


@pytest.fixture
def client():
    client = MagicMock()
    query = MagicMock()
    # 체이닝 메서드는 같은 쿼리 객체 반환
    for method in ("select", "eq", "neq", "in_", "ilike", "gte", "lte", "order", "range", "limit"):
        getattr(query, method).return_value = query
    table = client.table.return_value
    table.select.return_value = query
    table.insert.return_value = query
    table.update.return_value = query
    table.delete.return_value = query
    client.query = query
    return client


@pytest.fixture
def storage(client):
    with patch(
        "dropship_engine.storage.supabase_storage.create_client", return_value=client
    ) as create_client:
        storage = SupabaseStorage(url="https://project.supabase.co", service_key="service-key")
        create_client.assert_called_once()
        yield storage


def test_column_json_path():
    assert _column("name") == "name"
    assert _column("contact.email") == "contact->>email"
    assert _column("a.b.c") == "a->b->>c"


@pytest.mark.asyncio
async def test_create_inserts_record(storage, client):
    client.query.execute.return_value = MagicMock(data=[{"id": "alpha", "name": "Alpha"}])

    result = await storage.create("suppliers", {"name": "Alpha"}, id="alpha")

    assert result == {"id": "alpha", "name": "Alpha"}
    client.table.assert_called_with("suppliers")
    record = client.table.return_value.insert.call_args[0][0]
    assert record["id"] == "alpha"
    assert "created_at" in record and "updated_at" in record


@pytest.mark.asyncio
async def test_create_without_result_raises(storage, client):
    client.query.execute.return_value = MagicMock(data=[])

    with pytest.raises(ValueError):
        await storage.create("suppliers", {"name": "Alpha"})


@pytest.mark.asyncio
async def test_list_applies_filters_order_and_range(storage, client):
    client.query.execute.return_value = MagicMock(data=[{"id": "alpha"}])

    documents = await storage.list(
        "suppliers",
        filters={
            "status": "active",
            "country__in": ("FR", "DE"),
            "name__icontains": "bio",
            "rating__gte": 3,
            "contact.email__ne": "x@y.z",
        },
        limit=10,
        offset=20,
        order_by=["-created_at"],
    )

    query = client.query
    assert documents == [{"id": "alpha"}]
    query.eq.assert_any_call("status", "active")
    query.in_.assert_called_once_with("country", ["FR", "DE"])
    query.ilike.assert_called_once_with("name", "%bio%")
    query.gte.assert_called_once_with("rating", 3)
    query.neq.assert_called_once_with("contact->>email", "x@y.z")
    query.order.assert_called_once_with("created_at", desc=True)
    query.range.assert_called_once_with(20, 29)


@pytest.mark.asyncio
async def test_get_returns_none_when_missing(storage, client):
    client.query.execute.return_value = MagicMock(data=[])

    assert await storage.get("suppliers", "missing") is None


@pytest.mark.asyncio
async def test_count_uses_exact_count(storage, client):
    client.query.execute.return_value = MagicMock(data=[], count=7)

    assert await storage.count("suppliers", {"status": "active"}) == 7
    client.table.return_value.select.assert_called_with("id", count="exact")


@pytest.mark.asyncio
async def test_update_strips_id(storage, client):
    client.query.execute.return_value = MagicMock(data=[{"id": "alpha", "rating": 4}])

    result = await storage.update("suppliers", "alpha", {"id": "other", "rating": 4})

    record = client.table.return_value.update.call_args[0][0]
    assert "id" not in record
    assert result["rating"] == 4


@pytest.mark.asyncio
async def test_ping_failure(storage, client):
    client.table.side_effect = RuntimeError("connection refused")

    assert await storage.ping() is False
