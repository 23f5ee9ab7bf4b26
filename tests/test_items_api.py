"""
Item API tests - save, bulk save, import, lookup, delete and sorted listing.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from elasticsearch import ConnectionError as ESConnectionError

PHONE = {"id": 1, "title": "Xiaomi 8", "category": "phone", "brand": "Xiaomi", "price": 2299.0, "image_url": "img13.360buyimg.com/12345.jpg"}


@pytest.mark.asyncio
async def test_save_item(client: AsyncClient, fake_index):
    response = await client.post("/api/v1/items", json=PHONE)
    assert response.status_code == 201
    assert response.json() == PHONE
    assert fake_index.docs["1"]["brand"] == "Xiaomi"


@pytest.mark.asyncio
async def test_save_item_validates_price(client: AsyncClient):
    response = await client.post("/api/v1/items", json={**PHONE, "price": -1})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_bulk_save(client: AsyncClient, phones):
    response = await client.post("/api/v1/items/bulk", json=[p.to_document() for p in phones])
    assert response.status_code == 200
    assert response.json() == {"indexed": 5, "failed": []}


@pytest.mark.asyncio
async def test_bulk_save_partial_failure(client: AsyncClient, phones):
    errors = [{"index": {"_id": "2", "status": 400, "error": {"type": "mapper_parsing_exception", "reason": "bad price"}}}]
    with patch("itemsearch.search.elasticsearch_client.async_bulk", new=AsyncMock(return_value=(4, errors))):
        response = await client.post("/api/v1/items/bulk", json=[p.to_document() for p in phones])
    assert response.status_code == 207
    assert response.json() == {"indexed": 4, "failed": [{"id": "2", "reason": "bad price"}]}


@pytest.mark.asyncio
async def test_import_is_queued(client: AsyncClient, phones):
    with patch("itemsearch.services.item_service.bulk_index_items_task") as task:
        task.delay.return_value = MagicMock(id="abc")
        response = await client.post("/api/v1/items/import", json=[p.to_document() for p in phones])
    assert response.status_code == 202
    assert response.json() == {"task_id": "abc", "submitted": 5}


@pytest.mark.asyncio
async def test_get_and_delete_item(client: AsyncClient):
    await client.post("/api/v1/items", json=PHONE)

    response = await client.get("/api/v1/items/1")
    assert response.status_code == 200
    assert response.json()["title"] == "Xiaomi 8"

    assert (await client.delete("/api/v1/items/1")).status_code == 204
    assert (await client.get("/api/v1/items/1")).status_code == 404
    assert (await client.delete("/api/v1/items/1")).status_code == 404


@pytest.mark.asyncio
async def test_list_items_sorted(client: AsyncClient, phones):
    await client.post("/api/v1/items/bulk", json=[p.to_document() for p in phones])
    response = await client.get("/api/v1/items", params={"sort": "price:desc"})
    assert response.status_code == 200
    assert [i["id"] for i in response.json()] == [4, 5, 3, 2, 1]


@pytest.mark.asyncio
async def test_list_items_bad_sort(client: AsyncClient):
    response = await client.get("/api/v1/items", params={"sort": "price:up"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_count(client: AsyncClient, phones):
    await client.post("/api/v1/items/bulk", json=[p.to_document() for p in phones])
    response = await client.get("/api/v1/items/count")
    assert response.json() == {"count": 5}


@pytest.mark.asyncio
async def test_elasticsearch_down_returns_503(client: AsyncClient, es):
    es.index = AsyncMock(side_effect=ESConnectionError("connection refused"))
    response = await client.post("/api/v1/items", json=PHONE)
    assert response.status_code == 503
    assert response.json()["error"] == "SearchUnavailableError"
