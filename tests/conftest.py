"""
Pytest fixtures - fake index, search client, repository and API client.
No cluster needed: Elasticsearch calls go to an in-memory FakeIndex.
"""

from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fake_elasticsearch import FakeIndex
from itemsearch.core.dependencies import get_item_cache, get_search_client
from itemsearch.main import app
from itemsearch.repositories.item_repository import ItemRepository
from itemsearch.schemas.item import Item
from itemsearch.search.elasticsearch_client import SearchClient

PHONES = [
    Item(id=1, title="Xiaomi 8", category="phone", brand="Xiaomi", price=2299.0, image_url="img13.360buyimg.com/12345.jpg"),
    Item(id=2, title="Honor V10", category="phone", brand="Huawei", price=2799.0, image_url="img13.360buyimg.com/111.jpg"),
    Item(id=3, title="Smartisan R1", category="phone", brand="Smartisan", price=3699.0, image_url="img13.360buyimg.com/222.jpg"),
    Item(id=4, title="Huawei Mate 10", category="phone", brand="Huawei", price=4499.0, image_url="img13.360buyimg.com/333.jpg"),
    Item(id=5, title="Xiaomi Mix2S", category="phone", brand="Xiaomi", price=4299.0, image_url="img13.360buyimg.com/444.jpg"),
]


@pytest.fixture
def phones() -> list[Item]:
    return list(PHONES)


@pytest.fixture
def fake_index() -> FakeIndex:
    index = FakeIndex()
    with patch("itemsearch.search.elasticsearch_client.async_bulk", new=index.bulk), patch(
        "itemsearch.search.elasticsearch_client.async_scan", new=index.scan
    ):
        yield index


@pytest.fixture
def es(fake_index: FakeIndex):
    return fake_index.client()


@pytest.fixture
def search_client(es) -> SearchClient:
    return SearchClient(index="items", es=es)


@pytest.fixture
def repo(search_client: SearchClient) -> ItemRepository:
    return ItemRepository(search_client)


@pytest_asyncio.fixture
async def seeded_repo(repo: ItemRepository, phones: list[Item]) -> ItemRepository:
    await repo.save_all(phones)
    return repo


@pytest_asyncio.fixture
async def client(search_client: SearchClient):
    app.dependency_overrides[get_search_client] = lambda: search_client
    app.dependency_overrides[get_item_cache] = lambda: None
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
