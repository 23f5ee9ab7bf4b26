"""
Item service - use cases behind the HTTP layer.
Orchestrates repository, cache and queue; keeps endpoints thin.
"""

from collections.abc import Sequence

from itemsearch.cache.redis_client import ItemCache
from itemsearch.queue.tasks import bulk_index_items_task
from itemsearch.repositories.item_repository import ItemRepository
from itemsearch.schemas.item import Item
from itemsearch.schemas.search import ItemPage
from itemsearch.search.query import Query, SearchQuery, SortField


class ItemService:
    """Handles all item use cases: save, lookup, delete, search, background import."""

    def __init__(self, repo: ItemRepository, cache: ItemCache | None = None):
        self.repo = repo
        self.cache = cache

    async def get(self, item_id: int) -> Item | None:
        """Get item by id. Redis first, then the index."""
        if self.cache:
            cached = await self.cache.get(item_id)
            if cached:
                return cached
        item = await self.repo.find_by_id(item_id)
        if item and self.cache:
            await self.cache.set(item)
        return item

    async def save(self, item: Item) -> Item:
        saved = await self.repo.save(item)
        if self.cache:
            await self.cache.invalidate(item.id)
        return saved

    async def save_all(self, items: Sequence[Item]) -> int:
        """Bulk save. Cached copies are dropped even when part of the batch failed."""
        try:
            return await self.repo.save_all(items)
        finally:
            if self.cache:
                await self.cache.invalidate(*(item.id for item in items))

    def enqueue_import(self, items: Sequence[Item]) -> str:
        """Send items to the Celery bulk import. Returns the task id."""
        result = bulk_index_items_task.delay([item.to_document() for item in items])
        return result.id

    async def delete(self, item_id: int) -> bool:
        deleted = await self.repo.delete_by_id(item_id)
        if self.cache:
            await self.cache.invalidate(item_id)
        return deleted

    async def count(self) -> int:
        return await self.repo.count()

    async def list_sorted(self, sort: Sequence[SortField]) -> list[Item]:
        return await self.repo.find_all(sort)

    async def find_by_price_between(self, low: float, high: float) -> list[Item]:
        return await self.repo.find_by_price_between(low, high)

    async def search(self, search_query: SearchQuery | Query) -> ItemPage:
        return await self.repo.search(search_query)
