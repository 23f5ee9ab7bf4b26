"""
Item repository - typed convenience layer over the search client.
Each method is one delegated call; local validation happens in the query
builder before anything reaches the cluster.
"""

from collections.abc import Iterable, Sequence

from itemsearch.schemas.item import Item
from itemsearch.schemas.search import ItemPage
from itemsearch.search.elasticsearch_client import SearchClient
from itemsearch.search.query import Query, SearchQuery, SortField, range_query

PRICE_FIELD = "price"


class ItemRepository:
    """Save, look up and query items in one index."""

    def __init__(self, client: SearchClient):
        self.client = client

    async def save(self, item: Item, refresh: bool = False) -> Item:
        await self.client.index(item, refresh=refresh)
        return item

    async def save_all(self, items: Iterable[Item], refresh: bool = False) -> int:
        """Bulk upsert. Raises PartialBulkFailureError after attempting every item."""
        return await self.client.bulk_index(items, refresh=refresh)

    async def find_by_id(self, item_id: int) -> Item | None:
        return await self.client.get(item_id)

    async def delete_by_id(self, item_id: int) -> bool:
        return await self.client.delete(item_id)

    async def count(self) -> int:
        return await self.client.count()

    async def find_all(self, sort: Sequence[SortField] = ()) -> list[Item]:
        """Every item, ordered by ``sort`` (index order when empty)."""
        return [item async for item in self.client.find_all_sorted(sort)]

    async def find_by_price_between(self, low: float, high: float) -> list[Item]:
        """Items with ``low <= price <= high``, cheapest first."""
        # Built before any request so an inverted range never reaches the cluster
        query = range_query(PRICE_FIELD, low, high)
        return [item async for item in self.client.scan(query, [SortField(PRICE_FIELD, "asc")])]

    async def search(self, search_query: SearchQuery | Query) -> ItemPage:
        return await self.client.search(search_query)
