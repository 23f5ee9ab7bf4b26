"""
Elasticsearch search client - the only place that talks to the cluster.
Built explicitly from an endpoint and an index name; translates client
exceptions into the search error hierarchy and never retries.
"""

import logging
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse

from elasticsearch import (
    ApiError,
    AsyncElasticsearch,
    BadRequestError,
    NotFoundError,
    TransportError,
)
from elasticsearch.helpers import async_bulk, async_scan

from itemsearch.config import Settings
from itemsearch.core.exceptions import (
    PartialBulkFailureError,
    QuerySyntaxError,
    SearchUnavailableError,
)
from itemsearch.schemas.item import Item
from itemsearch.schemas.search import ItemPage
from itemsearch.search.query import MatchAllQuery, Query, SearchQuery, SortField

logger = logging.getLogger(__name__)


def items_index_mappings() -> dict:
    """Mapping for the items index: keyword fields for exact match and buckets, text for title."""
    return {
        "properties": {
            "id": {"type": "long"},
            "title": {"type": "text", "analyzer": "standard"},
            "category": {"type": "keyword"},
            "brand": {"type": "keyword"},
            "price": {"type": "double"},
            "image_url": {"type": "keyword", "index": False},
        }
    }


def es_client_options(url: str, verify_certs: bool = True, request_timeout: float = 30.0) -> dict:
    """Build Elasticsearch client options (supports HTTPS + basic auth in URL)."""
    opts: dict[str, Any] = {"verify_certs": verify_certs, "request_timeout": request_timeout}
    parsed = urlparse(url)
    if parsed.username and parsed.password:
        opts["basic_auth"] = (parsed.username, parsed.password)
        # Strip credentials from the host; the client sends them separately
        netloc = parsed.hostname or ""
        if parsed.port:
            netloc += f":{parsed.port}"
        url = f"{parsed.scheme}://{netloc}"
    opts["hosts"] = [url]
    return opts


@asynccontextmanager
async def translate_errors(operation: str):
    """Map elasticsearch-py exceptions onto SearchUnavailableError / QuerySyntaxError."""
    try:
        yield
    except BadRequestError as e:
        logger.warning("%s rejected by Elasticsearch: %s", operation, e)
        raise QuerySyntaxError(f"{operation}: {e}") from e
    except ApiError as e:
        logger.warning("%s failed with status %s: %s", operation, e.meta.status, e)
        if e.meta.status >= 500:
            raise SearchUnavailableError(f"{operation}: {e}") from e
        raise QuerySyntaxError(f"{operation}: {e}") from e
    except TransportError as e:
        # ConnectionError and ConnectionTimeout are TransportError subclasses
        logger.warning("%s: Elasticsearch unreachable: %s", operation, e)
        raise SearchUnavailableError(f"{operation}: {e}") from e


class SearchClient:
    """Async request/response access to one Elasticsearch index of items."""

    def __init__(
        self,
        url: str = "http://localhost:9200",
        index: str = "items",
        *,
        verify_certs: bool = True,
        request_timeout: float = 30.0,
        es: AsyncElasticsearch | None = None,
    ):
        self.index_name = index
        self.es = es or AsyncElasticsearch(**es_client_options(url, verify_certs, request_timeout))

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchClient":
        return cls(
            settings.elasticsearch_url,
            settings.items_index,
            verify_certs=settings.elasticsearch_verify_certs,
            request_timeout=settings.elasticsearch_request_timeout,
        )

    async def close(self) -> None:
        await self.es.close()

    async def ping(self) -> bool:
        try:
            return bool(await self.es.ping())
        except TransportError as e:
            logger.warning("ping failed: %s", e)
            return False

    async def ensure_index(self) -> None:
        """Create the items index with mapping if it does not exist. Single-node: 0 replicas."""
        async with translate_errors("ensure_index"):
            if not await self.es.indices.exists(index=self.index_name):
                await self.es.indices.create(
                    index=self.index_name,
                    settings={"index": {"number_of_replicas": 0}},
                    mappings=items_index_mappings(),
                )
                logger.info("created index %r", self.index_name)

    async def index(self, item: Item, refresh: bool = False) -> None:
        """Upsert one item; saving the same id again overwrites it."""
        async with translate_errors("index"):
            await self.es.index(
                index=self.index_name,
                id=item.document_id,
                document=item.to_document(),
                refresh=refresh,
            )
        logger.debug("indexed item id=%s into %r", item.id, self.index_name)

    async def bulk_index(self, items: Iterable[Item], refresh: bool = False) -> int:
        """Upsert many items. Every item is attempted; failures are reported together at the end."""
        actions = [
            {"_index": self.index_name, "_id": item.document_id, "_source": item.to_document()}
            for item in items
        ]
        if not actions:
            return 0
        async with translate_errors("bulk_index"):
            indexed, errors = await async_bulk(
                self.es,
                actions,
                raise_on_error=False,
                refresh=refresh,
            )
        if errors:
            failures = [_bulk_failure(error) for error in errors]
            logger.warning(
                "bulk_index into %r: %d indexed, %d failed", self.index_name, indexed, len(failures)
            )
            raise PartialBulkFailureError(indexed, failures)
        logger.info("bulk_index into %r: %d indexed", self.index_name, indexed)
        return indexed

    async def get(self, item_id: int) -> Item | None:
        async with translate_errors("get"):
            try:
                response = await self.es.get(index=self.index_name, id=str(item_id))
            except NotFoundError:
                return None
        body = getattr(response, "body", response)
        return Item.model_validate(body["_source"])

    async def delete(self, item_id: int, refresh: bool = False) -> bool:
        """Remove one item; False when there was nothing to delete."""
        async with translate_errors("delete"):
            try:
                await self.es.delete(index=self.index_name, id=str(item_id), refresh=refresh)
            except NotFoundError:
                return False
        logger.debug("deleted item id=%s from %r", item_id, self.index_name)
        return True

    async def count(self, query: Query | None = None) -> int:
        query = query if query is not None else MatchAllQuery()
        async with translate_errors("count"):
            response = await self.es.count(index=self.index_name, query=query.to_dict())
        body = getattr(response, "body", response)
        return body["count"]

    async def search(self, search_query: SearchQuery | Query) -> ItemPage:
        """Run one search and return the requested page plus parsed aggregations.

        A bare query is searched with the default page and no sort.
        """
        if not isinstance(search_query, SearchQuery):
            search_query = SearchQuery(query=search_query)
        request = search_query.to_search_kwargs()
        logger.debug("search %r: %s", self.index_name, request)
        async with translate_errors("search"):
            # Explicit kwargs for the ES 8 client rather than a raw body
            response = await self.es.search(index=self.index_name, **request)
        # Response may be ObjectApiResponse; support both .body and dict access
        body = getattr(response, "body", response)
        hits = body["hits"]["hits"]
        total = body["hits"].get("total")
        total_val = total.get("value", len(hits)) if isinstance(total, dict) else len(hits)
        items = [Item.model_validate(hit["_source"]) for hit in hits if "_source" in hit]
        return ItemPage.build(
            items=items,
            total_elements=total_val,
            number=search_query.page.number,
            size=search_query.page.size,
            aggregations=search_query.parse_aggregations(body.get("aggregations")),
        )

    async def scan(self, query: Query | None = None, sort: Sequence[SortField] = ()) -> AsyncIterator[Item]:
        """Iterate every matching item through a scroll snapshot.

        Each call opens a new scroll, so iterating again reflects the index as
        of that moment rather than continuing an old cursor.
        """
        query = query if query is not None else MatchAllQuery()
        request: dict[str, Any] = {"query": query.to_dict()}
        if sort:
            request["sort"] = [s.to_dict() for s in sort]
        async with translate_errors("scan"):
            async for hit in async_scan(
                self.es,
                query=request,
                index=self.index_name,
                preserve_order=bool(sort),
            ):
                yield Item.model_validate(hit["_source"])

    def find_all_sorted(self, sort: Sequence[SortField]) -> AsyncIterator[Item]:
        return self.scan(MatchAllQuery(), sort)


def _bulk_failure(error: dict[str, Any]) -> tuple[str, str]:
    """Flatten one async_bulk error entry, e.g. {"index": {"_id": "3", "error": {...}}}."""
    _, detail = next(iter(error.items()))
    reason = detail.get("error", detail.get("exception", "unknown error"))
    if isinstance(reason, dict):
        reason = reason.get("reason") or reason.get("type") or str(reason)
    return str(detail.get("_id")), str(reason)
