"""
FastAPI dependencies - resolve the search client, cache and service per request.
The client and cache are built once in the app lifespan and kept on app.state;
tests replace them through dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status

from itemsearch.cache.redis_client import ItemCache
from itemsearch.repositories.item_repository import ItemRepository
from itemsearch.search.elasticsearch_client import SearchClient
from itemsearch.search.query import SortField
from itemsearch.services.item_service import ItemService


def get_search_client(request: Request) -> SearchClient:
    return request.app.state.search_client


def get_item_cache(request: Request) -> ItemCache | None:
    return getattr(request.app.state, "item_cache", None)


def get_item_repository(
    client: Annotated[SearchClient, Depends(get_search_client)],
) -> ItemRepository:
    return ItemRepository(client)


def get_item_service(
    repo: Annotated[ItemRepository, Depends(get_item_repository)],
    cache: Annotated[ItemCache | None, Depends(get_item_cache)],
) -> ItemService:
    """Factory for service with repository injection (Dependency Inversion)."""
    return ItemService(repo, cache)


def get_sort(
    sort: Annotated[list[str], Query(description="field[:asc|desc], repeatable")] = [],
) -> list[SortField]:
    """Parse ``?sort=price:desc&sort=title`` into sort fields. 422 on bad input."""
    try:
        return [SortField.parse(s) for s in sort]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


SearchClientDep = Annotated[SearchClient, Depends(get_search_client)]
ItemServiceDep = Annotated[ItemService, Depends(get_item_service)]
SortDep = Annotated[list[SortField], Depends(get_sort)]
