"""
Search endpoints - match, term and price-range queries, paging, sorting, aggregations.
"""

from fastapi import APIRouter, Query

from itemsearch.config import get_settings
from itemsearch.core.dependencies import ItemServiceDep, SortDep
from itemsearch.schemas.item import Item
from itemsearch.schemas.search import ItemPage
from itemsearch.search.query import (
    Query as SearchQueryType,
    SearchQuery,
    SortField,
    avg_aggregation,
    match_all,
    match_query,
    metric_aggregation,
    search_query,
    term_query,
    terms_aggregation,
)

router = APIRouter()
settings = get_settings()


def _paged(query: SearchQueryType, page: int, size: int, sort: list[SortField]) -> SearchQuery:
    sq = search_query(query).with_page(page, size)
    for s in sort:
        sq = sq.with_sort(s.field, s.direction)
    return sq


@router.get("/items", response_model=ItemPage)
async def search_items(
    svc: ItemServiceDep,
    sort: SortDep,
    q: str = Query(..., min_length=1),
    field: str = Query("title", min_length=1),
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """Full-text match on one field, e.g. /search/items?q=phone&sort=price:desc."""
    return await svc.search(_paged(match_query(field, q), page, size, sort))


@router.get("/term", response_model=ItemPage)
async def search_term(
    svc: ItemServiceDep,
    sort: SortDep,
    field: str = Query(..., min_length=1),
    value: str = Query(...),
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    """Exact match on a keyword field such as brand or category."""
    return await svc.search(_paged(term_query(field, value), page, size, sort))


@router.get("/price-range", response_model=list[Item])
async def search_price_range(svc: ItemServiceDep, low: float = Query(..., ge=0), high: float = Query(..., ge=0)):
    """Every item priced between low and high (inclusive), cheapest first."""
    return await svc.find_by_price_between(low, high)


@router.get("/aggregations/terms", response_model=ItemPage)
async def aggregate_terms(
    svc: ItemServiceDep,
    field: str = Query("brand", min_length=1),
    name: str = Query("buckets", min_length=1),
    size: int = Query(10, ge=1, le=settings.max_page_size),
    avg: str | None = Query(None, description="numeric field averaged per bucket, e.g. avg=price"),
    metric_field: str | None = Query(None, description="numeric field for a per-bucket metric"),
    metric: str = Query("avg", pattern="^(avg|sum|min|max)$"),
):
    """Bucket counts per distinct value, optionally with metrics per bucket. Returns no hits.

    ``avg=price`` adds an ``avg_price`` sub-aggregation; ``metric_field`` + ``metric``
    add any of avg/sum/min/max the same way.
    """
    agg = terms_aggregation(name, field, size)
    if avg:
        agg = agg.with_sub_aggregation(avg_aggregation(f"avg_{avg}", avg))
    # Skip a duplicate when both spellings ask for the same average
    if metric_field and not (avg == metric_field and metric == "avg"):
        agg = agg.with_sub_aggregation(metric_aggregation(f"{metric}_{metric_field}", metric_field, metric))
    return await svc.search(search_query(match_all()).with_aggregation(agg).without_source())
