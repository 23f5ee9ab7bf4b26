"""
Item repository tests - save, lookup and query behaviour against the fake index.
"""

from unittest.mock import AsyncMock

import pytest

from itemsearch.core.exceptions import InvalidRangeError
from itemsearch.repositories.item_repository import ItemRepository
from itemsearch.schemas.item import Item
from itemsearch.search.query import (
    SortField,
    avg_aggregation,
    match_all,
    match_query,
    range_query,
    search_query,
    term_query,
    terms_aggregation,
)


@pytest.mark.asyncio
async def test_save_then_find_by_id(repo: ItemRepository, phones):
    await repo.save(phones[0])
    assert await repo.find_by_id(1) == phones[0]
    assert await repo.count() == 1


@pytest.mark.asyncio
async def test_save_all_and_delete(seeded_repo: ItemRepository):
    assert await seeded_repo.count() == 5
    assert await seeded_repo.delete_by_id(3) is True
    assert await seeded_repo.find_by_id(3) is None
    assert await seeded_repo.count() == 4


@pytest.mark.asyncio
async def test_find_all_sorted_by_price_desc(seeded_repo: ItemRepository):
    items = await seeded_repo.find_all([SortField("price", "desc")])
    assert [i.price for i in items] == [4499.0, 4299.0, 3699.0, 2799.0, 2299.0]


@pytest.mark.asyncio
async def test_find_by_price_between(seeded_repo: ItemRepository):
    items = await seeded_repo.find_by_price_between(4000.0, 5000.0)
    assert [i.id for i in items] == [5, 4]


@pytest.mark.asyncio
async def test_find_by_price_between_bounds_inclusive(seeded_repo: ItemRepository):
    items = await seeded_repo.find_by_price_between(2299.0, 2799.0)
    assert {i.id for i in items} == {1, 2}


@pytest.mark.asyncio
async def test_find_by_price_between_no_match(seeded_repo: ItemRepository):
    assert await seeded_repo.find_by_price_between(10.0, 20.0) == []


@pytest.mark.asyncio
async def test_find_by_price_between_inverted_makes_no_call(phones):
    client = AsyncMock()
    repo = ItemRepository(client)
    with pytest.raises(InvalidRangeError):
        await repo.find_by_price_between(5000.0, 4000.0)
    client.scan.assert_not_called()


@pytest.mark.asyncio
async def test_match_query_finds_saved_item(seeded_repo: ItemRepository):
    page = await seeded_repo.search(search_query(match_query("title", "xiaomi")))
    assert {i.id for i in page.items} == {1, 5}
    assert page.total_elements == 2


@pytest.mark.asyncio
async def test_search_with_bare_match_query(seeded_repo: ItemRepository):
    page = await seeded_repo.search(match_query("title", "xiaomi"))
    assert {i.id for i in page.items} == {1, 5}
    assert page.total_elements == 2


@pytest.mark.asyncio
async def test_search_with_bare_range_query(seeded_repo: ItemRepository):
    page = await seeded_repo.search(range_query("price", 4000.0, 5000.0))
    assert {i.id for i in page.items} == {4, 5}


@pytest.mark.asyncio
async def test_term_query_on_brand(seeded_repo: ItemRepository):
    page = await seeded_repo.search(search_query(term_query("brand", "Huawei")))
    assert {i.id for i in page.items} == {2, 4}


@pytest.mark.asyncio
async def test_pagination_matches_unpaged_order(seeded_repo: ItemRepository):
    query = match_query("category", "phone").with_sort("price", "desc")
    unpaged = await seeded_repo.search(query.with_page(0, 100))

    collected = []
    first = await seeded_repo.search(query.with_page(0, 2))
    for number in range(first.total_pages):
        page = await seeded_repo.search(query.with_page(number, 2))
        assert page.number == number
        collected.extend(i.id for i in page.items)

    assert first.total_elements == 5
    assert first.total_pages == 3
    assert collected == [i.id for i in unpaged.items]
    assert len(set(collected)) == 5


@pytest.mark.asyncio
async def test_terms_aggregation_counts_per_brand(seeded_repo: ItemRepository):
    query = search_query(match_all()).with_aggregation(terms_aggregation("brands", "brand")).without_source()
    page = await seeded_repo.search(query)

    assert page.items == []
    counts = {b.key: b.doc_count for b in page.terms("brands").buckets}
    assert counts == {"Xiaomi": 2, "Huawei": 2, "Smartisan": 1}


@pytest.mark.asyncio
async def test_brand_average_price_scenario(repo: ItemRepository):
    await repo.save_all(
        [
            Item(id=1, title="a1", category="phone", brand="A", price=100),
            Item(id=2, title="a2", category="phone", brand="A", price=300),
            Item(id=3, title="b1", category="phone", brand="B", price=200),
        ]
    )
    agg = terms_aggregation("brands", "brand").with_sub_aggregation(avg_aggregation("priceAvg", "price"))

    page = await repo.search(search_query(match_all()).with_aggregation(agg).without_source())

    brands = page.terms("brands")
    a, b = brands.bucket("A"), brands.bucket("B")
    assert (a.doc_count, a.aggregations["priceAvg"].value) == (2, 200.0)
    assert (b.doc_count, b.aggregations["priceAvg"].value) == (1, 200.0)
