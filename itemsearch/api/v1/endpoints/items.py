"""
Item endpoints - save, bulk save, background import, lookup, delete, sorted listing.
Thin controller; the service layer holds the logic.
"""

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse

from itemsearch.core.dependencies import ItemServiceDep, SortDep
from itemsearch.core.exceptions import PartialBulkFailureError
from itemsearch.schemas.item import BulkFailure, BulkIndexResponse, ImportResponse, Item

router = APIRouter()


@router.post("", response_model=Item, status_code=status.HTTP_201_CREATED)
async def save_item(svc: ItemServiceDep, item: Item):
    """Upsert one item: saving an existing id replaces it."""
    return await svc.save(item)


@router.post("/bulk", response_model=BulkIndexResponse)
async def save_items(svc: ItemServiceDep, items: list[Item]):
    """Upsert many items. 207 with per-item reasons when part of the batch failed."""
    try:
        indexed = await svc.save_all(items)
    except PartialBulkFailureError as e:
        body = BulkIndexResponse(
            indexed=e.indexed,
            failed=[BulkFailure(id=doc_id, reason=reason) for doc_id, reason in e.failures],
        )
        return JSONResponse(status_code=status.HTTP_207_MULTI_STATUS, content=body.model_dump())
    return BulkIndexResponse(indexed=indexed)


@router.post("/import", response_model=ImportResponse, status_code=status.HTTP_202_ACCEPTED)
async def import_items(svc: ItemServiceDep, items: list[Item]):
    """Queue a bulk import on the Celery worker."""
    task_id = svc.enqueue_import(items)
    return ImportResponse(task_id=task_id, submitted=len(items))


@router.get("", response_model=list[Item])
async def list_items(svc: ItemServiceDep, sort: SortDep):
    """All items. REST: GET /items?sort=price:desc."""
    return await svc.list_sorted(sort)


@router.get("/count")
async def count_items(svc: ItemServiceDep):
    return {"count": await svc.count()}


@router.get("/{item_id}", response_model=Item)
async def get_item(svc: ItemServiceDep, item_id: int):
    """Get single item. Uses Redis cache when configured."""
    item = await svc.get(item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(svc: ItemServiceDep, item_id: int):
    if not await svc.delete(item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
