"""
Celery tasks - bulk imports off the request path.
The worker is sync; each task runs the async search client on a fresh event loop.
"""

import asyncio
import logging

from itemsearch.config import get_settings
from itemsearch.core.exceptions import PartialBulkFailureError, SearchUnavailableError
from itemsearch.queue.celery_app import celery_app
from itemsearch.schemas.item import Item
from itemsearch.search.elasticsearch_client import SearchClient

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run async function from sync Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def import_items(docs: list[dict]) -> dict:
    """Ensure the index and bulk-index ``docs``. Returns an import report."""
    items = [Item.model_validate(doc) for doc in docs]
    # New client per run: the event loop (and its connections) dies with the task
    client = SearchClient.from_settings(get_settings())
    try:
        await client.ensure_index()
        try:
            indexed = await client.bulk_index(items)
        except PartialBulkFailureError as e:
            return {
                "indexed": e.indexed,
                "failed": [{"id": doc_id, "reason": reason} for doc_id, reason in e.failures],
            }
        return {"indexed": indexed, "failed": []}
    finally:
        await client.close()


@celery_app.task(bind=True, max_retries=3)
def bulk_index_items_task(self, docs: list[dict]) -> dict:
    """
    Bulk-index item documents.
    Retries only when Elasticsearch is unreachable; per-document failures are
    reported in the result, not retried.
    """
    try:
        report = _run_async(import_items(docs))
    except SearchUnavailableError as exc:
        logger.warning("bulk import of %d item(s) deferred: %s", len(docs), exc)
        raise self.retry(exc=exc, countdown=5)
    if report["failed"]:
        logger.warning("bulk import: %d indexed, %d failed", report["indexed"], len(report["failed"]))
    return report
