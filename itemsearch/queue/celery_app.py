"""
Celery application - background bulk imports with RabbitMQ as broker.
Redis holds task results so callers can poll an import report.
"""

from celery import Celery

from itemsearch.config import get_settings

settings = get_settings()

celery_app = Celery(
    "itemsearch",
    broker=settings.celery_broker_url,
    backend=settings.redis_url,
    include=["itemsearch.queue.tasks"],
)

# Import batches travel as JSON; a worker takes one at a time, soft stop at 1 min, hard at 5
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=60,
    worker_prefetch_multiplier=1,  # Fair distribution
)
