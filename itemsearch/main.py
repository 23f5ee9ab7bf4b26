"""
FastAPI application entry point.
Mounts routes, metrics and error handlers; the lifespan builds the search
client and item cache from settings and closes them on shutdown.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from itemsearch.api.v1.router import api_router
from itemsearch.cache.redis_client import ItemCache, create_redis
from itemsearch.config import get_settings
from itemsearch.core.exceptions import (
    InvalidPageError,
    InvalidRangeError,
    QuerySyntaxError,
    SearchUnavailableError,
)
from itemsearch.core.logging import configure_logging
from itemsearch.search.elasticsearch_client import SearchClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build clients, ensure the items index when ES is available. Shutdown: close clients."""
    settings = get_settings()
    app.state.search_client = SearchClient.from_settings(settings)
    app.state.item_cache = ItemCache(create_redis(settings.redis_url), settings.cache_ttl_seconds)
    try:
        await app.state.search_client.ensure_index()
    except SearchUnavailableError as e:
        # ES may be down at boot; requests report 503 until it comes back
        logger.warning("could not ensure index %r at startup: %s", settings.items_index, e)
    yield
    await app.state.item_cache.close()
    await app.state.search_client.close()


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": type(exc).__name__})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidRangeError)
    @app.exception_handler(InvalidPageError)
    async def invalid_request(request: Request, exc: Exception):
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(QuerySyntaxError)
    async def query_rejected(request: Request, exc: QuerySyntaxError):
        return _error(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(SearchUnavailableError)
    async def search_unavailable(request: Request, exc: SearchUnavailableError):
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        description="Item search over Elasticsearch: save, match/term/range queries, paging, sorting, aggregations.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS for frontend/API consumers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics at /metrics
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
