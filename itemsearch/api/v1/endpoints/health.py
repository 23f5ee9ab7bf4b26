"""
Health checks - for load balancers, Kubernetes, and monitoring.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from itemsearch.config import get_settings
from itemsearch.core.dependencies import SearchClientDep

router = APIRouter()
settings = get_settings()


@router.get("")
async def health():
    """Liveness: is the process up?"""
    return {"status": "ok", "app": settings.app_name}


@router.get("/ready")
async def ready(client: SearchClientDep):
    """Readiness: is Elasticsearch answering?"""
    if not await client.ping():
        return JSONResponse(status_code=503, content={"status": "unavailable", "elasticsearch": False})
    return {"status": "ready", "elasticsearch": True}
