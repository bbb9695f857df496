"""
Health endpoint -- GET /health

Reports the active store backend and whether the database answers.
Always 200; callers read data.status.
"""

from fastapi import APIRouter, Depends, Request

from services.roadside.config import settings
from services.roadside.routers._deps import envelope, get_stores
from services.roadside.stores.factory import Stores

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request, stores: Stores = Depends(get_stores)) -> dict:
    store_health = await stores.health()
    status = "healthy" if store_health["database"] == "ok" else "degraded"
    return envelope(
        request,
        {
            "status": status,
            "version": settings.app_version,
            **store_health,
        },
    )
