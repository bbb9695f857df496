"""
Recommended stop endpoints.

  POST   /stops             -- create (201); id is always store-assigned
  GET    /stops/{stop_id}   -- single stop, 404 when absent
  PUT    /stops/{stop_id}   -- replace name/type/description/location, 404 when absent
  DELETE /stops/{stop_id}   -- idempotent

Listing stops for a route lives on the routes router (GET /routes/{id}/stops).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from services.roadside.routers._deps import envelope, get_stores
from services.roadside.stores.factory import Stores
from services.roadside.stores.models import StopCreate, StopUpdate

router = APIRouter(prefix="/stops", tags=["stops"])


@router.post("", status_code=201)
async def create_stop(
    body: StopCreate,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> JSONResponse:
    stop = await stores.stops.create(body)
    return JSONResponse(
        status_code=201,
        content=envelope(request, stop.model_dump(mode="json")),
    )


@router.get("/{stop_id}")
async def get_stop(
    stop_id: int,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    stop = await stores.stops.get_by_id(stop_id)
    if stop is None:
        raise HTTPException(status_code=404, detail="Stop not found.")
    return envelope(request, stop.model_dump(mode="json"))


@router.put("/{stop_id}")
async def update_stop(
    stop_id: int,
    body: StopUpdate,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    if not await stores.stops.update(stop_id, body):
        raise HTTPException(status_code=404, detail="Stop not found.")
    stop = await stores.stops.get_by_id(stop_id)
    if stop is None:
        raise HTTPException(status_code=404, detail="Stop not found.")
    return envelope(request, stop.model_dump(mode="json"))


@router.delete("/{stop_id}")
async def delete_stop(
    stop_id: int,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    deleted = await stores.stops.delete(stop_id)
    return envelope(request, {"id": stop_id, "deleted": deleted})
