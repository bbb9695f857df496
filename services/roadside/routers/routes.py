"""
Route endpoints.

  POST   /routes                   -- create (201); id optional, store assigns when omitted
  GET    /routes/nearby            -- routes within `distance` metres of (lat, lng), nearest first
  GET    /routes/{route_id}        -- single route, 404 when absent
  PUT    /routes/{route_id}        -- replace name/description/path, 404 when absent
  DELETE /routes/{route_id}        -- idempotent; data.deleted reports whether a row went away
  GET    /routes/{route_id}/stops  -- recommended stops referencing the route, id ascending

Store errors (InvalidGeometry, ConstraintViolation, StoreFault) are mapped to
envelopes by the app-level exception handlers in main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from services.roadside.config import settings
from services.roadside.routers._deps import envelope, get_stores
from services.roadside.stores.factory import Stores
from services.roadside.stores.models import RouteCreate, RouteUpdate

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("", status_code=201)
async def create_route(
    body: RouteCreate,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> JSONResponse:
    route = await stores.routes.create(body)
    return JSONResponse(
        status_code=201,
        content=envelope(request, route.model_dump(mode="json")),
    )


# Declared before /{route_id} so "nearby" is not parsed as an id
@router.get("/nearby")
async def nearby_routes(
    request: Request,
    lat: float = Query(..., ge=-90, le=90, description="Latitude of the query point"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude of the query point"),
    distance: float | None = Query(None, ge=0, description="Radius in metres"),
    stores: Stores = Depends(get_stores),
) -> dict:
    radius = settings.nearby_default_distance_m if distance is None else distance
    if radius > settings.nearby_max_distance_m:
        raise HTTPException(
            status_code=422,
            detail=f"distance must not exceed {settings.nearby_max_distance_m:.0f} metres.",
        )

    routes = await stores.routes.get_nearby(lat, lng, radius)
    return envelope(
        request,
        {
            "results": [route.model_dump(mode="json") for route in routes],
            "count": len(routes),
        },
    )


@router.get("/{route_id}")
async def get_route(
    route_id: int,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    route = await stores.routes.get_by_id(route_id)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found.")
    return envelope(request, route.model_dump(mode="json"))


@router.put("/{route_id}")
async def update_route(
    route_id: int,
    body: RouteUpdate,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    if not await stores.routes.update(route_id, body):
        raise HTTPException(status_code=404, detail="Route not found.")
    route = await stores.routes.get_by_id(route_id)
    if route is None:
        # Deleted between the update and the read
        raise HTTPException(status_code=404, detail="Route not found.")
    return envelope(request, route.model_dump(mode="json"))


@router.delete("/{route_id}")
async def delete_route(
    route_id: int,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    deleted = await stores.routes.delete(route_id)
    return envelope(request, {"id": route_id, "deleted": deleted})


@router.get("/{route_id}/stops")
async def list_route_stops(
    route_id: int,
    request: Request,
    stores: Stores = Depends(get_stores),
) -> dict:
    stops = await stores.stops.get_by_route_id(route_id)
    return envelope(
        request,
        {
            "results": [stop.model_dump(mode="json") for stop in stops],
            "count": len(stops),
        },
    )
