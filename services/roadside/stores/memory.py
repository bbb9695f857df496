"""
In-process stores with the same contract as the PostGIS backend.

Geometries are kept as codec Geometry values and decoded on every read.
Nearby distance is spherical great-circle distance (geo.distance), so
radius filtering and ordering are in metres, not raw degree deltas.

Each mutation runs between two awaits, so it is atomic with respect to other
tasks on the loop. Reads copy out of the table before returning. Writes are
visible to the next read immediately.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from services.roadside.geo.codec import LINESTRING, POINT, Geometry, GeometryCodec
from services.roadside.geo.distance import distance_to_geometry_m
from services.roadside.stores.base import RouteStore, StopStore, nearby_origin
from services.roadside.stores.errors import ConstraintViolation, StoreFault
from services.roadside.stores.models import (
    RecommendedStop,
    Route,
    RouteCreate,
    RouteUpdate,
    StopCreate,
    StopUpdate,
)

logger = logging.getLogger(__name__)

# Nearby scans hand control back to the loop this often so cancellation lands promptly
SCAN_YIELD_EVERY = 500


@dataclass
class _RouteRow:
    id: int
    name: str
    description: str
    path: Geometry
    created_at: datetime


@dataclass
class _StopRow:
    id: int
    route_id: int
    name: str
    type: str
    description: str
    location: Geometry
    created_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryRouteStore(RouteStore):
    def __init__(self, codec: GeometryCodec | None = None) -> None:
        super().__init__(codec)
        self._rows: dict[int, _RouteRow] = {}
        self._last_id = 0

    def _to_route(self, row: _RouteRow) -> Route:
        return Route(
            id=row.id,
            name=row.name,
            description=row.description,
            path=self.codec.decode(row.path),
            created_at=row.created_at,
        )

    async def create(self, data: RouteCreate, *, timeout: float | None = None) -> Route:
        path = self.codec.encode(data.path, kind=LINESTRING)

        if data.id is not None and data.id in self._rows:
            raise ConstraintViolation(
                "duplicate route id", operation="route.create", entity_id=data.id
            )
        route_id = data.id if data.id is not None else self._last_id + 1
        self._last_id = max(self._last_id, route_id)

        row = _RouteRow(
            id=route_id,
            name=data.name,
            description=data.description,
            path=path,
            created_at=_now(),
        )
        self._rows[route_id] = row
        logger.info("Route created: id=%s name=%r", route_id, data.name)
        return self._to_route(row)

    async def get_by_id(self, route_id: int, *, timeout: float | None = None) -> Route | None:
        row = self._rows.get(route_id)
        return self._to_route(row) if row is not None else None

    async def get_nearby(
        self,
        lat: float,
        lng: float,
        distance_m: float,
        *,
        timeout: float | None = None,
    ) -> list[Route]:
        nearby_origin(self.codec, lat, lng, distance_m)
        try:
            return await asyncio.wait_for(self._scan_nearby(lat, lng, distance_m), timeout)
        except asyncio.TimeoutError as exc:
            raise StoreFault(
                f"nearby scan exceeded {timeout}s", operation="route.get_nearby"
            ) from exc

    async def _scan_nearby(self, lat: float, lng: float, distance_m: float) -> list[Route]:
        snapshot = [replace(row) for row in self._rows.values()]
        hits: list[tuple[float, int, _RouteRow]] = []

        for i, row in enumerate(snapshot, start=1):
            d = distance_to_geometry_m(lng, lat, row.path)
            if d <= distance_m:
                hits.append((d, row.id, row))
            if i % SCAN_YIELD_EVERY == 0:
                await asyncio.sleep(0)

        hits.sort(key=lambda hit: (hit[0], hit[1]))
        logger.debug(
            "Nearby routes: (%f,%f) radius=%.0fm scanned=%d found=%d",
            lat,
            lng,
            distance_m,
            len(snapshot),
            len(hits),
        )
        return [self._to_route(row) for _, _, row in hits]

    async def update(self, route_id: int, data: RouteUpdate, *, timeout: float | None = None) -> bool:
        path = self.codec.encode(data.path, kind=LINESTRING)
        row = self._rows.get(route_id)
        if row is None:
            logger.info("Route update matched nothing: id=%s", route_id)
            return False

        row.name = data.name
        row.description = data.description
        row.path = path
        logger.info("Route updated: id=%s", route_id)
        return True

    async def delete(self, route_id: int, *, timeout: float | None = None) -> bool:
        deleted = self._rows.pop(route_id, None) is not None
        logger.info("Route delete: id=%s deleted=%s", route_id, deleted)
        return deleted


class MemoryStopStore(StopStore):
    def __init__(self, codec: GeometryCodec | None = None) -> None:
        super().__init__(codec)
        self._rows: dict[int, _StopRow] = {}
        self._last_id = 0

    def _to_stop(self, row: _StopRow) -> RecommendedStop:
        return RecommendedStop(
            id=row.id,
            route_id=row.route_id,
            name=row.name,
            type=row.type,
            description=row.description,
            location=self.codec.decode(row.location),
            created_at=row.created_at,
        )

    async def create(self, data: StopCreate, *, timeout: float | None = None) -> RecommendedStop:
        location = self.codec.encode(data.location, kind=POINT)

        self._last_id += 1
        row = _StopRow(
            id=self._last_id,
            route_id=data.route_id,
            name=data.name,
            type=data.type,
            description=data.description,
            location=location,
            created_at=_now(),
        )
        self._rows[row.id] = row
        logger.info("Stop created: id=%s route_id=%s", row.id, row.route_id)
        return self._to_stop(row)

    async def get_by_id(self, stop_id: int, *, timeout: float | None = None) -> RecommendedStop | None:
        row = self._rows.get(stop_id)
        return self._to_stop(row) if row is not None else None

    async def get_by_route_id(self, route_id: int, *, timeout: float | None = None) -> list[RecommendedStop]:
        rows = sorted(
            (row for row in self._rows.values() if row.route_id == route_id),
            key=lambda row: row.id,
        )
        return [self._to_stop(row) for row in rows]

    async def update(self, stop_id: int, data: StopUpdate, *, timeout: float | None = None) -> bool:
        location = self.codec.encode(data.location, kind=POINT)
        row = self._rows.get(stop_id)
        if row is None:
            logger.info("Stop update matched nothing: id=%s", stop_id)
            return False

        row.name = data.name
        row.type = data.type
        row.description = data.description
        row.location = location
        logger.info("Stop updated: id=%s", stop_id)
        return True

    async def delete(self, stop_id: int, *, timeout: float | None = None) -> bool:
        deleted = self._rows.pop(stop_id, None) is not None
        logger.info("Stop delete: id=%s deleted=%s", stop_id, deleted)
        return deleted
