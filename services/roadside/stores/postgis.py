"""
PostGIS-backed stores over a shared asyncpg pool.

One PostgisRouteStore and one PostgisStopStore are built at startup and hold
the pool for the life of the process; their methods are stateless.

PostGIS functions used:
  ST_GeomFromEWKT   -- store codec output (SRID travels inside the text)
  ST_AsEWKT         -- read back; decoded by GeometryCodec before returning
  ST_MakePoint      -- query origin from longitude, latitude
  ST_SetSRID        -- tag the origin with EPSG:4326
  ST_DWithin        -- metre radius filter on geography (GIST-assisted)
  ST_Distance       -- metre distance on the WGS84 spheroid for ordering

Visibility: single primary, so a committed write is visible to the next read.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator

import asyncpg

from services.roadside.geo.codec import LINESTRING, POINT, GeometryCodec
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


# ---------------------------------------------------------------------------
# SQL -- routes
# ---------------------------------------------------------------------------

_ROUTE_COLUMNS = "id, name, description, ST_AsEWKT(path) AS path, created_at"

_INSERT_ROUTE_SQL = f"""
INSERT INTO routes (name, description, path, created_at)
VALUES ($1, $2, ST_GeomFromEWKT($3), NOW())
RETURNING {_ROUTE_COLUMNS}
"""

_INSERT_ROUTE_WITH_ID_SQL = f"""
INSERT INTO routes (id, name, description, path, created_at)
VALUES ($1, $2, $3, ST_GeomFromEWKT($4), NOW())
RETURNING {_ROUTE_COLUMNS}
"""

# Keep the identity sequence ahead of caller-supplied ids
_SYNC_ROUTE_SEQUENCE_SQL = """
SELECT setval(pg_get_serial_sequence('routes', 'id'), GREATEST(MAX(id), 1))
FROM routes
"""

_SELECT_ROUTE_SQL = f"""
SELECT {_ROUTE_COLUMNS}
FROM routes
WHERE id = $1
"""

_NEARBY_ROUTES_SQL = """
WITH origin AS (
    SELECT ST_SetSRID(ST_MakePoint($1, $2), 4326)::geography AS g
)
SELECT
    r.id,
    r.name,
    r.description,
    ST_AsEWKT(r.path) AS path,
    r.created_at,
    ST_Distance(r.path::geography, origin.g) AS distance_m
FROM routes r, origin
WHERE ST_DWithin(r.path::geography, origin.g, $3)
ORDER BY distance_m ASC, r.id ASC
"""

_UPDATE_ROUTE_SQL = """
UPDATE routes
SET name = $2, description = $3, path = ST_GeomFromEWKT($4)
WHERE id = $1
"""

_DELETE_ROUTE_SQL = "DELETE FROM routes WHERE id = $1"


# ---------------------------------------------------------------------------
# SQL -- recommended stops
# ---------------------------------------------------------------------------

_STOP_COLUMNS = (
    "id, route_id, name, type, description, ST_AsEWKT(location) AS location, created_at"
)

_INSERT_STOP_SQL = f"""
INSERT INTO recommended_stops (route_id, name, type, description, location, created_at)
VALUES ($1, $2, $3, $4, ST_GeomFromEWKT($5), NOW())
RETURNING {_STOP_COLUMNS}
"""

_SELECT_STOP_SQL = f"""
SELECT {_STOP_COLUMNS}
FROM recommended_stops
WHERE id = $1
"""

_SELECT_STOPS_BY_ROUTE_SQL = f"""
SELECT {_STOP_COLUMNS}
FROM recommended_stops
WHERE route_id = $1
ORDER BY id ASC
"""

_UPDATE_STOP_SQL = """
UPDATE recommended_stops
SET name = $2, type = $3, description = $4, location = ST_GeomFromEWKT($5)
WHERE id = $1
"""

_DELETE_STOP_SQL = "DELETE FROM recommended_stops WHERE id = $1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextmanager
def _store_errors(operation: str, entity_id: Any = None, **context: Any) -> Iterator[None]:
    """Translate asyncpg / socket failures into the store error taxonomy."""
    try:
        yield
    except asyncpg.IntegrityConstraintViolationError as exc:
        raise ConstraintViolation(
            f"{exc.__class__.__name__}: {exc}",
            operation=operation,
            entity_id=entity_id,
            **context,
        ) from exc
    except (
        asyncpg.PostgresError,
        asyncpg.InterfaceError,
        OSError,
        asyncio.TimeoutError,
    ) as exc:
        logger.exception("Store fault in %s (id=%s %s)", operation, entity_id, context)
        raise StoreFault(
            f"{exc.__class__.__name__}: {exc}",
            operation=operation,
            entity_id=entity_id,
            **context,
        ) from exc


def _rows_affected(status: str | None) -> int:
    """Parse an asyncpg command tag such as 'UPDATE 1' or 'DELETE 0'."""
    if not status:
        return 0
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class _PostgisStore:
    def __init__(
        self,
        pool: Any,
        codec: GeometryCodec | None = None,
        command_timeout: float | None = None,
    ) -> None:
        super().__init__(codec)
        self._pool = pool
        self._command_timeout = command_timeout

    def _timeout(self, timeout: float | None) -> float | None:
        return self._command_timeout if timeout is None else timeout


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


class PostgisRouteStore(_PostgisStore, RouteStore):
    def _to_route(self, row: Any) -> Route:
        return Route(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            path=self.codec.decode(row["path"]),
            created_at=row["created_at"],
        )

    async def create(self, data: RouteCreate, *, timeout: float | None = None) -> Route:
        path = self.codec.encode(data.path, kind=LINESTRING)
        timeout = self._timeout(timeout)

        with _store_errors("route.create", data.id):
            if data.id is None:
                row = await self._pool.fetchrow(
                    _INSERT_ROUTE_SQL,
                    data.name,
                    data.description,
                    path.ewkt,
                    timeout=timeout,
                )
            else:
                async with self._pool.acquire() as conn:
                    async with conn.transaction():
                        row = await conn.fetchrow(
                            _INSERT_ROUTE_WITH_ID_SQL,
                            data.id,
                            data.name,
                            data.description,
                            path.ewkt,
                            timeout=timeout,
                        )
                        await conn.execute(_SYNC_ROUTE_SEQUENCE_SQL, timeout=timeout)

        route = self._to_route(row)
        logger.info("Route created: id=%s name=%r", route.id, route.name)
        return route

    async def get_by_id(self, route_id: int, *, timeout: float | None = None) -> Route | None:
        with _store_errors("route.get_by_id", route_id):
            row = await self._pool.fetchrow(
                _SELECT_ROUTE_SQL, route_id, timeout=self._timeout(timeout)
            )
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

        with _store_errors("route.get_nearby"):
            rows = await self._pool.fetch(
                _NEARBY_ROUTES_SQL,
                float(lng),
                float(lat),
                float(distance_m),
                timeout=self._timeout(timeout),
            )

        routes = [self._to_route(row) for row in rows]
        logger.debug(
            "Nearby routes: (%f,%f) radius=%.0fm found=%d", lat, lng, distance_m, len(routes)
        )
        return routes

    async def update(self, route_id: int, data: RouteUpdate, *, timeout: float | None = None) -> bool:
        path = self.codec.encode(data.path, kind=LINESTRING)

        with _store_errors("route.update", route_id):
            status = await self._pool.execute(
                _UPDATE_ROUTE_SQL,
                route_id,
                data.name,
                data.description,
                path.ewkt,
                timeout=self._timeout(timeout),
            )

        matched = _rows_affected(status) > 0
        if matched:
            logger.info("Route updated: id=%s", route_id)
        else:
            logger.info("Route update matched nothing: id=%s", route_id)
        return matched

    async def delete(self, route_id: int, *, timeout: float | None = None) -> bool:
        with _store_errors("route.delete", route_id):
            status = await self._pool.execute(
                _DELETE_ROUTE_SQL, route_id, timeout=self._timeout(timeout)
            )

        deleted = _rows_affected(status) > 0
        logger.info("Route delete: id=%s deleted=%s", route_id, deleted)
        return deleted


# ---------------------------------------------------------------------------
# Recommended stops
# ---------------------------------------------------------------------------


class PostgisStopStore(_PostgisStore, StopStore):
    def _to_stop(self, row: Any) -> RecommendedStop:
        return RecommendedStop(
            id=row["id"],
            route_id=row["route_id"],
            name=row["name"],
            type=row["type"],
            description=row["description"],
            location=self.codec.decode(row["location"]),
            created_at=row["created_at"],
        )

    async def create(self, data: StopCreate, *, timeout: float | None = None) -> RecommendedStop:
        location = self.codec.encode(data.location, kind=POINT)

        with _store_errors("stop.create", route_id=data.route_id):
            row = await self._pool.fetchrow(
                _INSERT_STOP_SQL,
                data.route_id,
                data.name,
                data.type,
                data.description,
                location.ewkt,
                timeout=self._timeout(timeout),
            )

        stop = self._to_stop(row)
        logger.info("Stop created: id=%s route_id=%s", stop.id, stop.route_id)
        return stop

    async def get_by_id(self, stop_id: int, *, timeout: float | None = None) -> RecommendedStop | None:
        with _store_errors("stop.get_by_id", stop_id):
            row = await self._pool.fetchrow(
                _SELECT_STOP_SQL, stop_id, timeout=self._timeout(timeout)
            )
        return self._to_stop(row) if row is not None else None

    async def get_by_route_id(self, route_id: int, *, timeout: float | None = None) -> list[RecommendedStop]:
        with _store_errors("stop.get_by_route_id", route_id):
            rows = await self._pool.fetch(
                _SELECT_STOPS_BY_ROUTE_SQL, route_id, timeout=self._timeout(timeout)
            )
        return [self._to_stop(row) for row in rows]

    async def update(self, stop_id: int, data: StopUpdate, *, timeout: float | None = None) -> bool:
        location = self.codec.encode(data.location, kind=POINT)

        with _store_errors("stop.update", stop_id):
            status = await self._pool.execute(
                _UPDATE_STOP_SQL,
                stop_id,
                data.name,
                data.type,
                data.description,
                location.ewkt,
                timeout=self._timeout(timeout),
            )

        matched = _rows_affected(status) > 0
        if matched:
            logger.info("Stop updated: id=%s", stop_id)
        else:
            logger.info("Stop update matched nothing: id=%s", stop_id)
        return matched

    async def delete(self, stop_id: int, *, timeout: float | None = None) -> bool:
        with _store_errors("stop.delete", stop_id):
            status = await self._pool.execute(
                _DELETE_STOP_SQL, stop_id, timeout=self._timeout(timeout)
            )

        deleted = _rows_affected(status) > 0
        logger.info("Stop delete: id=%s deleted=%s", stop_id, deleted)
        return deleted
