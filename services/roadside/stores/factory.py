"""
Store wiring -- picks a backend once at startup.

The returned Stores bundle is held on app.state for the life of the
process; nothing is constructed per request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from services.roadside.config import Settings
from services.roadside.db.pool import ping
from services.roadside.geo.codec import GeometryCodec
from services.roadside.stores.base import RouteStore, StopStore
from services.roadside.stores.memory import MemoryRouteStore, MemoryStopStore
from services.roadside.stores.postgis import PostgisRouteStore, PostgisStopStore

logger = logging.getLogger(__name__)


@dataclass
class Stores:
    backend: str
    routes: RouteStore
    stops: StopStore
    pool: Any = None

    async def health(self) -> dict[str, Any]:
        if self.backend == "memory":
            return {"backend": "memory", "database": "ok"}
        healthy = self.pool is not None and await ping(self.pool)
        return {"backend": self.backend, "database": "ok" if healthy else "unavailable"}


def build_stores(settings: Settings, pool: Any = None) -> Stores:
    """
    Build the route and stop stores sharing one codec (and one pool for PostGIS).

    Raises ValueError when the postgis backend is selected without a pool.
    """
    codec = GeometryCodec()

    if settings.store_backend == "memory":
        logger.warning("Using in-memory stores -- data is lost on restart")
        return Stores(
            backend="memory",
            routes=MemoryRouteStore(codec),
            stops=MemoryStopStore(codec),
        )

    if pool is None:
        raise ValueError("postgis store backend requires a database pool")

    return Stores(
        backend="postgis",
        routes=PostgisRouteStore(pool, codec, command_timeout=settings.db_command_timeout_s),
        stops=PostgisStopStore(pool, codec, command_timeout=settings.db_command_timeout_s),
        pool=pool,
    )
