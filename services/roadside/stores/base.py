"""
Abstract store contracts shared by the PostGIS and in-memory backends.

Every operation is a coroutine and a single unit of work. `timeout` (seconds)
bounds the call; None means the backend default. Cancelling the awaiting
task cancels the operation.

Outcomes:
  get_by_id            -> entity, or None when no row matches
  get_nearby / get_by_route_id -> list (empty when nothing matches)
  update / delete      -> True if a row matched, False for a no-op
  any failure          -> InvalidGeometry / ConstraintViolation / StoreFault
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from services.roadside.geo.codec import (
    Geometry,
    GeometryCodec,
    InvalidGeometry,
    codec as default_codec,
)
from services.roadside.stores.models import (
    RecommendedStop,
    Route,
    RouteCreate,
    RouteUpdate,
    StopCreate,
    StopUpdate,
)


def nearby_origin(codec: GeometryCodec, lat: float, lng: float, distance_m: float) -> Geometry:
    """Validate nearby-query arguments and return the query point."""
    if not math.isfinite(distance_m) or distance_m < 0:
        raise InvalidGeometry(f"distance must be a finite, non-negative number of metres, got {distance_m}")
    return codec.point(lng, lat)


class RouteStore(ABC):
    def __init__(self, codec: GeometryCodec | None = None) -> None:
        self.codec = codec or default_codec

    @abstractmethod
    async def create(self, data: RouteCreate, *, timeout: float | None = None) -> Route:
        """Insert a route. Duplicate caller-supplied id -> ConstraintViolation."""

    @abstractmethod
    async def get_by_id(self, route_id: int, *, timeout: float | None = None) -> Route | None:
        ...

    @abstractmethod
    async def get_nearby(
        self,
        lat: float,
        lng: float,
        distance_m: float,
        *,
        timeout: float | None = None,
    ) -> list[Route]:
        """Routes whose path lies within distance_m of (lng, lat), nearest first, ties by id."""

    @abstractmethod
    async def update(self, route_id: int, data: RouteUpdate, *, timeout: float | None = None) -> bool:
        """Replace name, description and path."""

    @abstractmethod
    async def delete(self, route_id: int, *, timeout: float | None = None) -> bool:
        ...


class StopStore(ABC):
    def __init__(self, codec: GeometryCodec | None = None) -> None:
        self.codec = codec or default_codec

    @abstractmethod
    async def create(self, data: StopCreate, *, timeout: float | None = None) -> RecommendedStop:
        """Insert a stop with a store-assigned id."""

    @abstractmethod
    async def get_by_id(self, stop_id: int, *, timeout: float | None = None) -> RecommendedStop | None:
        ...

    @abstractmethod
    async def get_by_route_id(self, route_id: int, *, timeout: float | None = None) -> list[RecommendedStop]:
        """All stops referencing route_id, ordered by id ascending."""

    @abstractmethod
    async def update(self, stop_id: int, data: StopUpdate, *, timeout: float | None = None) -> bool:
        """Replace name, type, description and location. route_id is immutable."""

    @abstractmethod
    async def delete(self, stop_id: int, *, timeout: float | None = None) -> bool:
        ...
