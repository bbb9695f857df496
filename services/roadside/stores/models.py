"""
Entity and input models for routes and recommended stops.

Persisted shapes (Route, RecommendedStop) always carry geometry as
normalized exchange text -- stores decode before returning them.

Input shapes (*Create / *Update) are what callers may send. They forbid
unknown fields, so server-assigned values (stop ids, created_at) cannot
be smuggled in through a create or update payload.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Route(BaseModel):
    id: int
    name: str
    description: str
    path: str  # LINESTRING, EPSG:4326
    created_at: datetime


class RecommendedStop(BaseModel):
    id: int
    route_id: int
    name: str
    type: str  # viewpoint, shop, landmark, ...
    description: str
    location: str  # POINT, EPSG:4326
    created_at: datetime


class RouteCreate(BaseModel):
    # Caller-supplied ids are honoured; omit to let the store assign one
    id: int | None = Field(default=None, ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    path: str = Field(..., min_length=1)

    model_config = {"extra": "forbid"}


class RouteUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    path: str = Field(..., min_length=1)

    model_config = {"extra": "forbid"}


class StopCreate(BaseModel):
    route_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(default="", max_length=50)
    description: str = Field(default="", max_length=5000)
    location: str = Field(..., min_length=1)

    model_config = {"extra": "forbid"}


class StopUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(default="", max_length=50)
    description: str = Field(default="", max_length=5000)
    location: str = Field(..., min_length=1)

    model_config = {"extra": "forbid"}
