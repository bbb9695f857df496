"""Shared helpers for the route and stop routers."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request

from services.roadside.stores.factory import Stores


def get_stores(request: Request) -> Stores:
    """FastAPI dependency -- the Stores bundle built once in lifespan."""
    return request.app.state.stores


def request_id(request: Request) -> str:
    return getattr(request.state, "request_id", str(uuid.uuid4()))


def envelope(request: Request, data: Any) -> dict:
    return {"success": True, "data": data, "requestId": request_id(request)}
