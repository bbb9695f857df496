"""
Store error taxonomy.

InvalidGeometry is raised by the codec (services.roadside.geo.codec) and
re-exported here so callers can catch every write rejection from one place.
A missing entity is NOT an error: get_by_id returns None.
"""

from __future__ import annotations

from typing import Any

from services.roadside.geo.codec import InvalidGeometry


class StoreError(Exception):
    """Base for failures raised by a RouteStore / StopStore."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        entity_id: Any = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.entity_id = entity_id
        # Extra identifiers when the entity has no id yet, e.g. route_id on stop.create
        self.context = context

    def __str__(self) -> str:
        base = super().__str__()
        fields = {} if self.entity_id is None else {"id": self.entity_id}
        fields.update(self.context)
        if not fields:
            return f"{self.operation}: {base}"
        rendered = ", ".join(f"{key}={value}" for key, value in fields.items())
        return f"{self.operation}({rendered}): {base}"


class ConstraintViolation(StoreError):
    """Duplicate identifier or other integrity rule rejected a write."""


class StoreFault(StoreError):
    """Connectivity, timeout or query failure in the backing store. Not retried here."""


__all__ = ["StoreError", "ConstraintViolation", "StoreFault", "InvalidGeometry"]
