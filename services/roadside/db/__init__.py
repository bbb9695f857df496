"""
asyncpg database module.

Re-exports the pool factory and schema helpers for the FastAPI service.
"""

from services.roadside.db.pool import apply_schema, create_pool, load_schema_sql, ping

__all__ = [
    "apply_schema",
    "create_pool",
    "load_schema_sql",
    "ping",
]
