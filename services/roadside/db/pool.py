"""
asyncpg pool factory and schema bootstrap.

The pool is created once in the app lifespan and shared by both stores.
Schema migration is not run at startup; apply_schema() is for local dev,
tests and the init_db script.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import asyncpg

from services.roadside.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


async def create_pool(settings: Settings | None = None) -> asyncpg.Pool:
    settings = settings or default_settings
    pool = await asyncpg.create_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout_s,
    )
    logger.info(
        "DB pool ready: min=%d max=%d", settings.db_pool_min_size, settings.db_pool_max_size
    )
    return pool


def load_schema_sql() -> str:
    return SCHEMA_PATH.read_text(encoding="utf-8")


async def apply_schema(db: Any) -> None:
    """Run schema.sql against a pool or connection."""
    await db.execute(load_schema_sql())
    logger.info("Schema applied from %s", SCHEMA_PATH.name)


async def ping(db: Any, timeout: float = 5.0) -> bool:
    """True if the database answers SELECT 1."""
    try:
        return await db.fetchval("SELECT 1", timeout=timeout) == 1
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
        logger.warning("DB ping failed: %s", exc)
        return False
