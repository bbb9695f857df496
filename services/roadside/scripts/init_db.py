"""
Apply the roadside schema (tables + GIST indexes) to a PostGIS database.

Usage:
    python -m services.roadside.scripts.init_db
    python -m services.roadside.scripts.init_db --database-url postgresql://...
    python -m services.roadside.scripts.init_db --print   # dump the DDL and exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import asyncpg

from services.roadside.config import settings
from services.roadside.db.pool import apply_schema, load_schema_sql

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apply the roadside PostGIS schema.")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="Postgres DSN (default: DATABASE_URL from the environment)",
    )
    parser.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print the schema SQL instead of applying it",
    )
    return parser


async def run(database_url: str) -> None:
    conn = await asyncpg.connect(database_url)
    try:
        await apply_schema(conn)
    finally:
        await conn.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.print_only:
        sys.stdout.write(load_schema_sql())
        return 0

    try:
        asyncio.run(run(args.database_url))
    except (asyncpg.PostgresError, OSError) as exc:
        logger.error("Schema apply failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
