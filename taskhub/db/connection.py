"""Database connection factory.

Opens an async connection to SQLite (default, WAL mode) or a Postgres pool.
Backend selection via TASKHUB_DB_BACKEND. The caller owns the returned handle;
the app keeps it on ``app.state.db`` for the lifetime of the process.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

import aiosqlite
import asyncpg

from taskhub import config

logger = logging.getLogger("taskhub.db")

# Type alias for DB connection/pool
DbConnection = Union[aiosqlite.Connection, Any]  # Any to support asyncpg.Pool


async def open_connection(
    backend: str | None = None,
    db_path: Path | str | None = None,
    database_url: str | None = None,
) -> DbConnection:
    """Open a new database connection/pool for the configured backend."""
    backend = backend or config.DB_BACKEND

    if backend == "postgres":
        url = database_url or config.DATABASE_URL
        logger.info("Connecting to PostgreSQL")
        return await asyncpg.create_pool(url)

    path = str(db_path or config.DB_PATH)
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(path)
    conn.row_factory = aiosqlite.Row
    # Enable WAL mode for better concurrent read performance
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.execute("PRAGMA busy_timeout=5000")
    logger.info(f"Database connection established: {path}")
    return conn


async def close_connection(db: DbConnection | None) -> None:
    """Close a connection or pool returned by ``open_connection``."""
    if db is None:
        return
    await db.close()
    logger.info("Database connection closed")
