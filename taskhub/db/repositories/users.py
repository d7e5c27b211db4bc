"""SQLite implementation of UserRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite

from taskhub.date_utils import normalize_iso_date, optional_iso_date
from taskhub.models import UserRecord


class SqliteUserRepository:
    """SQLite-backed user lookups and counts."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, user: UserRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """INSERT INTO users (
                id, username, email, role, created_at, updated_at, deleted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                username=excluded.username, email=excluded.email,
                role=excluded.role, updated_at=excluded.updated_at,
                deleted_at=excluded.deleted_at
            """,
            (
                user.id,
                user.username,
                user.email,
                user.role,
                normalize_iso_date(user.created_at) or now,
                normalize_iso_date(user.updated_at) or now,
                optional_iso_date(user.deleted_at),
            ),
        )
        await self.db.commit()

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        async with self.db.execute(
            "SELECT * FROM users WHERE id = ? AND deleted_at IS NULL", (user_id,)
        ) as cur:
            row = await cur.fetchone()
            return UserRecord(**dict(row)) if row else None

    async def count_all(self) -> int:
        async with self.db.execute(
            "SELECT COUNT(*) FROM users WHERE deleted_at IS NULL"
        ) as cur:
            row = await cur.fetchone()
            return int(row[0] or 0)

    async def count_active_since(self, since: str) -> int:
        async with self.db.execute(
            """
            SELECT COUNT(DISTINCT u.id)
            FROM users u
            JOIN activities a ON a.user_id = u.id
            WHERE u.deleted_at IS NULL AND a.created_at >= ?
            """,
            (since,),
        ) as cur:
            row = await cur.fetchone()
            return int(row[0] or 0)
