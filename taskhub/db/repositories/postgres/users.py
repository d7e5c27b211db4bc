"""PostgreSQL implementation of UserRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import asyncpg

from taskhub.date_utils import normalize_iso_date, optional_iso_date
from taskhub.models import UserRecord


class PostgresUserRepository:
    """PostgreSQL-backed user lookups and counts."""

    def __init__(self, db: asyncpg.Pool):
        self.db = db

    async def upsert(self, user: UserRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """
            INSERT INTO users (
                id, username, email, role, created_at, updated_at, deleted_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT(id) DO UPDATE SET
                username=EXCLUDED.username, email=EXCLUDED.email,
                role=EXCLUDED.role, updated_at=EXCLUDED.updated_at,
                deleted_at=EXCLUDED.deleted_at
            """,
            user.id,
            user.username,
            user.email,
            user.role,
            normalize_iso_date(user.created_at) or now,
            normalize_iso_date(user.updated_at) or now,
            optional_iso_date(user.deleted_at),
        )

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        row = await self.db.fetchrow(
            "SELECT * FROM users WHERE id = $1 AND deleted_at IS NULL", user_id
        )
        return UserRecord(**dict(row)) if row else None

    async def count_all(self) -> int:
        return await self.db.fetchval("SELECT COUNT(*) FROM users WHERE deleted_at IS NULL") or 0

    async def count_active_since(self, since: str) -> int:
        return await self.db.fetchval(
            """
            SELECT COUNT(DISTINCT u.id)
            FROM users u
            JOIN activities a ON a.user_id = u.id
            WHERE u.deleted_at IS NULL AND a.created_at >= $1
            """,
            since,
        ) or 0
