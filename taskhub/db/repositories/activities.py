"""SQLite implementation of ActivityRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import aiosqlite

from taskhub.date_utils import normalize_iso_date
from taskhub.models import ActivityRecord


class SqliteActivityRepository:
    """SQLite-backed activity log."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, activity: ActivityRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """INSERT INTO activities (
                id, user_id, project_id, task_id, action, description, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                user_id=excluded.user_id, project_id=excluded.project_id,
                task_id=excluded.task_id, action=excluded.action,
                description=excluded.description
            """,
            (
                activity.id,
                activity.user_id,
                activity.project_id,
                activity.task_id,
                activity.action,
                activity.description,
                normalize_iso_date(activity.created_at) or now,
            ),
        )
        await self.db.commit()

    async def get_by_id(self, activity_id: str) -> ActivityRecord | None:
        async with self.db.execute(
            "SELECT * FROM activities WHERE id = ?", (activity_id,)
        ) as cur:
            row = await cur.fetchone()
            return ActivityRecord(**dict(row)) if row else None

    async def list_recent(
        self,
        *,
        user_id: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[dict]:
        query = """
            SELECT a.*,
                   u.username AS user_name,
                   p.name AS project_name,
                   t.title AS task_title
            FROM activities a
            LEFT JOIN users u ON u.id = a.user_id AND u.deleted_at IS NULL
            LEFT JOIN projects p ON p.id = a.project_id AND p.deleted_at IS NULL
            LEFT JOIN tasks t ON t.id = a.task_id AND t.deleted_at IS NULL
        """
        params: list[Any] = []
        if user_id is not None:
            query += " WHERE a.user_id = ?"
            params.append(user_id)
        query += " ORDER BY a.created_at DESC, a.id ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with self.db.execute(query, params) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def count_by_action(self, user_id: str, since: str) -> dict[str, int]:
        async with self.db.execute(
            """
            SELECT action, COUNT(*)
            FROM activities
            WHERE user_id = ? AND created_at >= ?
            GROUP BY action
            ORDER BY action
            """,
            (user_id, since),
        ) as cur:
            return {row[0]: int(row[1]) for row in await cur.fetchall()}
