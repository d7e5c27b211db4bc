"""PostgreSQL implementation of ActivityRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import asyncpg

from taskhub.date_utils import normalize_iso_date
from taskhub.models import ActivityRecord


class PostgresActivityRepository:
    """PostgreSQL-backed activity log."""

    def __init__(self, db: asyncpg.Pool):
        self.db = db

    async def upsert(self, activity: ActivityRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """
            INSERT INTO activities (
                id, user_id, project_id, task_id, action, description, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT(id) DO UPDATE SET
                user_id=EXCLUDED.user_id, project_id=EXCLUDED.project_id,
                task_id=EXCLUDED.task_id, action=EXCLUDED.action,
                description=EXCLUDED.description
            """,
            activity.id,
            activity.user_id,
            activity.project_id,
            activity.task_id,
            activity.action,
            activity.description,
            normalize_iso_date(activity.created_at) or now,
        )

    async def get_by_id(self, activity_id: str) -> ActivityRecord | None:
        row = await self.db.fetchrow("SELECT * FROM activities WHERE id = $1", activity_id)
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
            params.append(user_id)
            query += f" WHERE a.user_id = ${len(params)}"
        query += f" ORDER BY a.created_at DESC, a.id ASC LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}"
        params.extend([limit, offset])

        rows = await self.db.fetch(query, *params)
        return [dict(r) for r in rows]

    async def count_by_action(self, user_id: str, since: str) -> dict[str, int]:
        rows = await self.db.fetch(
            """
            SELECT action, COUNT(*) AS total
            FROM activities
            WHERE user_id = $1 AND created_at >= $2
            GROUP BY action
            ORDER BY action
            """,
            user_id,
            since,
        )
        return {row["action"]: int(row["total"]) for row in rows}
