"""PostgreSQL implementation of TaskRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Collection

import asyncpg

from taskhub.date_utils import normalize_iso_date, optional_iso_date
from taskhub.models import TaskRecord


class PostgresTaskRepository:
    """PostgreSQL-backed task storage."""

    def __init__(self, db: asyncpg.Pool):
        self.db = db

    async def upsert(self, task: TaskRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """
            INSERT INTO tasks (
                id, project_id, title, description, assignee_id,
                status, priority, due_date,
                created_at, updated_at, deleted_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
            ON CONFLICT(id) DO UPDATE SET
                project_id=EXCLUDED.project_id, title=EXCLUDED.title,
                description=EXCLUDED.description, assignee_id=EXCLUDED.assignee_id,
                status=EXCLUDED.status, priority=EXCLUDED.priority,
                due_date=EXCLUDED.due_date, updated_at=EXCLUDED.updated_at,
                deleted_at=EXCLUDED.deleted_at
            """,
            task.id,
            task.project_id,
            task.title,
            task.description,
            task.assignee_id,
            task.status,
            task.priority,
            optional_iso_date(task.due_date),
            normalize_iso_date(task.created_at) or now,
            normalize_iso_date(task.updated_at) or now,
            optional_iso_date(task.deleted_at),
        )

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        row = await self.db.fetchrow(
            "SELECT * FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id
        )
        return TaskRecord(**dict(row)) if row else None

    async def count_where(
        self,
        *,
        assignee_id: str | None = None,
        status: str | None = None,
        overdue_at: str | None = None,
    ) -> int:
        query = "SELECT COUNT(*) FROM live_tasks WHERE 1 = 1"
        params: list[Any] = []
        if assignee_id is not None:
            params.append(assignee_id)
            query += f" AND assignee_id = ${len(params)}"
        if status is not None:
            params.append(status)
            query += f" AND status = ${len(params)}"
        if overdue_at is not None:
            params.append(overdue_at)
            query += f" AND due_date IS NOT NULL AND due_date < ${len(params)} AND status != 'done'"
        return await self.db.fetchval(query, *params) or 0

    async def list_project_ids_assigned_to(self, user_id: str) -> list[str]:
        rows = await self.db.fetch(
            "SELECT DISTINCT project_id FROM live_tasks WHERE assignee_id = $1 ORDER BY project_id",
            user_id,
        )
        return [row["project_id"] for row in rows]

    async def list_recent(
        self,
        *,
        assignee_id: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[dict]:
        query = """
            SELECT t.*, p.name AS project_name, u.username AS assignee_name
            FROM live_tasks t
            LEFT JOIN projects p ON p.id = t.project_id
            LEFT JOIN users u ON u.id = t.assignee_id AND u.deleted_at IS NULL
        """
        params: list[Any] = []
        if assignee_id is not None:
            params.append(assignee_id)
            query += f" WHERE t.assignee_id = ${len(params)}"
        query += f" ORDER BY t.updated_at DESC, t.id ASC LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}"
        params.extend([limit, offset])

        rows = await self.db.fetch(query, *params)
        return [dict(r) for r in rows]

    async def count_by_project(self, project_ids: Collection[str]) -> dict[str, tuple[int, int]]:
        if not project_ids:
            return {}
        rows = await self.db.fetch(
            """
            SELECT project_id,
                   COUNT(*) AS task_count,
                   SUM(CASE WHEN status = 'done' THEN 1 ELSE 0 END) AS done_count
            FROM live_tasks
            WHERE project_id = ANY($1::text[])
            GROUP BY project_id
            """,
            sorted(project_ids),
        )
        return {
            row["project_id"]: (int(row["task_count"] or 0), int(row["done_count"] or 0))
            for row in rows
        }
