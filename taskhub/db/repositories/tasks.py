"""SQLite implementation of TaskRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Collection

import aiosqlite

from taskhub.date_utils import normalize_iso_date, optional_iso_date
from taskhub.models import TaskRecord


class SqliteTaskRepository:
    """SQLite-backed task storage."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, task: TaskRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """INSERT INTO tasks (
                id, project_id, title, description, assignee_id,
                status, priority, due_date,
                created_at, updated_at, deleted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                project_id=excluded.project_id, title=excluded.title,
                description=excluded.description, assignee_id=excluded.assignee_id,
                status=excluded.status, priority=excluded.priority,
                due_date=excluded.due_date, updated_at=excluded.updated_at,
                deleted_at=excluded.deleted_at
            """,
            (
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
            ),
        )
        await self.db.commit()

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        async with self.db.execute(
            "SELECT * FROM tasks WHERE id = ? AND deleted_at IS NULL", (task_id,)
        ) as cur:
            row = await cur.fetchone()
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
            query += " AND assignee_id = ?"
            params.append(assignee_id)
        if status is not None:
            query += " AND status = ?"
            params.append(status)
        if overdue_at is not None:
            query += " AND due_date IS NOT NULL AND due_date < ? AND status != 'done'"
            params.append(overdue_at)

        async with self.db.execute(query, params) as cur:
            row = await cur.fetchone()
            return int(row[0] or 0)

    async def list_project_ids_assigned_to(self, user_id: str) -> list[str]:
        async with self.db.execute(
            "SELECT DISTINCT project_id FROM live_tasks WHERE assignee_id = ? ORDER BY project_id",
            (user_id,),
        ) as cur:
            return [row[0] for row in await cur.fetchall()]

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
            query += " WHERE t.assignee_id = ?"
            params.append(assignee_id)
        query += " ORDER BY t.updated_at DESC, t.id ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with self.db.execute(query, params) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def count_by_project(self, project_ids: Collection[str]) -> dict[str, tuple[int, int]]:
        if not project_ids:
            return {}
        ids = sorted(project_ids)
        placeholders = ",".join(["?"] * len(ids))
        async with self.db.execute(
            f"""
            SELECT project_id,
                   COUNT(*) AS task_count,
                   SUM(CASE WHEN status = 'done' THEN 1 ELSE 0 END) AS done_count
            FROM live_tasks
            WHERE project_id IN ({placeholders})
            GROUP BY project_id
            """,
            ids,
        ) as cur:
            return {
                row[0]: (int(row[1] or 0), int(row[2] or 0))
                for row in await cur.fetchall()
            }
