"""SQLite implementation of ProjectRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Collection

import aiosqlite

from taskhub.date_utils import normalize_iso_date, optional_iso_date
from taskhub.models import ProjectRecord


def _id_filter(column: str, project_ids: Collection[str] | None) -> tuple[str, list[Any]]:
    if project_ids is None:
        return "", []
    ids = sorted(project_ids)
    placeholders = ",".join(["?"] * len(ids))
    return f" AND {column} IN ({placeholders})", ids


class SqliteProjectRepository:
    """SQLite-backed project storage and project-level aggregates."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, project: ProjectRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """INSERT INTO projects (
                id, name, description, created_by, created_at, updated_at, deleted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name, description=excluded.description,
                created_by=excluded.created_by, updated_at=excluded.updated_at,
                deleted_at=excluded.deleted_at
            """,
            (
                project.id,
                project.name,
                project.description,
                project.created_by,
                normalize_iso_date(project.created_at) or now,
                normalize_iso_date(project.updated_at) or now,
                optional_iso_date(project.deleted_at),
            ),
        )
        await self.db.commit()

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        async with self.db.execute(
            "SELECT * FROM projects WHERE id = ? AND deleted_at IS NULL", (project_id,)
        ) as cur:
            row = await cur.fetchone()
            return ProjectRecord(**dict(row)) if row else None

    async def count_all(self) -> int:
        async with self.db.execute(
            "SELECT COUNT(*) FROM projects WHERE deleted_at IS NULL"
        ) as cur:
            row = await cur.fetchone()
            return int(row[0] or 0)

    async def list_ids_created_by(self, user_id: str) -> list[str]:
        async with self.db.execute(
            "SELECT id FROM projects WHERE created_by = ? AND deleted_at IS NULL ORDER BY id",
            (user_id,),
        ) as cur:
            return [row[0] for row in await cur.fetchall()]

    async def count_with_task_status(
        self,
        *,
        done: bool,
        project_ids: Collection[str] | None = None,
    ) -> int:
        if project_ids is not None and not project_ids:
            return 0
        clause, params = _id_filter("p.id", project_ids)
        status_clause = "t.status = 'done'" if done else "t.status != 'done'"
        async with self.db.execute(
            f"""
            SELECT COUNT(DISTINCT p.id)
            FROM projects p
            JOIN live_tasks t ON t.project_id = p.id
            WHERE p.deleted_at IS NULL AND {status_clause}{clause}
            """,
            params,
        ) as cur:
            row = await cur.fetchone()
            return int(row[0] or 0)

    async def list_page(
        self,
        *,
        project_ids: Collection[str] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        if project_ids is not None and not project_ids:
            return []
        clause, params = _id_filter("p.id", project_ids)
        async with self.db.execute(
            f"""
            SELECT p.*, u.username AS creator_name
            FROM projects p
            LEFT JOIN users u ON u.id = p.created_by AND u.deleted_at IS NULL
            WHERE p.deleted_at IS NULL{clause}
            ORDER BY p.updated_at DESC, p.id ASC
            LIMIT ? OFFSET ?
            """,
            [*params, limit, offset],
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]
