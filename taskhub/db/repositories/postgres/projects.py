"""PostgreSQL implementation of ProjectRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Collection

import asyncpg

from taskhub.date_utils import normalize_iso_date, optional_iso_date
from taskhub.models import ProjectRecord


class PostgresProjectRepository:
    """PostgreSQL-backed project storage and project-level aggregates."""

    def __init__(self, db: asyncpg.Pool):
        self.db = db

    async def upsert(self, project: ProjectRecord) -> None:
        now = normalize_iso_date(datetime.now(timezone.utc))
        await self.db.execute(
            """
            INSERT INTO projects (
                id, name, description, created_by, created_at, updated_at, deleted_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT(id) DO UPDATE SET
                name=EXCLUDED.name, description=EXCLUDED.description,
                created_by=EXCLUDED.created_by, updated_at=EXCLUDED.updated_at,
                deleted_at=EXCLUDED.deleted_at
            """,
            project.id,
            project.name,
            project.description,
            project.created_by,
            normalize_iso_date(project.created_at) or now,
            normalize_iso_date(project.updated_at) or now,
            optional_iso_date(project.deleted_at),
        )

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        row = await self.db.fetchrow(
            "SELECT * FROM projects WHERE id = $1 AND deleted_at IS NULL", project_id
        )
        return ProjectRecord(**dict(row)) if row else None

    async def count_all(self) -> int:
        return await self.db.fetchval("SELECT COUNT(*) FROM projects WHERE deleted_at IS NULL") or 0

    async def list_ids_created_by(self, user_id: str) -> list[str]:
        rows = await self.db.fetch(
            "SELECT id FROM projects WHERE created_by = $1 AND deleted_at IS NULL ORDER BY id",
            user_id,
        )
        return [row["id"] for row in rows]

    async def count_with_task_status(
        self,
        *,
        done: bool,
        project_ids: Collection[str] | None = None,
    ) -> int:
        if project_ids is not None and not project_ids:
            return 0
        status_clause = "t.status = 'done'" if done else "t.status != 'done'"
        query = f"""
            SELECT COUNT(DISTINCT p.id)
            FROM projects p
            JOIN live_tasks t ON t.project_id = p.id
            WHERE p.deleted_at IS NULL AND {status_clause}
        """
        params: list[Any] = []
        if project_ids is not None:
            query += " AND p.id = ANY($1::text[])"
            params.append(sorted(project_ids))
        return await self.db.fetchval(query, *params) or 0

    async def list_page(
        self,
        *,
        project_ids: Collection[str] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        if project_ids is not None and not project_ids:
            return []
        query = """
            SELECT p.*, u.username AS creator_name
            FROM projects p
            LEFT JOIN users u ON u.id = p.created_by AND u.deleted_at IS NULL
            WHERE p.deleted_at IS NULL
        """
        params: list[Any] = []
        p_idx = 1
        if project_ids is not None:
            query += f" AND p.id = ANY(${p_idx}::text[])"
            params.append(sorted(project_ids))
            p_idx += 1
        query += f" ORDER BY p.updated_at DESC, p.id ASC LIMIT ${p_idx} OFFSET ${p_idx + 1}"
        params.extend([limit, offset])

        rows = await self.db.fetch(query, *params)
        return [dict(r) for r in rows]
