"""Seed helpers shared by the store-backed tests."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import aiosqlite

from taskhub.date_utils import normalize_iso_date
from taskhub.db.repositories import (
    SqliteActivityRepository,
    SqliteProjectRepository,
    SqliteTaskRepository,
    SqliteUserRepository,
)
from taskhub.db.sqlite_migrations import run_migrations
from taskhub.models import ActivityRecord, ProjectRecord, TaskRecord, UserRecord

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


def ts(days_ago: float = 0, minutes_ago: float = 0) -> str:
    return normalize_iso_date(NOW - timedelta(days=days_ago, minutes=minutes_ago))


async def open_memory_store() -> aiosqlite.Connection:
    db = await aiosqlite.connect(":memory:")
    db.row_factory = aiosqlite.Row
    await run_migrations(db)
    return db


class Seeder:
    def __init__(self, db: aiosqlite.Connection):
        self.users = SqliteUserRepository(db)
        self.projects = SqliteProjectRepository(db)
        self.tasks = SqliteTaskRepository(db)
        self.activities = SqliteActivityRepository(db)

    async def user(self, user_id: str, role: str = "user", **fields) -> None:
        fields.setdefault("username", user_id)
        fields.setdefault("created_at", ts(days_ago=100))
        fields.setdefault("updated_at", ts(days_ago=100))
        await self.users.upsert(UserRecord(id=user_id, role=role, **fields))

    async def project(self, project_id: str, created_by: str, **fields) -> None:
        fields.setdefault("name", f"Project {project_id}")
        fields.setdefault("created_at", ts(days_ago=50))
        fields.setdefault("updated_at", ts(days_ago=10))
        await self.projects.upsert(ProjectRecord(id=project_id, created_by=created_by, **fields))

    async def task(self, task_id: str, project_id: str, **fields) -> None:
        fields.setdefault("title", f"Task {task_id}")
        fields.setdefault("created_at", ts(days_ago=20))
        fields.setdefault("updated_at", ts(days_ago=5))
        await self.tasks.upsert(TaskRecord(id=task_id, project_id=project_id, **fields))

    async def activity(self, activity_id: str, user_id: str, action: str = "task_updated", **fields) -> None:
        fields.setdefault("created_at", ts(days_ago=1))
        await self.activities.upsert(
            ActivityRecord(id=activity_id, user_id=user_id, action=action, **fields)
        )


class CallSpy:
    """Wraps a repository, recording awaited method names and injecting failures."""

    def __init__(self, repo, fail: dict[str, BaseException] | None = None):
        self._repo = repo
        self._fail = dict(fail or {})
        self.calls: list[str] = []

    def __getattr__(self, name: str):
        target = getattr(self._repo, name)
        if not callable(target):
            return target

        async def _call(*args, **kwargs):
            self.calls.append(name)
            if name in self._fail:
                raise self._fail[name]
            return await target(*args, **kwargs)

        return _call

    def count(self, name: str) -> int:
        return self.calls.count(name)
