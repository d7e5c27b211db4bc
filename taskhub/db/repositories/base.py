"""Repository interfaces consumed by the dashboard services.

One protocol per entity. Implementations exist for SQLite (this package) and
PostgreSQL (``postgres/``); tests may substitute in-memory fakes.

Conventions shared by every implementation:

* soft-deleted rows never appear in counts or listings; a task inside a
  soft-deleted project counts as deleted (the ``live_tasks`` view);
* ``project_ids=None`` means "no restriction", an empty collection means
  "nothing visible" and short-circuits without touching the store;
* listings are ordered newest first with ``id`` ascending as tie-breaker;
* timestamps are compared as UTC ISO strings.
"""
from __future__ import annotations

from typing import Collection, Protocol

from taskhub.models import ActivityRecord, ProjectRecord, TaskRecord, UserRecord


class UserRepository(Protocol):
    async def upsert(self, user: UserRecord) -> None: ...

    async def get_by_id(self, user_id: str) -> UserRecord | None: ...

    async def count_all(self) -> int: ...

    async def count_active_since(self, since: str) -> int:
        """Users with at least one activity created at or after ``since``."""
        ...


class ProjectRepository(Protocol):
    async def upsert(self, project: ProjectRecord) -> None: ...

    async def get_by_id(self, project_id: str) -> ProjectRecord | None: ...

    async def count_all(self) -> int: ...

    async def list_ids_created_by(self, user_id: str) -> list[str]: ...

    async def count_with_task_status(
        self,
        *,
        done: bool,
        project_ids: Collection[str] | None = None,
    ) -> int:
        """Projects having at least one live task that is (``done=True``) or is not done."""
        ...

    async def list_page(
        self,
        *,
        project_ids: Collection[str] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        """Project rows plus ``creator_name``, ordered by ``updated_at`` DESC."""
        ...


class TaskRepository(Protocol):
    async def upsert(self, task: TaskRecord) -> None: ...

    async def get_by_id(self, task_id: str) -> TaskRecord | None: ...

    async def count_where(
        self,
        *,
        assignee_id: str | None = None,
        status: str | None = None,
        overdue_at: str | None = None,
    ) -> int:
        """Count live tasks; ``overdue_at`` keeps tasks due before it and not done."""
        ...

    async def list_project_ids_assigned_to(self, user_id: str) -> list[str]: ...

    async def list_recent(
        self,
        *,
        assignee_id: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[dict]:
        """Task rows plus ``project_name``/``assignee_name``, by ``updated_at`` DESC."""
        ...

    async def count_by_project(self, project_ids: Collection[str]) -> dict[str, tuple[int, int]]:
        """``{project_id: (task_count, done_count)}`` over live tasks."""
        ...


class ActivityRepository(Protocol):
    async def upsert(self, activity: ActivityRecord) -> None: ...

    async def get_by_id(self, activity_id: str) -> ActivityRecord | None: ...

    async def list_recent(
        self,
        *,
        user_id: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[dict]:
        """Activity rows plus ``user_name``/``project_name``/``task_title``, by ``created_at`` DESC."""
        ...

    async def count_by_action(self, user_id: str, since: str) -> dict[str, int]: ...
