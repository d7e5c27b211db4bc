"""Per-project progress summaries."""
from __future__ import annotations

import logging
from typing import Any, Collection

from taskhub.db.repositories.base import ProjectRepository, TaskRepository
from taskhub.errors import DashboardError
from taskhub.models import UNKNOWN_USER, ProjectSummaryView
from taskhub.services.context import DashboardContext
from taskhub.services.failures import as_dashboard_error
from taskhub.services.membership import ProjectMembershipResolver

logger = logging.getLogger("taskhub.dashboard")


def progress_percentage(completed: int, total: int) -> int:
    """Completed share of ``total`` as a whole percent, halves rounded up; 0 without tasks."""
    if total <= 0:
        return 0
    completed = min(max(completed, 0), total)
    return (200 * completed + total) // (2 * total)


def filter_by_status(projects: list[ProjectSummaryView], status: str) -> list[ProjectSummaryView]:
    if status == "active":
        return [p for p in projects if p.progressPercentage < 100]
    if status == "completed":
        return [p for p in projects if p.progressPercentage == 100]
    return list(projects)


def _summary_view(row: dict[str, Any], task_count: int, completed: int) -> ProjectSummaryView:
    return ProjectSummaryView(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        description=row.get("description"),
        taskCount=task_count,
        completedTaskCount=completed,
        progressPercentage=progress_percentage(completed, task_count),
        createdBy=str(row.get("created_by") or ""),
        creatorName=row.get("creator_name") or UNKNOWN_USER,
        createdAt=str(row.get("created_at") or ""),
        updatedAt=str(row.get("updated_at") or ""),
    )


class ProjectSummaryBuilder:
    def __init__(
        self,
        projects: ProjectRepository,
        tasks: TaskRepository,
        membership: ProjectMembershipResolver,
    ):
        self.projects = projects
        self.tasks = tasks
        self.membership = membership

    async def build(self, context: DashboardContext, limit: int = 20, offset: int = 0) -> list[ProjectSummaryView]:
        membership = await self.membership.for_context(context)
        project_ids = membership.project_ids if membership is not None else None
        return await self.build_summaries(project_ids, limit=limit, offset=offset)

    async def build_summaries(
        self,
        project_ids: Collection[str] | None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ProjectSummaryView]:
        """Summaries for one page of ``project_ids`` (None = every project)."""
        if project_ids is not None and not project_ids:
            return []

        try:
            rows = await self.projects.list_page(project_ids=project_ids, limit=limit, offset=offset)
            counts = await self.tasks.count_by_project([row["id"] for row in rows])
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Get projects error")
            raise as_dashboard_error(exc, "Failed to get projects") from exc

        summaries = []
        for row in rows:
            task_count, completed = counts.get(row["id"], (0, 0))
            summaries.append(_summary_view(row, task_count, completed))
        return summaries
