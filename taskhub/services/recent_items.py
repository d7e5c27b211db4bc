"""Recent tasks and activities for the dashboard feed."""
from __future__ import annotations

import logging
from typing import Any

from taskhub.db.repositories.base import ActivityRepository, TaskRepository
from taskhub.errors import DashboardError
from taskhub.models import UNKNOWN_PROJECT, UNKNOWN_USER, RecentActivityView, RecentTaskView
from taskhub.roles import member_id
from taskhub.services.context import DashboardContext
from taskhub.services.failures import as_dashboard_error

logger = logging.getLogger("taskhub.dashboard")


def _task_view(row: dict[str, Any]) -> RecentTaskView:
    return RecentTaskView(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        description=row.get("description"),
        status=row.get("status") or "todo",
        priority=row.get("priority") or "medium",
        dueDate=row.get("due_date") or None,
        projectId=str(row.get("project_id") or ""),
        projectName=row.get("project_name") or UNKNOWN_PROJECT,
        assigneeId=row.get("assignee_id"),
        assigneeName=row.get("assignee_name"),
        createdAt=str(row.get("created_at") or ""),
        updatedAt=str(row.get("updated_at") or ""),
    )


def _activity_view(row: dict[str, Any]) -> RecentActivityView:
    return RecentActivityView(
        id=str(row["id"]),
        action=str(row.get("action") or ""),
        description=row.get("description") or "",
        userId=str(row.get("user_id") or ""),
        userName=row.get("user_name") or UNKNOWN_USER,
        projectId=row.get("project_id"),
        projectName=row.get("project_name"),
        taskId=row.get("task_id"),
        taskTitle=row.get("task_title"),
        createdAt=str(row.get("created_at") or ""),
    )


class RecentItemsFetcher:
    """Members only see tasks assigned to them and their own activity."""

    def __init__(self, tasks: TaskRepository, activities: ActivityRepository):
        self.tasks = tasks
        self.activities = activities

    async def recent_tasks(self, context: DashboardContext, limit: int = 10, offset: int = 0) -> list[RecentTaskView]:
        try:
            rows = await self.tasks.list_recent(
                assignee_id=member_id(context.caller),
                limit=limit,
                offset=offset,
            )
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Get recent tasks error")
            raise as_dashboard_error(exc, "Failed to get recent tasks") from exc
        return [_task_view(row) for row in rows]

    async def recent_activities(
        self,
        context: DashboardContext,
        limit: int = 10,
        offset: int = 0,
    ) -> list[RecentActivityView]:
        try:
            rows = await self.activities.list_recent(
                user_id=member_id(context.caller),
                limit=limit,
                offset=offset,
            )
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Get recent activities error")
            raise as_dashboard_error(exc, "Failed to get recent activities") from exc
        return [_activity_view(row) for row in rows]
