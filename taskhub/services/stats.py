"""Dashboard statistics.

Admins get system-wide counts; members get counts over their assigned tasks
and their project membership. "Active" and "completed" projects are not a
partition: a project with both done and pending tasks is counted in both.
"""
from __future__ import annotations

import asyncio
import logging

from taskhub.db.repositories.base import ProjectRepository, TaskRepository, UserRepository
from taskhub.errors import DashboardError
from taskhub.models import TASK_STATUS_DONE, TASK_STATUS_IN_PROGRESS, DashboardStats
from taskhub.roles import is_admin
from taskhub.services.context import DashboardContext
from taskhub.services.failures import as_dashboard_error
from taskhub.services.membership import ProjectMembershipResolver

logger = logging.getLogger("taskhub.dashboard")


class StatsAggregator:
    def __init__(
        self,
        tasks: TaskRepository,
        projects: ProjectRepository,
        users: UserRepository,
        membership: ProjectMembershipResolver,
    ):
        self.tasks = tasks
        self.projects = projects
        self.users = users
        self.membership = membership

    async def compute(self, context: DashboardContext) -> DashboardStats:
        if is_admin(context.caller):
            return await self._admin_stats(context)
        return await self._member_stats(context)

    async def _admin_stats(self, context: DashboardContext) -> DashboardStats:
        try:
            (
                total_tasks,
                completed_tasks,
                in_progress_tasks,
                overdue_tasks,
                total_projects,
                active_projects,
                completed_projects,
                total_users,
                active_users,
            ) = await asyncio.gather(
                self.tasks.count_where(),
                self.tasks.count_where(status=TASK_STATUS_DONE),
                self.tasks.count_where(status=TASK_STATUS_IN_PROGRESS),
                self.tasks.count_where(overdue_at=context.now_iso),
                self.projects.count_all(),
                self.projects.count_with_task_status(done=False),
                self.projects.count_with_task_status(done=True),
                self.users.count_all(),
                self.users.count_active_since(context.window_start_iso),
            )
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Get admin stats error")
            raise as_dashboard_error(exc, "Failed to get admin statistics") from exc

        stats = DashboardStats(
            totalTasks=total_tasks,
            completedTasks=completed_tasks,
            inProgressTasks=in_progress_tasks,
            overdueTasks=overdue_tasks,
            totalProjects=total_projects,
            activeProjects=active_projects,
            completedProjects=completed_projects,
            totalUsers=total_users,
            activeUsers=active_users,
        )
        logger.info("Admin statistics retrieved: %s", stats.model_dump())
        return stats

    async def _member_stats(self, context: DashboardContext) -> DashboardStats:
        user_id = context.caller.user_id
        membership = await self.membership.for_context(context)
        project_ids = membership.project_ids if membership is not None else frozenset()

        try:
            (
                total_tasks,
                completed_tasks,
                in_progress_tasks,
                overdue_tasks,
                active_projects,
                completed_projects,
            ) = await asyncio.gather(
                self.tasks.count_where(assignee_id=user_id),
                self.tasks.count_where(assignee_id=user_id, status=TASK_STATUS_DONE),
                self.tasks.count_where(assignee_id=user_id, status=TASK_STATUS_IN_PROGRESS),
                self.tasks.count_where(assignee_id=user_id, overdue_at=context.now_iso),
                self.projects.count_with_task_status(done=False, project_ids=project_ids),
                self.projects.count_with_task_status(done=True, project_ids=project_ids),
            )
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Get user stats error")
            raise as_dashboard_error(exc, "Failed to get user statistics") from exc

        stats = DashboardStats(
            totalTasks=total_tasks,
            completedTasks=completed_tasks,
            inProgressTasks=in_progress_tasks,
            overdueTasks=overdue_tasks,
            totalProjects=len(project_ids),
            activeProjects=active_projects,
            completedProjects=completed_projects,
            # user counts are admin-only
            totalUsers=0,
            activeUsers=0,
        )
        logger.info("User statistics retrieved for %s: %s", user_id, stats.model_dump())
        return stats
