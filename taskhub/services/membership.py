"""Project membership resolution for non-admin callers."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskhub.db.repositories.base import ProjectRepository, TaskRepository
from taskhub.errors import DashboardError
from taskhub.roles import is_admin
from taskhub.services.failures import as_dashboard_error

if TYPE_CHECKING:
    from taskhub.services.context import DashboardContext

logger = logging.getLogger("taskhub.dashboard")


@dataclass(frozen=True)
class ProjectMembership:
    """Projects a user created or has at least one task assigned in."""

    user_id: str
    project_ids: frozenset[str]

    def __len__(self) -> int:
        return len(self.project_ids)

    def __contains__(self, project_id: object) -> bool:
        return project_id in self.project_ids


class ProjectMembershipResolver:
    def __init__(self, projects: ProjectRepository, tasks: TaskRepository):
        self.projects = projects
        self.tasks = tasks

    async def resolve(self, user_id: str) -> ProjectMembership:
        try:
            created, assigned = await asyncio.gather(
                self.projects.list_ids_created_by(user_id),
                self.tasks.list_project_ids_assigned_to(user_id),
            )
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Error getting user project data")
            raise as_dashboard_error(exc, "Failed to get user project data") from exc

        membership = ProjectMembership(
            user_id=user_id,
            project_ids=frozenset(created) | frozenset(assigned),
        )
        if not membership.project_ids:
            logger.info("No projects found for user %s", user_id)
        else:
            logger.info(
                "User project data retrieved: user=%s created=%d assigned=%d total=%d",
                user_id,
                len(created),
                len(assigned),
                len(membership),
            )
        return membership

    async def for_context(self, context: DashboardContext) -> ProjectMembership | None:
        """Membership scoping the context's caller; None when the caller sees every project.

        Reuses the membership already attached to the context so sibling
        sections never re-query it.
        """
        if is_admin(context.caller):
            return None
        cached = context.membership
        if cached is not None and cached.user_id == context.caller.user_id:
            return cached
        return await self.resolve(context.caller.user_id)
