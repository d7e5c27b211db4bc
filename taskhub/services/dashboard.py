"""Dashboard orchestration: one role-scoped snapshot per request.

Membership is resolved at most once per request and handed to the sections
through the ``DashboardContext``; the included sections then run
concurrently. The first failing section cancels its siblings.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Sequence

from pydantic import ValidationError

from taskhub import config
from taskhub.date_utils import utc_now
from taskhub.db import factory
from taskhub.db.repositories.base import (
    ActivityRepository,
    ProjectRepository,
    TaskRepository,
    UserRepository,
)
from taskhub.errors import DashboardError, InvalidOptions, QueryFailed
from taskhub.models import (
    ActivitySummary,
    DashboardDataRange,
    DashboardMetadata,
    DashboardOptions,
    DashboardSnapshot,
    DashboardStats,
    ProjectSummaryView,
    RecentActivityView,
    RecentTaskView,
)
from taskhub.observability import record_dashboard_request, record_dashboard_section, start_span
from taskhub.roles import Caller, is_admin
from taskhub.services.context import DashboardContext
from taskhub.services.failures import as_dashboard_error
from taskhub.services.membership import ProjectMembershipResolver
from taskhub.services.project_summaries import ProjectSummaryBuilder, filter_by_status
from taskhub.services.recent_items import RecentItemsFetcher
from taskhub.services.stats import StatsAggregator

logger = logging.getLogger("taskhub.dashboard")

MAX_DAYS = 365
MAX_PAGE_SIZE = 100


_REQUEST_LOCATIONS = {"query", "path", "header", "cookie", "body"}


def invalid_options(errors: Sequence[Mapping[str, Any]]) -> InvalidOptions:
    """Turn pydantic / FastAPI validation errors into one ``InvalidOptions``.

    The message names the first offending field; every field is listed in
    ``errors``.
    """
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        details.append({"field": ".".join(loc) or "options", "message": error.get("msg", "invalid value")})
    if not details:
        details.append({"field": "options", "message": "invalid value"})
    first = details[0]
    return InvalidOptions(
        f"Invalid dashboard option '{first['field']}': {first['message']}",
        errors=details,
    )


def build_options(**values: Any) -> DashboardOptions:
    """Validate raw option values, raising ``InvalidOptions`` when out of range."""
    try:
        return DashboardOptions(**values)
    except ValidationError as exc:
        raise invalid_options(exc.errors()) from exc


def _check_range(name: str, value: int, low: int, high: int | None = None) -> None:
    if value < low or (high is not None and value > high):
        bound = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise InvalidOptions(f"{name} must be {bound}")


async def _gather_fail_fast(sections: dict[str, Awaitable[Any]]) -> dict[str, Any]:
    """Await every section; on the first failure cancel the rest and re-raise."""
    tasks = {name: asyncio.ensure_future(awaitable) for name, awaitable in sections.items()}
    try:
        results = await asyncio.gather(*tasks.values())
    except BaseException:
        for task in tasks.values():
            task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)
        raise
    return dict(zip(tasks.keys(), results))


async def _timed_section(name: str, awaitable: Awaitable[Any]) -> Any:
    started = time.perf_counter()
    result = "error"
    with start_span(f"dashboard.{name}", {"dashboard.section": name}):
        try:
            value = await awaitable
            result = "ok"
            return value
        except asyncio.CancelledError:
            result = "cancelled"
            raise
        finally:
            record_dashboard_section(name, result, (time.perf_counter() - started) * 1000)


class DashboardOrchestrator:
    def __init__(
        self,
        *,
        users: UserRepository,
        projects: ProjectRepository,
        tasks: TaskRepository,
        activities: ActivityRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.activities = activities
        self.clock = clock
        self.membership = ProjectMembershipResolver(projects, tasks)
        self.stats = StatsAggregator(tasks, projects, users, self.membership)
        self.recent = RecentItemsFetcher(tasks, activities)
        self.project_summaries = ProjectSummaryBuilder(projects, tasks, self.membership)

    @classmethod
    def from_connection(cls, db: Any, clock: Callable[[], datetime] = utc_now) -> DashboardOrchestrator:
        return cls(
            users=factory.get_user_repository(db),
            projects=factory.get_project_repository(db),
            tasks=factory.get_task_repository(db),
            activities=factory.get_activity_repository(db),
            clock=clock,
        )

    def _context(self, caller: Caller, stats_days: int) -> DashboardContext:
        is_admin(caller)  # rejects unknown caller types
        return DashboardContext.create(caller, self.clock(), stats_days)

    async def get_dashboard(self, caller: Caller, options: DashboardOptions | None = None) -> DashboardSnapshot:
        options = options or DashboardOptions()
        started = time.perf_counter()
        role = getattr(caller, "role", "unknown")
        try:
            snapshot = await self._build_snapshot(caller, options)
        except DashboardError:
            record_dashboard_request(role, "error", (time.perf_counter() - started) * 1000)
            raise
        except Exception as exc:
            record_dashboard_request(role, "error", (time.perf_counter() - started) * 1000)
            logger.exception("Get dashboard data error")
            raise QueryFailed("Failed to get complete dashboard data") from exc

        duration_ms = (time.perf_counter() - started) * 1000
        record_dashboard_request(role, "ok", duration_ms)
        logger.info(
            "Dashboard data retrieved: user=%s role=%s tasks=%d activities=%d projects=%d (%.1fms)",
            caller.user_id,
            role,
            snapshot.metadata.dataRange.recentTasksCount,
            snapshot.metadata.dataRange.recentActivitiesCount,
            snapshot.metadata.dataRange.projectsCount,
            duration_ms,
        )
        return snapshot

    async def _build_snapshot(self, caller: Caller, options: DashboardOptions) -> DashboardSnapshot:
        context = self._context(caller, options.statsDays)

        needs_membership = options.includeStats or options.includeProjects
        if needs_membership and not is_admin(caller):
            membership = await _timed_section("membership", self.membership.resolve(caller.user_id))
            context = context.with_membership(membership)

        sections: dict[str, Awaitable[Any]] = {}
        if options.includeStats:
            sections["stats"] = _timed_section("stats", self.stats.compute(context))
        if options.includeRecentTasks:
            sections["recentTasks"] = _timed_section(
                "recent_tasks",
                self.recent.recent_tasks(
                    context,
                    limit=options.recentTasksLimit,
                    offset=options.recentTasksOffset,
                ),
            )
        if options.includeRecentActivities:
            sections["recentActivities"] = _timed_section(
                "recent_activities",
                self.recent.recent_activities(
                    context,
                    limit=options.recentActivitiesLimit,
                    offset=options.recentActivitiesOffset,
                ),
            )
        if options.includeProjects:
            sections["projects"] = _timed_section(
                "projects",
                self.project_summaries.build(
                    context,
                    limit=options.projectsLimit,
                    offset=options.projectsOffset,
                ),
            )

        results = await _gather_fail_fast(sections)

        projects = results.get("projects")
        if projects is not None:
            projects = filter_by_status(projects, options.projectsStatus)

        recent_tasks = results.get("recentTasks")
        recent_activities = results.get("recentActivities")
        metadata = DashboardMetadata(
            generatedAt=context.now_iso,
            userRole=caller.role,
            dataRange=DashboardDataRange(
                statsDays=options.statsDays,
                recentTasksCount=len(recent_tasks or []),
                recentActivitiesCount=len(recent_activities or []),
                projectsCount=len(projects or []),
            ),
        )
        return DashboardSnapshot(
            stats=results.get("stats"),
            recentTasks=recent_tasks,
            recentActivities=recent_activities,
            projects=projects,
            metadata=metadata,
        )

    # ── Single-section reads ──────────────────────────────────────

    async def get_stats(self, caller: Caller, days: int = config.DASHBOARD_STATS_DAYS) -> DashboardStats:
        _check_range("days", days, 1, MAX_DAYS)
        context = self._context(caller, days)
        with start_span("dashboard.stats", {"dashboard.section": "stats"}):
            return await self.stats.compute(context)

    async def get_recent_tasks(
        self,
        caller: Caller,
        limit: int = config.DASHBOARD_RECENT_LIMIT,
        offset: int = 0,
    ) -> list[RecentTaskView]:
        _check_range("limit", limit, 1, MAX_PAGE_SIZE)
        _check_range("offset", offset, 0)
        context = self._context(caller, config.DASHBOARD_STATS_DAYS)
        return await self.recent.recent_tasks(context, limit=limit, offset=offset)

    async def get_recent_activities(
        self,
        caller: Caller,
        limit: int = config.DASHBOARD_RECENT_LIMIT,
        offset: int = 0,
    ) -> list[RecentActivityView]:
        _check_range("limit", limit, 1, MAX_PAGE_SIZE)
        _check_range("offset", offset, 0)
        context = self._context(caller, config.DASHBOARD_STATS_DAYS)
        return await self.recent.recent_activities(context, limit=limit, offset=offset)

    async def get_projects(
        self,
        caller: Caller,
        limit: int = config.DASHBOARD_PROJECTS_LIMIT,
        offset: int = 0,
        status: str = "all",
    ) -> list[ProjectSummaryView]:
        _check_range("limit", limit, 1, MAX_PAGE_SIZE)
        _check_range("offset", offset, 0)
        if status not in ("all", "active", "completed"):
            raise InvalidOptions(f"Unsupported project status filter: {status}")
        context = self._context(caller, config.DASHBOARD_STATS_DAYS)
        projects = await self.project_summaries.build(context, limit=limit, offset=offset)
        return filter_by_status(projects, status)

    async def get_activity_summary(
        self,
        caller: Caller,
        days: int = config.ACTIVITY_SUMMARY_DAYS,
    ) -> ActivitySummary:
        """The caller's own activity in the trailing window, counted per action."""
        _check_range("days", days, 1, MAX_DAYS)
        context = self._context(caller, days)
        try:
            by_action = await self.activities.count_by_action(caller.user_id, context.window_start_iso)
        except DashboardError:
            raise
        except Exception as exc:
            logger.exception("Get activity summary error")
            raise as_dashboard_error(exc, "Failed to get activity summary") from exc

        return ActivitySummary(
            userId=caller.user_id,
            periodDays=days,
            totalActivities=sum(by_action.values()),
            actionsSummary=by_action,
        )
