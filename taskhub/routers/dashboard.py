"""Dashboard router: the combined snapshot plus single-section reads."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Request

from taskhub import config
from taskhub.auth import CallerDep
from taskhub.errors import StoreUnavailable
from taskhub.models import ApiResponse, ProjectsStatusFilter
from taskhub.services.dashboard import DashboardOrchestrator, build_options

dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

DaysParam = Annotated[int, Query(ge=1, le=365)]
LimitParam = Annotated[int, Query(ge=1, le=100)]
OffsetParam = Annotated[int, Query(ge=0)]


def _get_orchestrator(request: Request) -> DashboardOrchestrator:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise StoreUnavailable("Database not initialized")
    return DashboardOrchestrator.from_connection(db)


def _envelope(data, message: str) -> dict:
    return ApiResponse(data=data, message=message).model_dump()


@dashboard_router.get("")
async def get_dashboard(
    request: Request,
    caller: CallerDep,
    statsDays: DaysParam = config.DASHBOARD_STATS_DAYS,
    recentTasksLimit: LimitParam = config.DASHBOARD_RECENT_LIMIT,
    recentTasksOffset: OffsetParam = 0,
    recentActivitiesLimit: LimitParam = config.DASHBOARD_RECENT_LIMIT,
    recentActivitiesOffset: OffsetParam = 0,
    projectsLimit: LimitParam = config.DASHBOARD_PROJECTS_LIMIT,
    projectsOffset: OffsetParam = 0,
    projectsStatus: ProjectsStatusFilter = "all",
    includeStats: bool = True,
    includeRecentTasks: bool = True,
    includeRecentActivities: bool = True,
    includeProjects: bool = True,
):
    """Complete dashboard snapshot; sections switched off are left out of ``data``."""
    options = build_options(
        statsDays=statsDays,
        recentTasksLimit=recentTasksLimit,
        recentTasksOffset=recentTasksOffset,
        recentActivitiesLimit=recentActivitiesLimit,
        recentActivitiesOffset=recentActivitiesOffset,
        projectsLimit=projectsLimit,
        projectsOffset=projectsOffset,
        projectsStatus=projectsStatus,
        includeStats=includeStats,
        includeRecentTasks=includeRecentTasks,
        includeRecentActivities=includeRecentActivities,
        includeProjects=includeProjects,
    )
    snapshot = await _get_orchestrator(request).get_dashboard(caller, options)
    return _envelope(snapshot.model_dump(exclude_none=True), "Dashboard data retrieved successfully")


@dashboard_router.get("/stats")
async def get_dashboard_stats(
    request: Request,
    caller: CallerDep,
    days: DaysParam = config.DASHBOARD_STATS_DAYS,
):
    stats = await _get_orchestrator(request).get_stats(caller, days)
    return _envelope(stats.model_dump(), "Dashboard statistics retrieved successfully")


@dashboard_router.get("/recent-tasks")
async def get_recent_tasks(
    request: Request,
    caller: CallerDep,
    limit: LimitParam = config.DASHBOARD_RECENT_LIMIT,
    offset: OffsetParam = 0,
):
    tasks = await _get_orchestrator(request).get_recent_tasks(caller, limit, offset)
    return _envelope([t.model_dump() for t in tasks], "Recent tasks retrieved successfully")


@dashboard_router.get("/recent-activities")
async def get_recent_activities(
    request: Request,
    caller: CallerDep,
    limit: LimitParam = config.DASHBOARD_RECENT_LIMIT,
    offset: OffsetParam = 0,
):
    activities = await _get_orchestrator(request).get_recent_activities(caller, limit, offset)
    return _envelope([a.model_dump() for a in activities], "Recent activities retrieved successfully")


@dashboard_router.get("/projects")
async def get_projects(
    request: Request,
    caller: CallerDep,
    limit: LimitParam = config.DASHBOARD_PROJECTS_LIMIT,
    offset: OffsetParam = 0,
    status: ProjectsStatusFilter = "all",
):
    projects = await _get_orchestrator(request).get_projects(caller, limit, offset, status)
    return _envelope([p.model_dump() for p in projects], "Projects retrieved successfully")


@dashboard_router.get("/activity-summary")
async def get_activity_summary(
    request: Request,
    caller: CallerDep,
    days: DaysParam = config.ACTIVITY_SUMMARY_DAYS,
):
    summary = await _get_orchestrator(request).get_activity_summary(caller, days)
    return _envelope(summary.model_dump(), "User activity summary retrieved successfully")
