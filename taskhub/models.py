"""Pydantic models: store records and the dashboard view types sent to the frontend."""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from taskhub import config

Role = Literal["user", "admin"]
TaskStatus = Literal["todo", "in-progress", "done"]
TaskPriority = Literal["low", "medium", "high"]
ProjectsStatusFilter = Literal["all", "active", "completed"]

TASK_STATUS_TODO = "todo"
TASK_STATUS_IN_PROGRESS = "in-progress"
TASK_STATUS_DONE = "done"

UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_USER = "Unknown User"


# ── Store records ──────────────────────────────────────────────────
# Immutable snapshots of rows owned by the store. Timestamps are UTC ISO strings.

class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class UserRecord(_Record):
    id: str
    username: str
    email: str = ""
    role: Role = "user"
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


class ProjectRecord(_Record):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


class TaskRecord(_Record):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    assignee_id: Optional[str] = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    due_date: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    deleted_at: Optional[str] = None


class ActivityRecord(_Record):
    id: str
    user_id: str
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    action: str
    description: Optional[str] = None
    created_at: str = ""


# ── Dashboard views ────────────────────────────────────────────────

class DashboardStats(BaseModel):
    totalTasks: int = Field(0, ge=0)
    completedTasks: int = Field(0, ge=0)
    inProgressTasks: int = Field(0, ge=0)
    overdueTasks: int = Field(0, ge=0)
    totalProjects: int = Field(0, ge=0)
    activeProjects: int = Field(0, ge=0)
    completedProjects: int = Field(0, ge=0)
    totalUsers: int = Field(0, ge=0)   # admin only
    activeUsers: int = Field(0, ge=0)  # admin only


class RecentTaskView(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    dueDate: Optional[str] = None
    projectId: str
    projectName: str = UNKNOWN_PROJECT
    assigneeId: Optional[str] = None
    assigneeName: Optional[str] = None
    createdAt: str
    updatedAt: str


class RecentActivityView(BaseModel):
    id: str
    action: str
    description: str = ""
    userId: str
    userName: str = UNKNOWN_USER
    projectId: Optional[str] = None
    projectName: Optional[str] = None
    taskId: Optional[str] = None
    taskTitle: Optional[str] = None
    createdAt: str


class ProjectSummaryView(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    taskCount: int = Field(0, ge=0)
    completedTaskCount: int = Field(0, ge=0)
    progressPercentage: int = Field(0, ge=0, le=100)
    createdBy: str
    creatorName: str = UNKNOWN_USER
    createdAt: str
    updatedAt: str


class DashboardDataRange(BaseModel):
    statsDays: int
    recentTasksCount: int = 0
    recentActivitiesCount: int = 0
    projectsCount: int = 0


class DashboardMetadata(BaseModel):
    generatedAt: str
    userRole: Role
    dataRange: DashboardDataRange


class DashboardSnapshot(BaseModel):
    stats: Optional[DashboardStats] = None
    recentTasks: Optional[list[RecentTaskView]] = None
    recentActivities: Optional[list[RecentActivityView]] = None
    projects: Optional[list[ProjectSummaryView]] = None
    metadata: DashboardMetadata


class ActivitySummary(BaseModel):
    userId: str
    periodDays: int
    totalActivities: int = 0
    actionsSummary: dict[str, int] = Field(default_factory=dict)


# ── Request options ────────────────────────────────────────────────

class DashboardOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    statsDays: int = Field(config.DASHBOARD_STATS_DAYS, ge=1, le=365)
    recentTasksLimit: int = Field(config.DASHBOARD_RECENT_LIMIT, ge=1, le=100)
    recentTasksOffset: int = Field(0, ge=0)
    recentActivitiesLimit: int = Field(config.DASHBOARD_RECENT_LIMIT, ge=1, le=100)
    recentActivitiesOffset: int = Field(0, ge=0)
    projectsLimit: int = Field(config.DASHBOARD_PROJECTS_LIMIT, ge=1, le=100)
    projectsOffset: int = Field(0, ge=0)
    projectsStatus: ProjectsStatusFilter = "all"
    includeStats: bool = True
    includeRecentTasks: bool = True
    includeRecentActivities: bool = True
    includeProjects: bool = True


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    message: str = ""
