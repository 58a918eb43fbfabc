from datetime import date, datetime

from pydantic import BaseModel, Field

from sitetrack.common.enums import ProjectStatus, UserRole


class ProjectProgress(BaseModel):
    id: str
    name: str
    status: ProjectStatus
    start_date: date
    end_date: date
    total_tasks: int
    completed_tasks: int
    overall_progress: int


class UpcomingTask(BaseModel):
    task_id: str
    name: str
    project: str
    due_date: date


class ProgressUpdate(BaseModel):
    task_id: str
    task_name: str
    project: str
    user_name: str
    previous_progress: int
    new_progress: int
    comment: str
    timestamp: datetime


class AdminStats(BaseModel):
    total_projects: int
    active_projects: int
    delayed_projects: int
    total_tasks: int
    completed_tasks: int
    total_users: int


class MemberStats(BaseModel):
    assigned_tasks: int
    active_tasks: int
    recent_uploads: int


class DashboardSummary(BaseModel):
    role: UserRole
    projects: list[ProjectProgress] = Field(default_factory=list)
    upcoming: list[UpcomingTask] = Field(default_factory=list)
    recent_updates: list[ProgressUpdate] = Field(default_factory=list)
    admin: AdminStats | None = None
    member: MemberStats | None = None
