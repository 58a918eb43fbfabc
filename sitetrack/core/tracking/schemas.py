"""Typed domain records held by the project store."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from sitetrack.common.enums import (
    MediaType,
    MilestoneType,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)


class Phase(BaseModel):
    id: str
    project_id: str
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    color: str = "#8B5CF6"
    order: int = 0


class Project(BaseModel):
    id: str
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    status: ProjectStatus = ProjectStatus.PLANNED
    progress: int = 0
    phases: list[Phase] = Field(default_factory=list)

    def ordered_phases(self) -> list[Phase]:
        return sorted(self.phases, key=lambda p: p.order)


class ProgressComment(BaseModel):
    id: str
    task_id: str
    user_id: str
    user_name: str
    comment: str
    previous_progress: int
    new_progress: int
    timestamp: datetime

    model_config = {"frozen": True}


class Task(BaseModel):
    id: str
    name: str
    project_id: str
    project: str
    phase_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    due_date: date | None = None
    trade: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PLANNED
    progress: int = 0
    assigned_to: str | None = None
    progress_comments: list[ProgressComment] = Field(default_factory=list)


class MediaFile(BaseModel):
    id: str
    task_id: str
    name: str
    url: str
    media_type: MediaType
    uploaded_by: str
    uploaded_by_name: str
    description: str | None = None
    uploaded_at: datetime


class Milestone(BaseModel):
    id: str
    task_id: str
    name: str
    milestone_type: MilestoneType
    date: date
    completed: bool = False


class User(BaseModel):
    id: str
    username: str
    name: str
    role: UserRole
    password_hash: str
    assigned_projects: list[str] | None = None

    def can_view(self, project_id: str) -> bool:
        if self.role != UserRole.CLIENT or self.assigned_projects is None:
            return True
        return project_id in self.assigned_projects
