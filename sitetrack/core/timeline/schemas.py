from datetime import date

from pydantic import BaseModel, Field

from sitetrack.common.enums import TaskPriority, TaskStatus
from sitetrack.core.tracking.schemas import MediaFile, Milestone, ProgressComment


# ---------- Hierarchy ----------


class GanttTask(BaseModel):
    id: str
    name: str
    project: str
    phase_id: str | None = None
    start_date: date | None
    end_date: date | None
    trade: str
    priority: TaskPriority
    status: TaskStatus
    progress: int
    assigned_to: str | None = None
    media: list[MediaFile] = Field(default_factory=list)
    media_count: int = 0
    progress_comments: list[ProgressComment] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)


class GanttPhase(BaseModel):
    id: str
    name: str
    color: str
    start_date: date | None = None
    end_date: date | None = None
    tasks: list[GanttTask] = Field(default_factory=list)
    collapsed: bool = False


class TaskSummary(BaseModel):
    total: int
    completed: int
    active: int
    by_status: dict[str, int]
    overall_progress: int


# ---------- Chart geometry ----------
# None marks geometry derived from a missing date.


class DateColumn(BaseModel):
    date: date
    month: str
    day: int
    left: float


class MilestoneMarker(BaseModel):
    id: str
    name: str
    milestone_type: str
    date: date
    completed: bool
    left: float | None


class TaskRow(BaseModel):
    task_id: str
    name: str
    status: TaskStatus
    progress: int
    left: float | None
    width: float | None
    progress_width: float | None
    milestones: list[MilestoneMarker] = Field(default_factory=list)


class PhaseRow(BaseModel):
    phase_id: str
    name: str
    color: str
    task_count: int
    collapsed: bool
    tasks: list[TaskRow] = Field(default_factory=list)


class TimelineChart(BaseModel):
    start_date: date
    end_date: date
    day_width: float
    total_days: int
    chart_width: float
    columns: list[DateColumn]
    phases: list[PhaseRow]
