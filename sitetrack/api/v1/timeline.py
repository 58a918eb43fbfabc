from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from sitetrack.api.deps import get_current_user, get_store, visible_project
from sitetrack.core.timeline.aggregator import build_phase_groups, summarize_tasks
from sitetrack.core.timeline.layout import chart
from sitetrack.core.timeline.schemas import GanttPhase, TaskSummary, TimelineChart
from sitetrack.core.tracking.schemas import User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(prefix="/projects/{project_id}", tags=["Timeline"])


# ---------- Schemas ----------


class TimelineResponse(BaseModel):
    project_id: str
    project_name: str
    summary: TaskSummary
    groups: list[GanttPhase]
    chart: TimelineChart


# ---------- Endpoints ----------


@router.get("/timeline", response_model=TimelineResponse)
async def get_project_timeline(
    project_id: str,
    collapsed: list[str] = Query([], description="Group ids shown collapsed"),
    day_width: int | None = Query(None, ge=10, le=200, description="Pixels per day"),
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    groups = build_phase_groups(
        project,
        store.tasks,
        store.media,
        store.milestones,
        collapsed=collapsed,
    )
    return TimelineResponse(
        project_id=project.id,
        project_name=project.name,
        summary=summarize_tasks(store.tasks_for_project(project)),
        groups=groups,
        chart=chart(project, groups, day_width=day_width),
    )
