import datetime
from datetime import date

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from sitetrack.api.deps import ensure_written, get_current_user, get_store, require_role, visible_task
from sitetrack.common.enums import MilestoneType, UserRole
from sitetrack.common.exceptions import BadRequestError, NotFoundError
from sitetrack.core.tracking.schemas import Milestone, User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(tags=["Milestones"])

admin_only = require_role(UserRole.ADMIN)


# ---------- Schemas ----------


class MilestoneCreateRequest(BaseModel):
    name: str
    milestone_type: MilestoneType
    date: date
    completed: bool = False


class MilestoneUpdateRequest(BaseModel):
    name: str | None = None
    milestone_type: MilestoneType | None = None
    date: datetime.date | None = None
    completed: bool | None = None


# ---------- Endpoints ----------


@router.get("/tasks/{task_id}/milestones", response_model=list[Milestone])
async def list_milestones(
    task_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    return sorted(store.milestones_for_task(task.id), key=lambda m: m.date)


@router.post("/tasks/{task_id}/milestones", response_model=Milestone, status_code=201)
async def create_milestone(
    task_id: str,
    body: MilestoneCreateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    milestone = await store.add_milestone(
        task.id,
        name=body.name,
        milestone_type=body.milestone_type,
        date=body.date,
        completed=body.completed,
    )
    return ensure_written(milestone)


@router.patch("/milestones/{milestone_id}", response_model=Milestone)
async def update_milestone(
    milestone_id: str,
    body: MilestoneUpdateRequest,
    current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.MEMBER)),
    store: ProjectStore = Depends(get_store),
):
    milestone = _verify_milestone(store, current_user, milestone_id)
    changes = body.model_dump(exclude_unset=True)
    if any(value is None for value in changes.values()):
        raise BadRequestError("Milestone fields cannot be empty")
    if "name" in changes and not changes["name"].strip():
        raise BadRequestError("Milestone name is required")

    return ensure_written(await store.update_milestone(milestone.id, changes))


@router.delete("/milestones/{milestone_id}", status_code=204)
async def delete_milestone(
    milestone_id: str,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    milestone = _verify_milestone(store, current_user, milestone_id)
    ensure_written(await store.delete_milestone(milestone.id))
    return Response(status_code=204)


def _verify_milestone(store: ProjectStore, user: User, milestone_id: str) -> Milestone:
    milestone = store.get_milestone(milestone_id)
    if not milestone:
        raise NotFoundError("Milestone", milestone_id)
    visible_task(store, user, milestone.task_id)
    return milestone
