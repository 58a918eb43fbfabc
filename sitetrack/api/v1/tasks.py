from datetime import date

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from sitetrack.api.deps import (
    ensure_written,
    get_current_user,
    get_store,
    require_role,
    visible_project,
    visible_task,
)
from sitetrack.common.enums import TaskPriority, TaskStatus, UserRole
from sitetrack.common.exceptions import BadRequestError, NotFoundError
from sitetrack.core.tracking.schemas import ProgressComment, Project, Task, User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(prefix="/tasks", tags=["Tasks"])

admin_only = require_role(UserRole.ADMIN)


# ---------- Schemas ----------


class TaskCreateRequest(BaseModel):
    name: str
    project: str
    phase_id: str | None = None
    trade: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PLANNED
    progress: int = Field(0, ge=0, le=100)
    start_date: date | None = None
    end_date: date | None = None
    due_date: date | None = None
    assigned_to: str | None = None


class TaskUpdateRequest(BaseModel):
    name: str | None = None
    project: str | None = None
    phase_id: str | None = None
    trade: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    progress: int | None = Field(None, ge=0, le=100)
    start_date: date | None = None
    end_date: date | None = None
    due_date: date | None = None
    assigned_to: str | None = None


class ProgressUpdateRequest(BaseModel):
    progress: int
    comment: str


# ---------- Endpoints ----------


@router.get("", response_model=list[Task])
async def list_tasks(
    project_id: str | None = None,
    status: TaskStatus | None = None,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    if project_id:
        tasks = store.tasks_for_project(visible_project(store, current_user, project_id))
    else:
        names = {p.name for p in store.visible_projects(current_user)}
        tasks = [t for t in store.tasks if t.project in names]
    if status is not None:
        tasks = [t for t in tasks if t.status == status]
    return tasks


@router.post("", response_model=Task, status_code=201)
async def create_task(
    body: TaskCreateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = store.get_project_by_name(body.project)
    if not project:
        raise NotFoundError("Project", body.project)
    _check_phase(project, body.phase_id)

    task = await store.add_task(
        name=body.name,
        project=body.project,
        phase_id=body.phase_id,
        trade=body.trade,
        priority=body.priority,
        status=body.status,
        progress=body.progress,
        start_date=body.start_date,
        end_date=body.end_date,
        due_date=body.due_date,
        assigned_to=body.assigned_to,
        created_by=current_user.id,
    )
    return ensure_written(task)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    return visible_task(store, current_user, task_id)


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    changes = body.model_dump(exclude_unset=True)
    for key in ("name", "project", "priority", "status", "progress"):
        if key in changes and changes[key] is None:
            raise BadRequestError(f"{key} cannot be empty")

    project = store.get_project(task.project_id)
    if "project" in changes:
        project = store.get_project_by_name(changes["project"])
        if not project:
            raise NotFoundError("Project", changes["project"])
        if "phase_id" not in changes and project.id != task.project_id:
            changes["phase_id"] = None
    if changes.get("phase_id") and project:
        _check_phase(project, changes["phase_id"])

    return ensure_written(await store.update_task(task.id, changes))


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    ensure_written(await store.delete_task(task.id))
    return Response(status_code=204)


@router.post("/{task_id}/progress", response_model=Task)
async def update_progress(
    task_id: str,
    body: ProgressUpdateRequest,
    current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.MEMBER)),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    updated = await store.update_task_progress(
        task.id,
        body.progress,
        body.comment,
        user_id=current_user.id,
        user_name=current_user.name,
    )
    return ensure_written(updated)


@router.get("/{task_id}/comments", response_model=list[ProgressComment])
async def list_comments(
    task_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    return sorted(task.progress_comments, key=lambda c: c.timestamp, reverse=True)


def _check_phase(project: Project, phase_id: str | None) -> None:
    if phase_id and not any(p.id == phase_id for p in project.phases):
        raise BadRequestError(f"Phase '{phase_id}' does not belong to project '{project.name}'")
