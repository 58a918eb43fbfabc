from datetime import date

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from sitetrack.api.deps import ensure_written, get_current_user, get_store, require_role, visible_project
from sitetrack.common.enums import ProjectStatus, UserRole
from sitetrack.common.exceptions import BadRequestError
from sitetrack.common.pagination import PaginatedResponse, PaginationParams, paginate, total_pages
from sitetrack.core.timeline.aggregator import summarize_tasks
from sitetrack.core.timeline.schemas import TaskSummary
from sitetrack.core.tracking.schemas import Phase, Project, User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(prefix="/projects", tags=["Projects"])

admin_only = require_role(UserRole.ADMIN)


# ---------- Schemas ----------


class ProjectCreateRequest(BaseModel):
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    status: ProjectStatus = ProjectStatus.PLANNED
    progress: int = Field(0, ge=0, le=100)


class ProjectUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus | None = None
    progress: int | None = Field(None, ge=0, le=100)


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: str | None
    start_date: date
    end_date: date
    status: ProjectStatus
    progress: int
    phases: list[Phase]

    @classmethod
    def from_project(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            start_date=project.start_date,
            end_date=project.end_date,
            status=project.status,
            progress=project.progress,
            phases=project.ordered_phases(),
        )


class ProjectListResponse(PaginatedResponse[ProjectResponse]):
    pass


# ---------- Endpoints ----------


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = await store.add_project(
        name=body.name,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date,
        status=body.status,
        progress=body.progress,
        created_by=current_user.id,
    )
    return ProjectResponse.from_project(ensure_written(project))


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    status: ProjectStatus | None = None,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
    params: PaginationParams = Depends(),
):
    projects = store.visible_projects(current_user)
    if status is not None:
        projects = [p for p in projects if p.status == status]
    if params.search:
        needle = params.search.lower()
        projects = [
            p for p in projects
            if needle in p.name.lower() or needle in (p.description or "").lower()
        ]

    items, total = paginate(projects, params)
    return ProjectListResponse(
        items=[ProjectResponse.from_project(p) for p in items],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=total_pages(total, params.page_size),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    return ProjectResponse.from_project(visible_project(store, current_user, project_id))


@router.get("/{project_id}/stats", response_model=TaskSummary)
async def get_project_stats(
    project_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    return summarize_tasks(store.tasks_for_project(project))


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    body: ProjectUpdateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    changes = body.model_dump(exclude_unset=True)
    for key in ("name", "start_date", "end_date", "status", "progress"):
        if key in changes and changes[key] is None:
            raise BadRequestError(f"{key} cannot be empty")

    updated = await store.update_project(project.id, changes)
    return ProjectResponse.from_project(ensure_written(updated))


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    ensure_written(await store.delete_project(project.id))
    return Response(status_code=204)
