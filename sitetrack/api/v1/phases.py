from datetime import date

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from sitetrack.api.deps import ensure_written, get_current_user, get_store, require_role, visible_project
from sitetrack.common.enums import MoveDirection, UserRole
from sitetrack.common.exceptions import BadRequestError, NotFoundError
from sitetrack.core.tracking.schemas import Phase, User
from sitetrack.core.tracking.store import DEFAULT_PHASE_COLOR, ProjectStore

router = APIRouter(prefix="/projects/{project_id}/phases", tags=["Phases"])

admin_only = require_role(UserRole.ADMIN)

_HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


# ---------- Schemas ----------


class PhaseCreateRequest(BaseModel):
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    color: str = Field(DEFAULT_PHASE_COLOR, pattern=_HEX_COLOR)


class PhaseUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    color: str | None = Field(None, pattern=_HEX_COLOR)


class PhaseOrderRequest(BaseModel):
    phase_ids: list[str]


class PhaseMoveRequest(BaseModel):
    direction: MoveDirection


# ---------- Endpoints ----------


@router.get("", response_model=list[Phase])
async def list_phases(
    project_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    return visible_project(store, current_user, project_id).ordered_phases()


@router.post("", response_model=Phase, status_code=201)
async def create_phase(
    project_id: str,
    body: PhaseCreateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    phase = await store.add_phase(
        project.id,
        name=body.name,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date,
        color=body.color,
    )
    return ensure_written(phase)


@router.put("/order", response_model=list[Phase])
async def reorder_phases(
    project_id: str,
    body: PhaseOrderRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    return ensure_written(await store.reorder_phases(project.id, body.phase_ids))


@router.post("/{phase_id}/move", response_model=list[Phase])
async def move_phase(
    project_id: str,
    phase_id: str,
    body: PhaseMoveRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = _verify_phase(store, current_user, project_id, phase_id)
    return ensure_written(await store.move_phase(project, phase_id, body.direction))


@router.patch("/{phase_id}", response_model=Phase)
async def update_phase(
    project_id: str,
    phase_id: str,
    body: PhaseUpdateRequest,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = _verify_phase(store, current_user, project_id, phase_id)
    changes = body.model_dump(exclude_unset=True)
    for key in ("name", "start_date", "end_date", "color"):
        if key in changes and changes[key] is None:
            raise BadRequestError(f"{key} cannot be empty")
    if "name" in changes and not changes["name"].strip():
        raise BadRequestError("Phase name is required")

    return ensure_written(await store.update_phase(project, phase_id, changes))


@router.delete("/{phase_id}", status_code=204)
async def delete_phase(
    project_id: str,
    phase_id: str,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    project = _verify_phase(store, current_user, project_id, phase_id)
    ensure_written(await store.delete_phase(project, phase_id))
    return Response(status_code=204)


def _verify_phase(store: ProjectStore, user: User, project_id: str, phase_id: str) -> str:
    project = visible_project(store, user, project_id)
    if not store.get_phase(project.id, phase_id):
        raise NotFoundError("Phase", phase_id)
    return project.id
