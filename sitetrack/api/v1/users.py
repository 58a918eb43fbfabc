from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from sitetrack.api.deps import ensure_written, get_store, require_role
from sitetrack.api.v1.auth import UserResponse, user_response
from sitetrack.common.enums import UserRole
from sitetrack.common.exceptions import BadRequestError, NotFoundError
from sitetrack.core.tracking.schemas import User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = require_role(UserRole.ADMIN)


# ---------- Schemas ----------


class UserCreate(BaseModel):
    username: str
    name: str
    password: str
    role: UserRole = UserRole.MEMBER
    assigned_projects: list[str] | None = None


class UserUpdate(BaseModel):
    username: str | None = None
    name: str | None = None
    password: str | None = None
    role: UserRole | None = None
    assigned_projects: list[str] | None = None


# ---------- Endpoints ----------


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: UserRole | None = None,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    return [user_response(u) for u in store.users if role is None or u.role == role]


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreate,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    _check_assignments(store, body.assigned_projects)
    user = await store.add_user(
        username=body.username,
        name=body.name,
        role=body.role,
        password=body.password,
        assigned_projects=body.assigned_projects,
    )
    return user_response(ensure_written(user))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    if not store.get_user(user_id):
        raise NotFoundError("User", user_id)
    _check_assignments(store, body.assigned_projects)

    changes = body.model_dump(exclude_unset=True)
    if changes.get("role", "") is None:
        raise BadRequestError("Role cannot be empty")
    user = await store.update_user(user_id, changes)
    return user_response(ensure_written(user))


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    current_user: User = Depends(admin_only),
    store: ProjectStore = Depends(get_store),
):
    if not store.get_user(user_id):
        raise NotFoundError("User", user_id)
    if user_id == current_user.id:
        raise BadRequestError("You cannot delete your own account")

    ensure_written(await store.delete_user(user_id))
    return Response(status_code=204)


def _check_assignments(store: ProjectStore, project_ids: list[str] | None) -> None:
    unknown = [pid for pid in project_ids or [] if not store.get_project(pid)]
    if unknown:
        raise BadRequestError(f"Unknown projects: {', '.join(unknown)}")
