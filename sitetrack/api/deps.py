from typing import TypeVar

from fastapi import Depends, Header, Request

from sitetrack.common.enums import UserRole
from sitetrack.common.exceptions import ExternalServiceError, NotFoundError, PermissionDeniedError
from sitetrack.common.security import decode_token
from sitetrack.core.tracking.schemas import Project, Task, User
from sitetrack.core.tracking.store import ProjectStore
from sitetrack.integrations.storage import StorageClient

T = TypeVar("T")


def get_store(request: Request) -> ProjectStore:
    return request.app.state.store


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


async def get_current_user(
    authorization: str = Header(..., description="Bearer <token>"),
    store: ProjectStore = Depends(get_store),
) -> User:
    if not authorization.startswith("Bearer "):
        raise PermissionDeniedError("Invalid authorization header format")

    token = authorization[len("Bearer "):]
    try:
        payload = decode_token(token)
    except ValueError:
        raise PermissionDeniedError("Invalid or expired token")

    if payload.get("type") != "access":
        raise PermissionDeniedError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise PermissionDeniedError("Invalid token payload")

    user = store.get_user(user_id)
    if not user:
        raise NotFoundError("User")

    return user


def require_role(*roles: UserRole):
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise PermissionDeniedError(
                f"This action requires one of the following roles: {', '.join(r.value for r in roles)}"
            )
        return current_user

    return role_checker


def ensure_written(result: T | None) -> T:
    """Turn a mutation the store dropped into a 502 for the caller."""
    if result is None or result is False:
        raise ExternalServiceError("database", "the change could not be saved")
    return result


def visible_project(store: ProjectStore, user: User, project_id: str) -> Project:
    project = store.get_project(project_id)
    if not project:
        raise NotFoundError("Project", project_id)
    if not user.can_view(project.id):
        raise PermissionDeniedError("You do not have access to this project")
    return project


def visible_task(store: ProjectStore, user: User, task_id: str) -> Task:
    task = store.get_task(task_id)
    if not task:
        raise NotFoundError("Task", task_id)
    if not user.can_view(task.project_id):
        raise PermissionDeniedError("You do not have access to this task")
    return task
