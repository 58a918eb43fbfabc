from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sitetrack.api.deps import get_current_user, get_store
from sitetrack.common.exceptions import PermissionDeniedError
from sitetrack.common.logging import get_logger
from sitetrack.common.security import create_access_token, create_refresh_token, decode_token
from sitetrack.core.tracking.schemas import User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = get_logger("api.auth")


# ---------- Schemas ----------


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    role: str
    assigned_projects: list[str] | None = None


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        role=user.role.value,
        assigned_projects=user.assigned_projects,
    )


def _tokens_for(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token({"sub": user.id, "role": user.role.value}),
        refresh_token=create_refresh_token({"sub": user.id}),
    )


# ---------- Endpoints ----------


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, store: ProjectStore = Depends(get_store)):
    user = store.authenticate(body.username, body.password)
    if not user:
        logger.warning("Failed login for username=%s", body.username)
        raise PermissionDeniedError("Invalid username or password")
    return _tokens_for(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, store: ProjectStore = Depends(get_store)):
    try:
        payload = decode_token(body.refresh_token)
    except ValueError:
        raise PermissionDeniedError("Invalid refresh token")

    if payload.get("type") != "refresh":
        raise PermissionDeniedError("Invalid token type")

    user = store.get_user(payload.get("sub") or "")
    if not user:
        raise PermissionDeniedError("User not found")

    return _tokens_for(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return user_response(current_user)
