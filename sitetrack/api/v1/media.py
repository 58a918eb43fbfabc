"""Task media attachments and the per-project gallery."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from pydantic import BaseModel

from sitetrack.api.deps import (
    ensure_written,
    get_current_user,
    get_storage,
    get_store,
    require_role,
    visible_project,
    visible_task,
)
from sitetrack.common.enums import MediaGrouping, MediaType, UserRole
from sitetrack.common.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from sitetrack.common.logging import get_logger
from sitetrack.common.pagination import PaginatedResponse, PaginationParams, paginate, total_pages
from sitetrack.config import settings
from sitetrack.core.media.gallery import MediaGroup, filter_media, organize_media
from sitetrack.core.tracking.schemas import MediaFile, User
from sitetrack.core.tracking.store import ProjectStore
from sitetrack.integrations.storage import StorageClient

router = APIRouter(tags=["Media"])

logger = get_logger("api.media")

contributors = require_role(UserRole.ADMIN, UserRole.MEMBER)


# ---------- Schemas ----------


class MediaLinkRequest(BaseModel):
    name: str
    url: str
    media_type: MediaType
    description: str | None = None


class MediaUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None


class MediaGalleryResponse(PaginatedResponse[MediaFile]):
    pass


class OrganizedMediaResponse(BaseModel):
    grouping: MediaGrouping
    total: int
    groups: list[MediaGroup]


# ---------- Endpoints ----------


@router.get("/tasks/{task_id}/media", response_model=list[MediaFile])
async def list_task_media(
    task_id: str,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    return store.media_for_task(task.id)


@router.post("/tasks/{task_id}/media", response_model=MediaFile, status_code=201)
async def attach_media(
    task_id: str,
    body: MediaLinkRequest,
    current_user: User = Depends(contributors),
    store: ProjectStore = Depends(get_store),
):
    task = visible_task(store, current_user, task_id)
    media = await store.add_media(
        task.id,
        name=body.name,
        url=body.url,
        media_type=body.media_type,
        description=body.description,
        uploaded_by=current_user.id,
        uploaded_by_name=current_user.name,
    )
    return ensure_written(media)


@router.post("/tasks/{task_id}/media/upload", response_model=MediaFile, status_code=201)
async def upload_media(
    task_id: str,
    file: UploadFile = File(...),
    name: str | None = Form(None),
    description: str | None = Form(None),
    current_user: User = Depends(contributors),
    store: ProjectStore = Depends(get_store),
    storage: StorageClient = Depends(get_storage),
):
    task = visible_task(store, current_user, task_id)
    media_type = _media_type_for(file.content_type)

    content = await file.read()
    if not content:
        raise BadRequestError("Uploaded file is empty")
    if len(content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise BadRequestError(f"File exceeds the {settings.MAX_UPLOAD_MB} MB upload limit")

    stored = await storage.upload_file(
        content,
        file.filename or "upload",
        content_type=file.content_type or "application/octet-stream",
        folder=f"tasks/{task.id}",
    )
    media = await store.add_media(
        task.id,
        name=(name or "").strip() or stored.filename,
        url=stored.url,
        media_type=media_type,
        description=description,
        uploaded_by=current_user.id,
        uploaded_by_name=current_user.name,
    )
    if media is None:
        await storage.delete_file(stored.file_key)
    return ensure_written(media)


@router.patch("/media/{media_id}", response_model=MediaFile)
async def update_media(
    media_id: str,
    body: MediaUpdateRequest,
    current_user: User = Depends(contributors),
    store: ProjectStore = Depends(get_store),
):
    media = _verify_media(store, current_user, media_id)
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise BadRequestError("Media name is required")

    return ensure_written(await store.update_media(media.id, changes))


@router.delete("/media/{media_id}", status_code=204)
async def delete_media(
    media_id: str,
    current_user: User = Depends(contributors),
    store: ProjectStore = Depends(get_store),
    storage: StorageClient = Depends(get_storage),
):
    media = _verify_media(store, current_user, media_id)
    if current_user.role != UserRole.ADMIN and media.uploaded_by != current_user.id:
        raise PermissionDeniedError("Only the uploader or an admin can delete this file")

    ensure_written(await store.delete_media(media.id))
    file_key = storage.key_for_url(media.url)
    if file_key:
        await storage.delete_file(file_key)
    return Response(status_code=204)


@router.get("/projects/{project_id}/media", response_model=MediaGalleryResponse)
async def list_project_media(
    project_id: str,
    media_type: MediaType | None = None,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
    params: PaginationParams = Depends(),
):
    project = visible_project(store, current_user, project_id)
    media = filter_media(store.media_for_project(project), params.search, media_type)
    if not params.sort_by:
        params.sort_by = "uploaded_at"

    items, total = paginate(media, params)
    return MediaGalleryResponse(
        items=items,
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=total_pages(total, params.page_size),
    )


@router.get("/projects/{project_id}/media/organized", response_model=OrganizedMediaResponse)
async def organize_project_media(
    project_id: str,
    grouping: MediaGrouping = MediaGrouping.TASK,
    media_type: MediaType | None = None,
    search: str | None = None,
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    project = visible_project(store, current_user, project_id)
    media = filter_media(store.media_for_project(project), search, media_type)
    groups = organize_media(media, store.tasks_for_project(project), grouping)
    return OrganizedMediaResponse(grouping=grouping, total=len(media), groups=groups)


def _media_type_for(content_type: str | None) -> MediaType:
    if content_type and content_type.startswith("image/"):
        return MediaType.IMAGE
    if content_type and content_type.startswith("video/"):
        return MediaType.VIDEO
    logger.warning("Rejected upload with content type %s", content_type)
    raise BadRequestError("Only image and video files can be uploaded")


def _verify_media(store: ProjectStore, user: User, media_id: str) -> MediaFile:
    media = store.get_media(media_id)
    if not media:
        raise NotFoundError("Media", media_id)
    visible_task(store, user, media.task_id)
    return media
