"""Filtering and grouping of a project's media for the gallery views."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date, datetime, timedelta

from pydantic import BaseModel

from sitetrack.common.enums import MediaGrouping, MediaType
from sitetrack.core.tracking.schemas import MediaFile, Task

UNKNOWN_TASK = "Unknown Task"


class MediaGroup(BaseModel):
    label: str
    items: list[MediaFile]


def filter_media(
    media: Sequence[MediaFile],
    search: str | None = None,
    media_type: MediaType | None = None,
) -> list[MediaFile]:
    """Case-insensitive match on name, description or uploader name, plus an optional type."""
    needle = (search or "").lower()

    def matches(m: MediaFile) -> bool:
        if media_type is not None and m.media_type != media_type:
            return False
        if not needle:
            return True
        return (
            needle in m.name.lower()
            or needle in (m.description or "").lower()
            or needle in m.uploaded_by_name.lower()
        )

    return [m for m in media if matches(m)]


def recency_bucket(uploaded_at: datetime, today: date) -> str:
    day = uploaded_at.date()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    if day >= today - timedelta(days=7):
        return "This Week"
    if day >= today - timedelta(days=30):
        return "This Month"
    return "Older"


def _group(media: Sequence[MediaFile], label: Callable[[MediaFile], str]) -> list[MediaGroup]:
    groups: dict[str, list[MediaFile]] = {}
    for m in media:
        groups.setdefault(label(m), []).append(m)
    return [MediaGroup(label=k, items=v) for k, v in groups.items()]


def organize_media(
    media: Sequence[MediaFile],
    tasks: Sequence[Task],
    grouping: MediaGrouping,
    today: date | None = None,
) -> list[MediaGroup]:
    """Group media by owning task name, by upload day, or by recency bucket.

    Groups come out in the order their first item appears.
    """
    if grouping == MediaGrouping.TASK:
        names = {t.id: t.name for t in tasks}
        return _group(media, lambda m: names.get(m.task_id, UNKNOWN_TASK))
    if grouping == MediaGrouping.DATE:
        return _group(media, lambda m: m.uploaded_at.strftime("%a %b %d %Y"))

    today = today or date.today()
    return _group(media, lambda m: recency_bucket(m.uploaded_at, today))
