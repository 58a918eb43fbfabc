"""Row <-> record mapping at the storage boundary.

Rows are the dicts produced and consumed by :mod:`sitetrack.db.repository`; the
record types are strict pydantic models. Nothing outside this module knows the
column names.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sitetrack.core.tracking.schemas import (
    MediaFile,
    Milestone,
    Phase,
    ProgressComment,
    Project,
    Task,
    User,
)

Row = dict[str, Any]


def _utc(value: datetime) -> datetime:
    # Some backends hand back naive timestamps; they are stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def user_from_row(row: Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        name=row["name"],
        role=row["role"],
        password_hash=row["hashed_password"],
        assigned_projects=row.get("assigned_projects"),
    )


def user_to_row(user: User) -> Row:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "role": user.role.value,
        "hashed_password": user.password_hash,
        "assigned_projects": user.assigned_projects,
    }


def phase_from_row(row: Row) -> Phase:
    return Phase(
        id=row["id"],
        project_id=row["project_id"],
        name=row["name"],
        description=row.get("description"),
        start_date=row["start_date"],
        end_date=row["end_date"],
        color=row["color"],
        order=row["order_index"],
    )


def phase_to_row(phase: Phase) -> Row:
    return {
        "id": phase.id,
        "project_id": phase.project_id,
        "name": phase.name,
        "description": phase.description,
        "start_date": phase.start_date,
        "end_date": phase.end_date,
        "color": phase.color,
        "order_index": phase.order,
    }


def project_from_row(row: Row, phases: list[Phase] | None = None) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row.get("description"),
        start_date=row["start_date"],
        end_date=row["end_date"],
        status=row["status"],
        progress=row["progress"],
        phases=phases or [],
    )


def project_to_row(project: Project) -> Row:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "status": project.status.value,
        "progress": project.progress,
    }


def comment_from_row(row: Row) -> ProgressComment:
    return ProgressComment(
        id=row["id"],
        task_id=row["task_id"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        comment=row["comment"],
        previous_progress=row["previous_progress"],
        new_progress=row["new_progress"],
        timestamp=_utc(row["created_at"]),
    )


def comment_to_row(comment: ProgressComment) -> Row:
    return {
        "id": comment.id,
        "task_id": comment.task_id,
        "user_id": comment.user_id,
        "user_name": comment.user_name,
        "comment": comment.comment,
        "previous_progress": comment.previous_progress,
        "new_progress": comment.new_progress,
        "created_at": comment.timestamp,
    }


def task_from_row(
    row: Row,
    project_names: Mapping[str, str],
    comments: list[ProgressComment] | None = None,
) -> Task:
    # Rows for projects that are gone keep an empty name and so match no project
    return Task(
        id=row["id"],
        name=row["name"],
        project_id=row["project_id"],
        project=project_names.get(row["project_id"], ""),
        phase_id=row.get("phase_id"),
        start_date=row.get("start_date"),
        end_date=row.get("end_date"),
        due_date=row.get("due_date"),
        trade=row.get("trade") or "",
        priority=row["priority"],
        status=row["status"],
        progress=row["progress"],
        assigned_to=row.get("assigned_to"),
        progress_comments=comments or [],
    )


TASK_COLUMNS = {
    "name": "name",
    "project_id": "project_id",
    "phase_id": "phase_id",
    "start_date": "start_date",
    "end_date": "end_date",
    "due_date": "due_date",
    "trade": "trade",
    "priority": "priority",
    "status": "status",
    "progress": "progress",
    "assigned_to": "assigned_to",
}


def task_to_row(task: Task) -> Row:
    row = changes_to_row(task.model_dump(include=set(TASK_COLUMNS)), TASK_COLUMNS)
    row["id"] = task.id
    return row


def media_from_row(row: Row) -> MediaFile:
    return MediaFile(
        id=row["id"],
        task_id=row["task_id"],
        name=row["name"],
        url=row["url"],
        media_type=row["media_type"],
        uploaded_by=row["uploaded_by"],
        uploaded_by_name=row["uploaded_by_name"],
        description=row.get("description"),
        uploaded_at=_utc(row["created_at"]),
    )


def media_to_row(media: MediaFile) -> Row:
    return {
        "id": media.id,
        "task_id": media.task_id,
        "name": media.name,
        "url": media.url,
        "media_type": media.media_type.value,
        "uploaded_by": media.uploaded_by,
        "uploaded_by_name": media.uploaded_by_name,
        "description": media.description,
        "created_at": media.uploaded_at,
    }


def milestone_from_row(row: Row) -> Milestone:
    return Milestone(
        id=row["id"],
        task_id=row["task_id"],
        name=row["name"],
        milestone_type=row["milestone_type"],
        date=row["target_date"],
        completed=row["completed"],
    )


def milestone_to_row(milestone: Milestone) -> Row:
    return {
        "id": milestone.id,
        "task_id": milestone.task_id,
        "name": milestone.name,
        "milestone_type": milestone.milestone_type.value,
        "target_date": milestone.date,
        "completed": milestone.completed,
    }


# Partial-update column names for the records whose fields map 1:1 except for a rename
PROJECT_COLUMNS = {
    "name": "name",
    "description": "description",
    "start_date": "start_date",
    "end_date": "end_date",
    "status": "status",
    "progress": "progress",
}
PHASE_COLUMNS = {
    "name": "name",
    "description": "description",
    "start_date": "start_date",
    "end_date": "end_date",
    "color": "color",
    "order": "order_index",
}
MEDIA_COLUMNS = {"name": "name", "description": "description"}
MILESTONE_COLUMNS = {
    "name": "name",
    "milestone_type": "milestone_type",
    "date": "target_date",
    "completed": "completed",
}
USER_COLUMNS = {
    "username": "username",
    "name": "name",
    "role": "role",
    "password_hash": "hashed_password",
    "assigned_projects": "assigned_projects",
}


def changes_to_row(changes: Mapping[str, Any], columns: Mapping[str, str]) -> Row:
    return {
        columns[field]: getattr(value, "value", value)
        for field, value in changes.items()
        if field in columns
    }
