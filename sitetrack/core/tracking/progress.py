from sitetrack.common.enums import TaskStatus
from sitetrack.common.exceptions import BadRequestError


def derive_status(new_progress: int) -> TaskStatus:
    """Status implied by a progress value on the progress-update path."""
    if new_progress == 100:
        return TaskStatus.COMPLETED
    if new_progress > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PLANNED


def clean_progress_input(new_progress: int, comment: str | None) -> str:
    """Validate a progress update before anything is written; returns the stripped comment."""
    if not 0 <= new_progress <= 100:
        raise BadRequestError("Progress must be between 0 and 100")
    text = (comment or "").strip()
    if not text:
        raise BadRequestError("A comment is required when updating progress")
    return text
