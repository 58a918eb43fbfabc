from sitetrack.db.models.media_file import MediaFile
from sitetrack.db.models.milestone import Milestone
from sitetrack.db.models.phase import Phase
from sitetrack.db.models.progress_comment import ProgressComment
from sitetrack.db.models.project import Project
from sitetrack.db.models.task import Task
from sitetrack.db.models.user import User

__all__ = [
    "MediaFile",
    "Milestone",
    "Phase",
    "ProgressComment",
    "Project",
    "Task",
    "User",
]
