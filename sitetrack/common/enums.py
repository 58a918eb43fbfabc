import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"
    CLIENT = "client"


class ProjectStatus(str, enum.Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    DELAYED = "delayed"
    COMPLETED = "completed"


class TaskStatus(str, enum.Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    DELAYED = "delayed"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class MilestoneType(str, enum.Enum):
    INSPECTION = "inspection"
    APPROVAL = "approval"
    HANDOVER = "handover"


class MediaGrouping(str, enum.Enum):
    TASK = "task"
    DATE = "date"
    DAYS = "days"


class MoveDirection(str, enum.Enum):
    UP = "up"
    DOWN = "down"
