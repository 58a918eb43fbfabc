import uuid
from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from sitetrack.common.enums import MilestoneType
from sitetrack.db.base import BaseModel


class Milestone(BaseModel):
    __tablename__ = "milestones"

    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    milestone_type: Mapped[MilestoneType] = mapped_column(String(20), nullable=False)
    target_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
