"""Date -> pixel geometry for the Gantt timeline.

All arithmetic is in whole calendar days measured from the window start. A missing
date makes every value derived from it NaN instead of raising, and inverted or
out-of-window spans degrade to a one-day bar. Callers that serialise geometry go
through :func:`chart`, which emits non-finite values as ``None``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from sitetrack.config import settings
from sitetrack.core.timeline.schemas import (
    DateColumn,
    GanttPhase,
    GanttTask,
    MilestoneMarker,
    PhaseRow,
    TaskRow,
    TimelineChart,
)
from sitetrack.core.tracking.schemas import Project

DAY = timedelta(days=1)


def _days_from(origin: date, value: date | None) -> float:
    if value is None:
        return math.nan
    return (value - origin) / DAY


def _floor(x: float) -> float:
    return math.floor(x) if math.isfinite(x) else x


def _ceil(x: float) -> float:
    return math.ceil(x) if math.isfinite(x) else x


# NaN in either argument gives NaN
def _max(a: float, b: float) -> float:
    return math.nan if math.isnan(a) or math.isnan(b) else max(a, b)


def _min(a: float, b: float) -> float:
    return math.nan if math.isnan(a) or math.isnan(b) else min(a, b)


def _finite(x: float) -> float | None:
    return x if math.isfinite(x) else None


@dataclass(frozen=True)
class TaskBar:
    offset_start: float
    offset_end: float
    duration: float
    left: float
    width: float


class TimelineLayout:
    def __init__(
        self,
        start: date,
        end: date,
        day_width: float | None = None,
        marker_size: float | None = None,
    ):
        self.start = start
        self.end = end
        self.day_width = day_width if day_width is not None else settings.GANTT_DAY_WIDTH
        self.marker_size = marker_size if marker_size is not None else settings.MILESTONE_MARKER_SIZE
        self.total_days = max(0, _ceil(_days_from(start, end)))

    @classmethod
    def for_project(cls, project: Project, day_width: float | None = None) -> TimelineLayout:
        """Window covering the project with its end date included as the last column."""
        return cls(project.start_date, project.end_date + DAY, day_width=day_width)

    @property
    def chart_width(self) -> float:
        return self.total_days * self.day_width

    def date_grid(self) -> list[date]:
        return [self.start + DAY * i for i in range(self.total_days)]

    def task_bar(self, task_start: date | None, task_end: date | None) -> TaskBar:
        offset_start = _max(0, _floor(_days_from(self.start, task_start)))
        offset_end = _min(self.total_days, _ceil(_days_from(self.start, task_end)))
        duration = offset_end - offset_start
        return TaskBar(
            offset_start=offset_start,
            offset_end=offset_end,
            duration=duration,
            left=offset_start * self.day_width,
            width=_max(duration * self.day_width, self.day_width),
        )

    def milestone_offset(self, value: date | None) -> float:
        # Unclipped: markers outside the window land outside the chart
        return _floor(_days_from(self.start, value)) * self.day_width - self.marker_size / 2

    @staticmethod
    def progress_width(progress: float, bar_width: float) -> float:
        return progress * bar_width / 100


def _task_row(layout: TimelineLayout, task: GanttTask) -> TaskRow:
    bar = layout.task_bar(task.start_date, task.end_date)
    return TaskRow(
        task_id=task.id,
        name=task.name,
        status=task.status,
        progress=task.progress,
        left=_finite(bar.left),
        width=_finite(bar.width),
        progress_width=_finite(layout.progress_width(task.progress, bar.width)),
        milestones=[
            MilestoneMarker(
                id=m.id,
                name=m.name,
                milestone_type=m.milestone_type.value,
                date=m.date,
                completed=m.completed,
                left=_finite(layout.milestone_offset(m.date)),
            )
            for m in task.milestones
        ],
    )


def chart(
    project: Project,
    groups: Sequence[GanttPhase],
    day_width: float | None = None,
) -> TimelineChart:
    """Lay out grouped tasks over the project's date window.

    Collapsed groups keep their header row but contribute no task rows.
    """
    layout = TimelineLayout.for_project(project, day_width=day_width)
    columns = [
        DateColumn(
            date=day,
            month=day.strftime("%b"),
            day=day.day,
            left=index * layout.day_width,
        )
        for index, day in enumerate(layout.date_grid())
    ]
    rows = [
        PhaseRow(
            phase_id=group.id,
            name=group.name,
            color=group.color,
            task_count=len(group.tasks),
            collapsed=group.collapsed,
            tasks=[] if group.collapsed else [_task_row(layout, t) for t in group.tasks],
        )
        for group in groups
    ]
    return TimelineChart(
        start_date=layout.start,
        end_date=project.end_date,
        day_width=layout.day_width,
        total_days=layout.total_days,
        chart_width=layout.chart_width,
        columns=columns,
        phases=rows,
    )
