"""Phase -> task hierarchy for a single project.

Pure functions over the store's flat collections. Nothing here writes, and calling
``build_phase_groups`` twice with the same inputs gives equal results.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Iterable, Sequence
from datetime import date

from sitetrack.common.enums import TaskStatus
from sitetrack.core.timeline.schemas import GanttPhase, GanttTask, TaskSummary
from sitetrack.core.tracking.schemas import MediaFile, Milestone, Project, Task

UNASSIGNED_GROUP_ID = "unassigned"
UNASSIGNED_GROUP_NAME = "Unassigned Tasks"
UNASSIGNED_GROUP_COLOR = "#6B7280"

TRADE_PALETTE = (
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#06B6D4",
    "#84CC16",
    "#F97316",
)


def to_gantt_task(task: Task, media: Sequence[MediaFile], milestones: Sequence[Milestone]) -> GanttTask:
    task_media = [m for m in media if m.task_id == task.id]
    return GanttTask(
        id=task.id,
        name=task.name,
        project=task.project,
        phase_id=task.phase_id,
        start_date=task.start_date or task.due_date,
        end_date=task.end_date or task.due_date,
        trade=task.trade,
        priority=task.priority,
        status=task.status,
        progress=task.progress,
        assigned_to=task.assigned_to,
        media=task_media,
        media_count=len(task_media),
        progress_comments=list(task.progress_comments),
        milestones=[m for m in milestones if m.task_id == task.id],
    )


def _span(tasks: Iterable[GanttTask]) -> tuple[date | None, date | None]:
    tasks = list(tasks)
    starts = [t.start_date for t in tasks if t.start_date is not None]
    ends = [t.end_date for t in tasks if t.end_date is not None]
    return (min(starts) if starts else None, max(ends) if ends else None)


def build_phase_groups(
    project: Project | None,
    tasks: Sequence[Task],
    media: Sequence[MediaFile],
    milestones: Sequence[Milestone] = (),
    collapsed: Collection[str] = (),
) -> list[GanttPhase]:
    """Group a project's tasks under its phases, or under trades when it has none.

    Tasks belong to the project by denormalised name. With phases, each phase (by
    ``order``) gets the tasks pointing at it, empty phases included, and whatever is
    left goes into a trailing "Unassigned Tasks" group when there is any. Without
    phases, tasks are grouped by exact trade string in first-seen order.
    """
    if project is None:
        return []

    project_tasks = [
        to_gantt_task(t, media, milestones) for t in tasks if t.project == project.name
    ]
    collapsed = set(collapsed)

    if not project.phases:
        by_trade: dict[str, list[GanttTask]] = {}
        for task in project_tasks:
            by_trade.setdefault(task.trade, []).append(task)
        groups = []
        for index, (trade, trade_tasks) in enumerate(by_trade.items()):
            start, end = _span(trade_tasks)
            groups.append(
                GanttPhase(
                    id=trade,
                    name=trade,
                    color=TRADE_PALETTE[index % len(TRADE_PALETTE)],
                    start_date=start,
                    end_date=end,
                    tasks=trade_tasks,
                    collapsed=trade in collapsed,
                )
            )
        return groups

    phases = project.ordered_phases()
    phase_ids = {p.id for p in phases}
    groups = [
        GanttPhase(
            id=phase.id,
            name=phase.name,
            color=phase.color,
            start_date=phase.start_date,
            end_date=phase.end_date,
            tasks=[t for t in project_tasks if t.phase_id == phase.id],
            collapsed=phase.id in collapsed,
        )
        for phase in phases
    ]

    unassigned = [t for t in project_tasks if t.phase_id not in phase_ids]
    if unassigned:
        start, end = _span(unassigned)
        groups.append(
            GanttPhase(
                id=UNASSIGNED_GROUP_ID,
                name=UNASSIGNED_GROUP_NAME,
                color=UNASSIGNED_GROUP_COLOR,
                start_date=start,
                end_date=end,
                tasks=unassigned,
                collapsed=UNASSIGNED_GROUP_ID in collapsed,
            )
        )
    return groups


def summarize_tasks(tasks: Sequence[Task | GanttTask]) -> TaskSummary:
    by_status = {s.value: 0 for s in TaskStatus}
    for task in tasks:
        by_status[task.status.value] += 1

    overall = 0
    if tasks:
        # Half-up rounding
        overall = math.floor(sum(t.progress for t in tasks) / len(tasks) + 0.5)

    return TaskSummary(
        total=len(tasks),
        completed=by_status[TaskStatus.COMPLETED.value],
        active=by_status[TaskStatus.IN_PROGRESS.value],
        by_status=by_status,
        overall_progress=overall,
    )
