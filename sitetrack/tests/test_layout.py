import math
from datetime import date

from sitetrack.common.enums import MilestoneType, TaskStatus
from sitetrack.core.timeline.layout import TimelineLayout, chart
from sitetrack.core.timeline.schemas import GanttPhase, GanttTask
from sitetrack.core.tracking.schemas import Milestone, Project


def _project(start=date(2024, 7, 1), end=date(2024, 7, 10)) -> Project:
    return Project(id="p-1", name="Office Building Construction", start_date=start, end_date=end)


def _task(task_id="t-1", start=date(2024, 7, 3), end=date(2024, 7, 5), progress=50, milestones=()):
    return GanttTask(
        id=task_id,
        name=f"Task {task_id}",
        project="Office Building Construction",
        start_date=start,
        end_date=end,
        trade="Concrete",
        priority="medium",
        status=TaskStatus.IN_PROGRESS,
        progress=progress,
        milestones=list(milestones),
    )


def test_ten_day_project_geometry():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    assert layout.total_days == 10
    assert layout.chart_width == 400

    bar = layout.task_bar(date(2024, 7, 3), date(2024, 7, 5))
    assert bar.left == 80
    assert bar.width == 80


def test_date_grid_is_consecutive_days():
    layout = TimelineLayout(date(2024, 7, 30), date(2024, 8, 3), day_width=40)
    assert layout.date_grid() == [
        date(2024, 7, 30),
        date(2024, 7, 31),
        date(2024, 8, 1),
        date(2024, 8, 2),
    ]


def test_empty_or_inverted_window_has_no_columns():
    same_day = TimelineLayout(date(2024, 7, 1), date(2024, 7, 1), day_width=40)
    inverted = TimelineLayout(date(2024, 7, 10), date(2024, 7, 1), day_width=40)
    for layout in (same_day, inverted):
        assert layout.total_days == 0
        assert layout.chart_width == 0
        assert layout.date_grid() == []


def test_bar_is_clipped_to_window():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    bar = layout.task_bar(date(2024, 6, 20), date(2024, 7, 25))
    assert bar.left == 0
    assert bar.offset_end == layout.total_days
    assert bar.left + bar.width <= layout.chart_width


def test_bars_inside_window_never_overflow():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    for start_day in range(1, 11):
        for end_day in range(start_day, 11):
            bar = layout.task_bar(date(2024, 7, start_day), date(2024, 7, end_day))
            assert bar.left >= 0
            assert bar.left + bar.width <= layout.chart_width


def test_short_and_inverted_spans_get_minimum_width():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    assert layout.task_bar(date(2024, 7, 4), date(2024, 7, 4)).width == 40
    assert layout.task_bar(date(2024, 7, 8), date(2024, 7, 2)).width == 40


def test_bar_before_window_start_keeps_minimum_width():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    bar = layout.task_bar(date(2024, 6, 1), date(2024, 6, 10))
    assert bar.duration <= 0
    assert bar.width == 40
    assert bar.left == 0


def test_bar_past_window_end_keeps_minimum_width():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    bar = layout.task_bar(date(2024, 8, 1), date(2024, 8, 5))
    assert bar.width == 40
    assert bar.left > layout.chart_width


def test_missing_dates_give_nan_geometry():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    bar = layout.task_bar(None, date(2024, 7, 5))
    assert math.isnan(bar.left)
    assert math.isnan(bar.width)

    bar = layout.task_bar(date(2024, 7, 2), None)
    assert bar.left == 40
    assert math.isnan(bar.width)


def test_milestone_offset_is_centered_and_unclipped():
    layout = TimelineLayout.for_project(_project(), day_width=40)
    assert layout.milestone_offset(date(2024, 7, 3)) == 2 * 40 - 8
    assert layout.milestone_offset(date(2024, 6, 30)) == -40 - 8
    assert layout.milestone_offset(date(2024, 7, 20)) == 19 * 40 - 8
    assert math.isnan(layout.milestone_offset(None))


def test_progress_width():
    assert TimelineLayout.progress_width(50, 80) == 40
    assert TimelineLayout.progress_width(0, 80) == 0
    assert TimelineLayout.progress_width(100, 120) == 120


def test_settings_supply_default_dimensions():
    layout = TimelineLayout(date(2024, 7, 1), date(2024, 7, 2))
    assert layout.day_width == 40
    assert layout.marker_size == 16


def test_chart_renders_rows_and_columns():
    milestone = Milestone(
        id="m-1",
        task_id="t-1",
        name="Footing inspection",
        milestone_type=MilestoneType.INSPECTION,
        date=date(2024, 7, 4),
    )
    groups = [
        GanttPhase(id="ph-1", name="P1", color="#8B5CF6", tasks=[_task(milestones=[milestone])]),
        GanttPhase(id="ph-2", name="P2", color="#F59E0B", tasks=[_task("t-2")], collapsed=True),
        GanttPhase(id="ph-3", name="P3", color="#10B981", tasks=[_task("t-3", start=None, end=None)]),
    ]

    result = chart(_project(), groups, day_width=40)

    assert result.total_days == 10
    assert result.chart_width == 400
    assert [c.day for c in result.columns] == list(range(1, 11))
    assert result.columns[0].month == "Jul"
    assert result.columns[3].left == 120

    first, collapsed, undated = result.phases
    row = first.tasks[0]
    assert (row.left, row.width, row.progress_width) == (80, 80, 40)
    assert row.milestones[0].left == 3 * 40 - 8

    assert collapsed.collapsed is True
    assert collapsed.task_count == 1
    assert collapsed.tasks == []

    assert undated.tasks[0].left is None
    assert undated.tasks[0].width is None
    assert undated.tasks[0].progress_width is None
