from datetime import date

import pytest

from sitetrack.core.reporting.dashboard import compile_dashboard, upcoming_tasks
from sitetrack.core.tracking.schemas import Task


@pytest.mark.asyncio
async def test_admin_dashboard(store, admin_user, member_user, sample_project):
    summary = compile_dashboard(store, admin_user, today=date(2024, 7, 1))

    assert summary.role == "admin"
    assert summary.admin.total_projects == 1
    assert summary.admin.total_tasks == 3
    assert summary.admin.total_users == 2
    assert summary.member is None
    assert summary.projects[0].overall_progress == 13
    assert [u.name for u in summary.upcoming] == ["Site Survey"]


@pytest.mark.asyncio
async def test_member_dashboard(store, member_user, sample_project):
    task = store.tasks_for_project(sample_project)[0]
    await store.update_task(task.id, {"assigned_to": member_user.name})
    await store.update_task_progress(task.id, 55, "Trench dug", member_user.id, member_user.name)

    summary = compile_dashboard(store, member_user, today=date(2024, 7, 5))

    assert summary.admin is None
    assert summary.member.assigned_tasks == 1
    assert summary.member.active_tasks == 1
    assert summary.upcoming == []
    update = summary.recent_updates[0]
    assert (update.task_name, update.previous_progress, update.new_progress) == ("Excavation", 40, 55)


@pytest.mark.asyncio
async def test_client_dashboard_limited_to_assigned(store, client_user, sample_project):
    summary = compile_dashboard(store, client_user, today=date(2024, 7, 1))
    assert summary.projects == []
    assert summary.upcoming == []


def test_upcoming_is_strictly_future_and_capped():
    tasks = [
        Task(id=str(i), name=f"Task {i}", project_id="p", project="P", due_date=date(2024, 7, i))
        for i in range(1, 10)
    ]
    upcoming = upcoming_tasks(tasks, today=date(2024, 7, 2))
    assert [u.name for u in upcoming] == ["Task 3", "Task 4", "Task 5", "Task 6", "Task 7"]


@pytest.mark.asyncio
async def test_dashboard_endpoint(client, admin_headers, sample_project):
    response = await client.get("/api/v1/dashboard", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "admin"
    assert data["admin"]["total_projects"] == 1
    assert data["projects"][0]["name"] == sample_project.name


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["service"] == "sitetrack"
