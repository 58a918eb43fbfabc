import pytest


def _task_id(store, name: str) -> str:
    return next(t.id for t in store.tasks if t.name == name)


@pytest.mark.asyncio
async def test_create_and_list_milestones(client, store, admin_headers, member_headers, sample_project):
    task_id = _task_id(store, "Excavation")
    for name, day in (("Handover", "2024-07-05"), ("Soil inspection", "2024-07-03")):
        response = await client.post(
            f"/api/v1/tasks/{task_id}/milestones",
            json={"name": name, "milestone_type": "inspection", "date": day},
            headers=admin_headers,
        )
        assert response.status_code == 201

    response = await client.get(f"/api/v1/tasks/{task_id}/milestones", headers=member_headers)
    assert response.status_code == 200
    assert [m["name"] for m in response.json()] == ["Soil inspection", "Handover"]


@pytest.mark.asyncio
async def test_member_cannot_create_milestone(client, store, member_headers, sample_project):
    task_id = _task_id(store, "Excavation")
    response = await client.post(
        f"/api/v1/tasks/{task_id}/milestones",
        json={"name": "Inspection", "milestone_type": "inspection", "date": "2024-07-04"},
        headers=member_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_member_completes_milestone(client, store, admin_headers, member_headers, sample_project):
    task_id = _task_id(store, "Excavation")
    created = await client.post(
        f"/api/v1/tasks/{task_id}/milestones",
        json={"name": "Inspection", "milestone_type": "approval", "date": "2024-07-04"},
        headers=admin_headers,
    )
    milestone_id = created.json()["id"]

    response = await client.patch(
        f"/api/v1/milestones/{milestone_id}",
        json={"completed": True},
        headers=member_headers,
    )
    assert response.status_code == 200
    assert response.json()["completed"] is True

    response = await client.patch(
        f"/api/v1/milestones/{milestone_id}",
        json={"date": None},
        headers=member_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_milestone(client, store, admin_headers, sample_project):
    task_id = _task_id(store, "Excavation")
    created = await client.post(
        f"/api/v1/tasks/{task_id}/milestones",
        json={"name": "Inspection", "milestone_type": "handover", "date": "2024-07-04"},
        headers=admin_headers,
    )
    response = await client.delete(f"/api/v1/milestones/{created.json()['id']}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/tasks/{task_id}/milestones", headers=admin_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_unknown_milestone(client, admin_headers):
    response = await client.delete("/api/v1/milestones/missing", headers=admin_headers)
    assert response.status_code == 404
