import pytest


@pytest.mark.asyncio
async def test_list_phases(client, member_headers, sample_project):
    response = await client.get(f"/api/v1/projects/{sample_project.id}/phases", headers=member_headers)
    assert response.status_code == 200
    assert [(p["name"], p["order"]) for p in response.json()] == [("P1", 0), ("P2", 1)]


@pytest.mark.asyncio
async def test_create_phase(client, admin_headers, sample_project):
    response = await client.post(
        f"/api/v1/projects/{sample_project.id}/phases",
        json={"name": "Finishing", "start_date": "2024-07-08", "end_date": "2024-07-10"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["order"] == 2
    assert data["color"] == "#8B5CF6"


@pytest.mark.asyncio
async def test_create_phase_bad_color(client, admin_headers, sample_project):
    response = await client.post(
        f"/api/v1/projects/{sample_project.id}/phases",
        json={"name": "Finishing", "start_date": "2024-07-08", "end_date": "2024-07-10", "color": "purple"},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_phase_member_forbidden(client, member_headers, sample_project):
    response = await client.post(
        f"/api/v1/projects/{sample_project.id}/phases",
        json={"name": "Finishing", "start_date": "2024-07-08", "end_date": "2024-07-10"},
        headers=member_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reorder_phases(client, admin_headers, sample_project):
    p1, p2 = sample_project.ordered_phases()
    response = await client.put(
        f"/api/v1/projects/{sample_project.id}/phases/order",
        json={"phase_ids": [p2.id, p1.id]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [p2.id, p1.id]


@pytest.mark.asyncio
async def test_reorder_phases_incomplete(client, admin_headers, sample_project):
    p1, _ = sample_project.ordered_phases()
    response = await client.put(
        f"/api/v1/projects/{sample_project.id}/phases/order",
        json={"phase_ids": [p1.id]},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_move_phase(client, admin_headers, sample_project):
    p1, p2 = sample_project.ordered_phases()
    response = await client.post(
        f"/api/v1/projects/{sample_project.id}/phases/{p1.id}/move",
        json={"direction": "down"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [p2.id, p1.id]


@pytest.mark.asyncio
async def test_update_phase(client, admin_headers, sample_project):
    p1, _ = sample_project.ordered_phases()
    response = await client.patch(
        f"/api/v1/projects/{sample_project.id}/phases/{p1.id}",
        json={"name": "Foundation", "color": "#10B981"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Foundation"
    assert data["color"] == "#10B981"
    assert data["order"] == 0


@pytest.mark.asyncio
async def test_unknown_phase(client, admin_headers, sample_project):
    response = await client.patch(
        f"/api/v1/projects/{sample_project.id}/phases/missing",
        json={"name": "Foundation"},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_phase_unassigns_tasks(client, store, admin_headers, sample_project):
    p1, p2 = sample_project.ordered_phases()
    response = await client.delete(
        f"/api/v1/projects/{sample_project.id}/phases/{p1.id}", headers=admin_headers
    )
    assert response.status_code == 204

    response = await client.get(f"/api/v1/projects/{sample_project.id}/phases", headers=admin_headers)
    assert [(p["id"], p["order"]) for p in response.json()] == [(p2.id, 0)]
    assert all(t.phase_id != p1.id for t in store.tasks)
