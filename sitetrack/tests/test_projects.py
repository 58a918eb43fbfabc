import pytest


@pytest.mark.asyncio
async def test_create_project(client, admin_headers):
    response = await client.post(
        "/api/v1/projects",
        json={
            "name": "Riverside Warehouse",
            "description": "Steel frame warehouse",
            "start_date": "2024-03-01",
            "end_date": "2024-09-30",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Riverside Warehouse"
    assert data["status"] == "planned"
    assert data["progress"] == 0
    assert data["phases"] == []


@pytest.mark.asyncio
async def test_create_project_duplicate_name(client, admin_headers, sample_project):
    response = await client.post(
        "/api/v1/projects",
        json={"name": sample_project.name, "start_date": "2024-03-01", "end_date": "2024-09-30"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_project_member_forbidden(client, member_headers):
    response = await client.post(
        "/api/v1/projects",
        json={"name": "Shed", "start_date": "2024-03-01", "end_date": "2024-03-30"},
        headers=member_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_projects(client, member_headers, sample_project):
    response = await client.get("/api/v1/projects", headers=member_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["total_pages"] == 1
    assert data["items"][0]["id"] == sample_project.id
    assert [p["name"] for p in data["items"][0]["phases"]] == ["P1", "P2"]


@pytest.mark.asyncio
async def test_list_projects_search(client, admin_headers, sample_project):
    response = await client.get("/api/v1/projects", params={"search": "warehouse"}, headers=admin_headers)
    assert response.json()["total"] == 0

    response = await client.get("/api/v1/projects", params={"search": "office"}, headers=admin_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_client_sees_only_assigned_projects(client, store, client_headers, client_user, sample_project):
    response = await client.get("/api/v1/projects", headers=client_headers)
    assert response.json()["total"] == 0

    response = await client.get(f"/api/v1/projects/{sample_project.id}", headers=client_headers)
    assert response.status_code == 403

    await store.update_user(client_user.id, {"assigned_projects": [sample_project.id]})
    response = await client.get(f"/api/v1/projects/{sample_project.id}", headers=client_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_get_project_not_found(client, admin_headers):
    response = await client.get("/api/v1/projects/missing", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_project_stats(client, member_headers, sample_project):
    response = await client.get(f"/api/v1/projects/{sample_project.id}/stats", headers=member_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["completed"] == 0
    # (40 + 0 + 0) / 3
    assert data["overall_progress"] == 13


@pytest.mark.asyncio
async def test_update_project(client, admin_headers, sample_project):
    response = await client.patch(
        f"/api/v1/projects/{sample_project.id}",
        json={"status": "in-progress", "progress": 35},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "in-progress"
    assert data["progress"] == 35
    assert data["name"] == sample_project.name


@pytest.mark.asyncio
async def test_update_project_rejects_empty_name(client, admin_headers, sample_project):
    response = await client.patch(
        f"/api/v1/projects/{sample_project.id}",
        json={"name": None},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_project(client, admin_headers, sample_project):
    response = await client.delete(f"/api/v1/projects/{sample_project.id}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/projects/{sample_project.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_project_write_failure(client, admin_headers, repository, sample_project):
    repository.failing.add(("delete", "projects"))
    response = await client.delete(f"/api/v1/projects/{sample_project.id}", headers=admin_headers)
    assert response.status_code == 502

    response = await client.get(f"/api/v1/projects/{sample_project.id}", headers=admin_headers)
    assert response.status_code == 200
