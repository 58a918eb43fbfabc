import pytest


@pytest.mark.asyncio
async def test_create_user(client, admin_headers):
    response = await client.post(
        "/api/v1/users",
        json={"username": "member2", "name": "Jane Builder", "password": "pass123", "role": "member"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "member2"
    assert data["role"] == "member"
    assert data["assigned_projects"] is None

    login = await client.post(
        "/api/v1/auth/login",
        json={"username": "member2", "password": "pass123"},
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_create_duplicate_username(client, admin_headers, member_user):
    response = await client.post(
        "/api/v1/users",
        json={"username": "member1", "name": "Again", "password": "pass123"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_client_with_unknown_project(client, admin_headers):
    response = await client.post(
        "/api/v1/users",
        json={
            "username": "client2",
            "name": "Owner",
            "password": "pass123",
            "role": "client",
            "assigned_projects": ["no-such-project"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_users_admin_only(client, member_headers):
    response = await client.get("/api/v1/users", headers=member_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_users_by_role(client, admin_headers, member_user, client_user):
    response = await client.get("/api/v1/users", params={"role": "client"}, headers=admin_headers)
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["client1"]


@pytest.mark.asyncio
async def test_assign_projects_to_client(client, admin_headers, client_user, sample_project):
    response = await client.patch(
        f"/api/v1/users/{client_user.id}",
        json={"assigned_projects": [sample_project.id]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["assigned_projects"] == [sample_project.id]


@pytest.mark.asyncio
async def test_delete_user(client, admin_headers, member_user):
    response = await client.delete(f"/api/v1/users/{member_user.id}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get("/api/v1/users", headers=admin_headers)
    assert "member1" not in [u["username"] for u in response.json()]


@pytest.mark.asyncio
async def test_cannot_delete_self(client, admin_headers, admin_user):
    response = await client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_failed_write_is_bad_gateway(client, admin_headers, repository):
    repository.failing.add(("insert", "users"))
    response = await client.post(
        "/api/v1/users",
        json={"username": "member3", "name": "Lost", "password": "pass123"},
        headers=admin_headers,
    )
    assert response.status_code == 502
