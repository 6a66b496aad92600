import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_track_page_view(client: AsyncClient, project: dict):
    """Test recording a single page view."""
    response = await client.post(
        "/api/v1/track",
        headers={"X-API-Key": project["api_key"]},
        json={
            "event_type": "page_view",
            "visitor_id": "visitor_1",
            "session_id": "sess_123",
            "page_url": "https://example.com/home",
            "referrer": "https://google.com",
            "device": "desktop",
            "browser": "Firefox",
            "country": "DE",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["project_id"] == project["id"]
    assert data["event_type"] == "page_view"
    assert data["visitor_id"] == "visitor_1"
    assert data["country"] == "DE"
    assert data["created_at"]


@pytest.mark.asyncio
async def test_track_with_properties(client: AsyncClient, project: dict):
    response = await client.post(
        "/api/v1/track",
        headers={"X-API-Key": project["api_key"]},
        json={
            "event_type": "conversion",
            "visitor_id": "visitor_42",
            "properties": {"amount": 29.99, "plan": "pro"},
        },
    )
    assert response.status_code == 201
    assert response.json()["properties"] == {"amount": 29.99, "plan": "pro"}


@pytest.mark.asyncio
async def test_track_with_timestamp(client: AsyncClient, project: dict):
    """Test recording an event with an explicit timestamp."""
    response = await client.post(
        "/api/v1/track",
        headers={"X-API-Key": project["api_key"]},
        json={"event_type": "page_view", "created_at": "2024-02-10T12:00:00Z"},
    )
    assert response.status_code == 201
    assert response.json()["created_at"].startswith("2024-02-10T12:00:00")


@pytest.mark.asyncio
async def test_track_with_invalid_api_key(client: AsyncClient):
    response = await client.post(
        "/api/v1/track",
        headers={"X-API-Key": "invalid_key"},
        json={"event_type": "page_view"},
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid API key"}


@pytest.mark.asyncio
async def test_track_without_api_key(client: AsyncClient):
    response = await client.post("/api/v1/track", json={"event_type": "page_view"})
    assert response.status_code == 422  # Missing required header


@pytest.mark.asyncio
async def test_track_requires_event_type(client: AsyncClient, project: dict):
    response = await client.post(
        "/api/v1/track",
        headers={"X-API-Key": project["api_key"]},
        json={"visitor_id": "visitor_1"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_events_newest_first(client: AsyncClient, auth_headers: dict, project: dict):
    for day in ("2024-03-01", "2024-03-03", "2024-03-02"):
        await client.post(
            "/api/v1/track",
            headers={"X-API-Key": project["api_key"]},
            json={"event_type": "page_view", "created_at": f"{day}T08:00:00Z"},
        )

    response = await client.get(
        f"/api/v1/track?project_id={project['id']}&limit=2", headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 2
    assert data[0]["created_at"].startswith("2024-03-03")
    assert data[1]["created_at"].startswith("2024-03-02")


@pytest.mark.asyncio
async def test_list_events_requires_owner(
    client: AsyncClient, other_headers: dict, project: dict
):
    response = await client.get(f"/api/v1/track?project_id={project['id']}", headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_events_requires_project_id(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/track", headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "project_id is required."}


@pytest.mark.asyncio
async def test_list_events_rejects_non_numeric_project_id(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/track?project_id=abc", headers=auth_headers)
    assert response.status_code == 400
    assert "error" in response.json()
