"""GET /stats/{short_code} endpoint behavior tests."""

import datetime

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_stats_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/s", json={"long_url": "https://www.google.com", "ttl_seconds": 7200})
    short_code = create_resp.json()["short_code"]

    response = await client.get(f"/stats/{short_code}")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"long_url", "created_at", "expires_at", "click_count", "last_accessed_at"}
    assert data["long_url"] == "https://www.google.com"
    assert data["click_count"] == 0
    assert data["last_accessed_at"] is None

    created_at = datetime.datetime.fromisoformat(data["created_at"])
    expires_at = datetime.datetime.fromisoformat(data["expires_at"])
    assert created_at.tzinfo is not None
    assert expires_at - created_at == datetime.timedelta(hours=2)


@pytest.mark.asyncio
@pytest.mark.parametrize("short_code", ["fffff", "invalid!", "h" * 20])
async def test_stats_unknown_code(client: AsyncClient, short_code: str) -> None:
    response = await client.get(f"/stats/{short_code}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats_after_clicks(client: AsyncClient, container) -> None:
    create_resp = await client.post("/s", json={"long_url": "https://www.example.com"})
    short_code = create_resp.json()["short_code"]

    for _ in range(5):
        await client.get(f"/s/{short_code}", follow_redirects=False)
    await container.redirector.drain()

    response = await client.get(f"/stats/{short_code}")
    assert response.status_code == 200
    data = response.json()
    assert data["click_count"] == 5
    assert datetime.datetime.fromisoformat(data["last_accessed_at"]).tzinfo is not None


@pytest.mark.asyncio
async def test_stats_oversized_code_never_reaches_store(client: AsyncClient, analytic_repo, monkeypatch) -> None:
    async def overflowing_lookup(url_id):
        raise OverflowError("Python int too large to convert to SQLite INTEGER")

    monkeypatch.setattr(analytic_repo, "get_by_url_id", overflowing_lookup)

    response = await client.get("/stats/" + "h" * 20)
    assert response.status_code == 404
    assert response.content == b""
