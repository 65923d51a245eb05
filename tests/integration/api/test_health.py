import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_session_cleanup_health_when_disabled(client: AsyncClient):
    response = await client.get("/health/session-cleanup")

    assert response.status_code == 200
    assert response.json() == {"status": "disabled"}
