"""
Integration tests for the session management endpoints (/sessions)
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.fixtures.sessions import ADMIN_HEADERS


async def _login(client: AsyncClient, user_id) -> dict:
    response = await client.post(
        "/admin/sessions",
        json={"user_id": str(user_id), "ip_address": "10.0.0.1"},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 201
    return response.json()


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_list_sessions(client: AsyncClient, clock):
    user_id = uuid4()
    first = await _login(client, user_id)
    clock.advance(minutes=10)
    second = await _login(client, user_id)
    await _login(client, uuid4())

    response = await client.get("/sessions", headers=_bearer(first["session_token"]))

    assert response.status_code == 200
    ids = {s["session_id"] for s in response.json()}
    assert ids == {first["session_id"], second["session_id"]}


@pytest.mark.asyncio
async def test_revoke_other_device_session(client: AsyncClient, clock):
    user_id = uuid4()
    current = await _login(client, user_id)
    clock.advance(minutes=10)
    other = await _login(client, user_id)

    response = await client.delete(
        f"/sessions/{other['session_id']}", headers=_bearer(current["session_token"])
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Session revoked successfully"

    revoked = await client.get("/auth/session", headers=_bearer(other["session_token"]))
    assert revoked.status_code == 401

    listed = await client.get("/sessions", headers=_bearer(current["session_token"]))
    assert [s["session_id"] for s in listed.json()] == [current["session_id"]]


@pytest.mark.asyncio
async def test_revoke_session_of_another_user_not_found(client: AsyncClient):
    current = await _login(client, uuid4())
    stranger = await _login(client, uuid4())

    response = await client.delete(
        f"/sessions/{stranger['session_id']}", headers=_bearer(current["session_token"])
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"

    untouched = await client.get("/auth/session", headers=_bearer(stranger["session_token"]))
    assert untouched.status_code == 200


@pytest.mark.asyncio
async def test_revoke_unknown_session_not_found(client: AsyncClient):
    current = await _login(client, uuid4())

    response = await client.delete(
        f"/sessions/{uuid4()}", headers=_bearer(current["session_token"])
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_revoke_all_sessions(client: AsyncClient, clock):
    user_id = uuid4()
    tokens = []
    for _ in range(3):
        tokens.append((await _login(client, user_id))["session_token"])
        clock.advance(minutes=10)

    response = await client.post("/sessions/revoke-all", headers=_bearer(tokens[0]))

    assert response.status_code == 200
    data = response.json()
    assert data["revoked_count"] == 3
    assert "Successfully revoked 3 session(s)" in data["message"]

    for token in tokens:
        after = await client.get("/auth/session", headers=_bearer(token))
        assert after.status_code == 401


@pytest.mark.asyncio
async def test_sessions_require_authentication(client: AsyncClient):
    response = await client.get("/sessions")

    assert response.status_code == 401
