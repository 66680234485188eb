"""
Auth endpoint tests: registration, login, the issued token, and how the
bearer token is accepted or rejected on protected routes.
"""
import base64

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.models import User
from blog_api.services import auth_service


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_returns_id_email_token(async_client: AsyncClient, register_payload: dict):
    resp = await async_client.post("/api/v1/auth/register", json=register_payload)
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"id", "email", "token"}
    assert body["email"] == "ivan@example.com"
    assert base64.b64decode(body["token"]).decode() == "ivan@example.com:qwerty"


@pytest.mark.asyncio
async def test_register_assigns_user_role_and_hides_password(
    async_client: AsyncClient, register_payload: dict
):
    resp = await async_client.post("/api/v1/auth/register", json=register_payload)
    user_id = resp.json()["id"]

    detail = (await async_client.get(f"/api/v1/users/{user_id}")).json()
    assert detail["roles"] == ["USER"]
    assert detail["firstName"] == "Ivan"
    assert detail["age"] == 25
    assert "password" not in detail


@pytest.mark.asyncio
async def test_register_stores_hashed_password(
    async_client: AsyncClient, db_session: AsyncSession, register_payload: dict
):
    await async_client.post("/api/v1/auth/register", json=register_payload)
    user = (await db_session.execute(select(User))).scalar_one()
    assert user.password != "qwerty"


@pytest.mark.asyncio
async def test_register_accepts_snake_case_fields(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/register", json={
        "first_name": "Olga",
        "last_name": "Sidorova",
        "email": "olga@example.com",
        "password": "secret",
    })
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_register_duplicate_email_returns_409(
    async_client: AsyncClient, db_session: AsyncSession, register_payload: dict
):
    first = await async_client.post("/api/v1/auth/register", json=register_payload)
    assert first.status_code == 200

    second = await async_client.post("/api/v1/auth/register", json={
        **register_payload, "firstName": "Other",
    })
    assert second.status_code == 409
    assert second.json()["message"] == "User with email ivan@example.com already exists"
    assert second.json()["errorType"] == "DuplicateEmailError"

    count = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("override", [
    {"email": "not-an-email"},
    {"firstName": "I"},
    {"password": "123"},
    {"age": -1},
])
async def test_register_validation_returns_400(
    async_client: AsyncClient, register_payload: dict, override: dict
):
    resp = await async_client.post("/api/v1/auth/register", json={**register_payload, **override})
    assert resp.status_code == 400
    body = resp.json()
    assert body["errorType"] == "ValidationError"
    assert body["errors"]


@pytest.mark.asyncio
async def test_register_missing_field_reports_field_name(async_client: AsyncClient, register_payload: dict):
    payload = dict(register_payload)
    del payload["lastName"]
    resp = await async_client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 400
    fields = [e["field"] for e in resp.json()["errors"]]
    assert "lastName" in fields


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_returns_same_token_as_register(async_client: AsyncClient, register_payload: dict):
    registered = (await async_client.post("/api/v1/auth/register", json=register_payload)).json()

    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "ivan@example.com", "password": "qwerty",
    })
    assert resp.status_code == 200
    assert resp.json() == registered


@pytest.mark.asyncio
async def test_login_unknown_email_returns_404(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "ghost@example.com", "password": "whatever",
    })
    assert resp.status_code == 404
    assert resp.json()["message"] == "User with email ghost@example.com is not found"


@pytest.mark.asyncio
async def test_login_wrong_password_returns_401(async_client: AsyncClient, register_payload: dict):
    await async_client.post("/api/v1/auth/register", json=register_payload)

    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "ivan@example.com", "password": "wrong",
    })
    assert resp.status_code == 401
    assert resp.json()["message"] == "Incorrect password"


# ---------------------------------------------------------------------------
# Bearer token on protected routes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_issued_token_authenticates_requests(async_client: AsyncClient, register_payload: dict):
    body = (await async_client.post("/api/v1/auth/register", json=register_payload)).json()

    resp = await async_client.patch(
        f"/api/v1/users/{body['id']}",
        json={"lastName": "Sidorov"},
        headers={"Authorization": f"Bearer {body['token']}"},
    )
    assert resp.status_code == 200
    assert resp.json()["lastName"] == "Sidorov"


@pytest.mark.asyncio
async def test_malformed_token_returns_401(async_client: AsyncClient, register_payload: dict):
    body = (await async_client.post("/api/v1/auth/register", json=register_payload)).json()

    resp = await async_client.patch(
        f"/api/v1/users/{body['id']}",
        json={"lastName": "Sidorov"},
        headers={"Authorization": "Bearer %%%"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_with_wrong_password_returns_401(async_client: AsyncClient, register_payload: dict):
    body = (await async_client.post("/api/v1/auth/register", json=register_payload)).json()
    forged = base64.b64encode(b"ivan@example.com:guess").decode()

    resp = await async_client.delete(
        f"/api/v1/users/{body['id']}",
        headers={"Authorization": f"Bearer {forged}"},
    )
    assert resp.status_code == 401
    assert (await async_client.get(f"/api/v1/users/{body['id']}")).status_code == 200


# ---------------------------------------------------------------------------
# Email handling
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_keeps_email_exactly_as_sent(async_client: AsyncClient, register_payload: dict):
    resp = await async_client.post(
        "/api/v1/auth/register", json={**register_payload, "email": "Ivan@Example.COM"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "Ivan@Example.COM"
    assert base64.b64decode(body["token"]).decode() == "Ivan@Example.COM:qwerty"

    login = await async_client.post(
        "/api/v1/auth/login", json={"email": "Ivan@Example.COM", "password": "qwerty"}
    )
    assert login.status_code == 200
    assert login.json()["token"] == body["token"]


@pytest.mark.asyncio
async def test_emails_differing_in_case_are_distinct_users(async_client: AsyncClient, register_payload: dict):
    first = await async_client.post(
        "/api/v1/auth/register", json={**register_payload, "email": "a@X.com"}
    )
    second = await async_client.post(
        "/api/v1/auth/register", json={**register_payload, "email": "a@x.com"}
    )
    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["id"] != second.json()["id"]


@pytest.mark.asyncio
async def test_register_race_on_unique_email_returns_409(
    async_client: AsyncClient, db_session: AsyncSession, register_payload: dict, monkeypatch
):
    first = await async_client.post("/api/v1/auth/register", json=register_payload)
    assert first.status_code == 200

    # The pre-check misses the row, as when a concurrent request inserts it first.
    async def _not_found(db, email):
        return False

    monkeypatch.setattr(auth_service, "email_exists", _not_found)

    second = await async_client.post("/api/v1/auth/register", json=register_payload)
    assert second.status_code == 409
    assert second.json()["message"] == "User with email ivan@example.com already exists"

    count = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
    assert count == 1
