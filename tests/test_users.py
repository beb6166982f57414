"""
User endpoint tests: admin-only account management, plus the metrics
endpoint, which aggregates across articles, categories and likes.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Role, User

from factories import auth_headers, make_article, make_user


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    user = await make_user(db_session, "admin@example.com", Role.ADMIN, "Ada", "Admin")
    await db_session.commit()
    return user


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return auth_headers(admin)


# ---------------------------------------------------------------------------
# Create user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_user(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        "/api/v1/users",
        json={"firstName": "New", "lastName": "Writer", "email": "New.Writer@Example.com", "role": "EDITOR"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    user = resp.json()
    assert user["firstName"] == "New"
    assert user["lastName"] == "Writer"
    assert user["email"] == "new.writer@example.com"
    assert user["role"] == "EDITOR"
    assert "id" in user
    assert "createdAt" in user


@pytest.mark.asyncio
async def test_create_user_defaults_to_reader_role(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        "/api/v1/users",
        json={"first_name": "Plain", "last_name": "Reader", "email": "plain@example.com"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "USER"


@pytest.mark.asyncio
async def test_create_user_duplicate_email_is_case_insensitive(
    async_client: AsyncClient, admin_headers
):
    body = {"firstName": "A", "lastName": "B", "email": "dup@example.com"}
    assert (await async_client.post("/api/v1/users", json=body, headers=admin_headers)).status_code == 201

    body["email"] = "DUP@example.com"
    resp = await async_client.post("/api/v1/users", json=body, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_email"


@pytest.mark.asyncio
async def test_create_user_validation(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        "/api/v1/users", json={"firstName": "No", "lastName": "Email"}, headers=admin_headers
    )
    assert resp.status_code == 422

    resp = await async_client.post(
        "/api/v1/users",
        json={"firstName": "Bad", "lastName": "Email", "email": "not-an-email"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_user_management_is_admin_only(
    async_client: AsyncClient, editor_headers, reader_headers
):
    body = {"firstName": "X", "lastName": "Y", "email": "x@example.com"}
    assert (await async_client.post("/api/v1/users", json=body)).status_code == 401
    for headers in (editor_headers, reader_headers):
        assert (await async_client.post("/api/v1/users", json=body, headers=headers)).status_code == 403
        assert (await async_client.get("/api/v1/users", headers=headers)).status_code == 403


# ---------------------------------------------------------------------------
# List / get user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_and_get_users(async_client: AsyncClient, admin, admin_headers, reader):
    resp = await async_client.get("/api/v1/users", headers=admin_headers)
    assert resp.status_code == 200
    assert {u["email"] for u in resp.json()} == {"admin@example.com", "reader@example.com"}

    resp = await async_client.get(f"/api/v1/users/{reader.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["firstName"] == "Rory"

    resp = await async_client.get("/api/v1/users/99999", headers=admin_headers)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_metrics(
    async_client: AsyncClient,
    db_session: AsyncSession,
    editor,
    editor_headers,
    reader_headers,
    category,
):
    live = await make_article(db_session, editor, category, "Live", view_count=7)
    await make_article(db_session, editor, category, "Draft", is_published=False, view_count=3)
    await db_session.commit()

    await async_client.post(f"/api/v1/articles/{live.id}/like", headers=reader_headers)

    resp = await async_client.get("/api/v1/metrics", headers=editor_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "totalArticles": 2,
        "publishedArticles": 1,
        "totalCategories": 1,
        "totalLikes": 1,
        "totalViews": 10,
    }

    assert (await async_client.get("/api/v1/metrics", headers=reader_headers)).status_code == 403
