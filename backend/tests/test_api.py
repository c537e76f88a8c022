"""
Posts API — HTTP Endpoint Tests
================================

What:  The full request path: middleware, dependencies, handlers, error mapping.
How:   HTTPX AsyncClient over ASGITransport against an app bound to a
       per-test SQLite file.

What we test:
    ✅ login → create → get → favorite → 404 scenario
    ✅ 401 without token, 403 with malformed or expired token
    ✅ 400 for missing fields and malformed bodies (never 422)
    ✅ Structured 404 for unknown posts and unknown routes
    ✅ 500 mapping for storage and unexpected errors, with an access-log line
    ✅ Request ID propagation, health and welcome routes
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from posts_api.dependencies import get_post_service
from posts_api.exceptions import StorageError
from posts_api.main import create_app
from posts_api.schemas.post import UserInfo

from conftest import make_settings

POST_KEYS = {"id", "title", "description", "photo", "body", "isFavourite", "created_at"}


class FailingPostService:
    """Stands in for PostService to drive the error handlers."""

    def __init__(self, exc: Exception):
        self.exc = exc

    async def list_posts(self, db):
        raise self.exc

    async def set_favorite(self, db, post_id, value=True):
        raise self.exc


class TestScenario:

    @pytest.mark.asyncio
    async def test_login_create_get_favorite(self, test_client):
        login = await test_client.post("/login", json={"email": "a@b.com", "password": "x"})
        assert login.status_code == 200
        token = login.json()["token"]
        assert isinstance(token, str) and token
        assert login.json()["message"] == "Login successful"
        assert login.json()["user"] == {"email": "a@b.com", "role": "user"}

        created = await test_client.post(
            "/posts",
            json={"title": "T", "description": "D", "photo": "http://x", "body": "B"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert created.status_code == 201
        body = created.json()
        assert body["message"] == "Post added successfully"
        post = body["post"]
        assert set(post) == POST_KEYS
        assert post["id"]
        assert post["isFavourite"] is False

        fetched = await test_client.get(f"/posts/{post['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == post

        favorite = await test_client.post(f"/posts/{post['id']}/favorite")
        assert favorite.status_code == 200
        assert favorite.json()["message"] == "Post added to favorites"
        assert favorite.json()["post"]["isFavourite"] is True
        assert favorite.json()["post"]["id"] == post["id"]

        missing = await test_client.get("/posts/badid")
        assert missing.status_code == 404
        assert missing.json()["error"] == "not_found"


class TestLoginRoute:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"email": "a@b.com"}, {"password": "x"}, {"email": "", "password": "x"}, {}],
    )
    async def test_missing_fields_is_400(self, test_client, payload):
        response = await test_client.post("/login", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"] == "Email and password are required."

    @pytest.mark.asyncio
    async def test_strict_mode_wrong_password_is_401(self, tmp_path):
        settings = make_settings(
            tmp_path, auth_verify_password=True, auth_user_password="s3cret"
        )
        app = create_app(settings)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/login", json={"email": "test@example.com", "password": "nope"}
            )
        await app.state.database.dispose()

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_credentials"


class TestCreatePostRoute:

    @pytest.mark.asyncio
    async def test_without_token_is_401_and_stores_nothing(self, test_client, sample_post_data):
        response = await test_client.post("/posts", json=sample_post_data)

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"
        assert response.json()["message"] == "Authentication token required."
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert (await test_client.get("/posts")).json() == []

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_is_401(self, test_client, sample_post_data):
        response = await test_client.post(
            "/posts", json=sample_post_data, headers={"Authorization": "Token abc"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_token_is_403(self, test_client, sample_post_data):
        response = await test_client.post(
            "/posts", json=sample_post_data, headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
        assert response.json()["message"] == "Invalid or expired token."

    @pytest.mark.asyncio
    async def test_expired_token_is_403(self, test_client, auth_service, sample_post_data):
        token = auth_service.issue_token(
            UserInfo(email="a@b.com"),
            now=datetime.now(timezone.utc) - timedelta(days=2),
        )

        response = await test_client.post(
            "/posts", json=sample_post_data, headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_fields_is_400(self, test_client, auth_headers):
        response = await test_client.post(
            "/posts",
            json={"title": "T", "description": "", "body": "B"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["fields"] == ["description", "photo"]
        assert (await test_client.get("/posts")).json() == []

    @pytest.mark.asyncio
    async def test_wrongly_typed_field_is_400(self, test_client, auth_headers, sample_post_data):
        response = await test_client.post(
            "/posts", json={**sample_post_data, "title": 123}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, test_client, auth_headers):
        response = await test_client.post(
            "/posts",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400


class TestReadRoutes:

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, test_client, auth_headers, sample_post_data):
        ids = []
        for title in ("P1", "P2", "P3"):
            response = await test_client.post(
                "/posts", json={**sample_post_data, "title": title}, headers=auth_headers
            )
            ids.append(response.json()["post"]["id"])

        listed = await test_client.get("/posts")

        assert listed.status_code == 200
        assert [p["id"] for p in listed.json()] == list(reversed(ids))
        assert all(set(p) == POST_KEYS for p in listed.json())

    @pytest.mark.asyncio
    async def test_list_needs_no_token(self, test_client):
        response = await test_client.get("/posts")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_favorite_unknown_post_is_404(self, test_client):
        response = await test_client.post("/posts/nope/favorite")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_created_at_is_utc_iso8601(self, test_client, auth_headers, sample_post_data):
        created = await test_client.post("/posts", json=sample_post_data, headers=auth_headers)
        post_id = created.json()["post"]["id"]

        fetched = (await test_client.get(f"/posts/{post_id}")).json()

        parsed = datetime.fromisoformat(fetched["created_at"].replace("Z", "+00:00"))
        assert parsed.utcoffset() == timedelta(0)


class TestErrorHandling:

    @pytest.mark.asyncio
    async def test_unknown_route_is_structured_404(self, test_client):
        response = await test_client.get("/nowhere", headers={"X-Request-ID": "req-123"})

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "Route not found",
            "request_id": "req-123",
        }
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_wrong_method_keeps_status(self, test_client):
        response = await test_client.delete("/posts")

        assert response.status_code == 405
        assert response.json()["error"] == "http_error"

    @pytest.mark.asyncio
    async def test_storage_error_is_sanitized_500(self, app, test_client):
        app.dependency_overrides[get_post_service] = lambda: FailingPostService(
            StorageError(context={"operation": "list_posts", "sql": "SELECT secret"})
        )

        response = await test_client.get("/posts")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "details" not in body
        assert "SELECT" not in response.text

    @pytest.mark.asyncio
    async def test_favorite_storage_error_is_sanitized_500(self, app, test_client):
        app.dependency_overrides[get_post_service] = lambda: FailingPostService(
            StorageError(
                message="Could not update the post. Please try again.",
                context={
                    "operation": "set_favorite",
                    "post_id": "p1",
                    "error_type": "OperationalError",
                },
            )
        )

        response = await test_client.post("/posts/p1/favorite")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "details" not in body
        assert "OperationalError" not in response.text

    @pytest.mark.asyncio
    async def test_unhandled_error_still_writes_access_line(self, app, test_client, caplog):
        app.dependency_overrides[get_post_service] = lambda: FailingPostService(
            RuntimeError("boom")
        )

        with caplog.at_level(logging.ERROR, logger="posts_api.access"):
            response = await test_client.get("/posts", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        access = [r for r in caplog.records if r.name == "posts_api.access"]
        assert len(access) == 1
        assert access[0].levelno == logging.ERROR
        assert access[0].status == 500
        assert access[0].request_id == "req-500"
        assert access[0].unhandled is True

    @pytest.mark.asyncio
    async def test_unexpected_error_includes_detail_outside_production(self, app, test_client):
        app.dependency_overrides[get_post_service] = lambda: FailingPostService(
            RuntimeError("boom")
        )

        response = await test_client.get("/posts")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["details"] == {"exception": "RuntimeError", "detail": "boom"}

    @pytest.mark.asyncio
    async def test_unexpected_error_hides_detail_in_production(self, tmp_path):
        app = create_app(make_settings(tmp_path, environment="production"))
        app.dependency_overrides[get_post_service] = lambda: FailingPostService(
            RuntimeError("boom")
        )
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/posts")
        await app.state.database.dispose()

        assert response.status_code == 500
        assert "details" not in response.json()
        assert "boom" not in response.text


class TestServiceRoutes:

    @pytest.mark.asyncio
    async def test_welcome(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert "Posts API" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_health_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_unhealthy_when_database_unreachable(self, tmp_path):
        missing_dir = tmp_path / "missing" / "posts.db"
        app = create_app(
            make_settings(tmp_path, database_url=f"sqlite+aiosqlite:///{missing_dir}")
        )
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")
        await app.state.database.dispose()

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_generated_request_id_header(self, test_client):
        response = await test_client.get("/posts")

        assert len(response.headers["X-Request-ID"]) == 8
