"""
WiseNotes API — Endpoint Tests
===============================

What:  End-to-end tests through the ASGI app: auth, routing, status codes,
       headers and error bodies.
How:   HTTPX AsyncClient over ASGITransport; the app's sessions are bound to
       the in-memory SQLite engine from conftest.

What we test:
    ✅ Every route rejects missing, forged, expired and subject-less tokens (401)
    ✅ Create returns 201 with a Location header
    ✅ Validation failures return 400 naming the field
    ✅ Foreign notebooks are 404 (read/update/delete) and 403 (note create)
    ✅ Database failures return a generic 500
    ✅ A failed commit is reported as 500, never as success
    ✅ Ids no row can have answer 404 / empty list / 403, not 500
    ✅ X-Request-ID is echoed and appears in error bodies
    ✅ Rate limiting answers 429 with Retry-After
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wisenotes.database import MAX_ROW_ID, get_db_session
from wisenotes.dependencies import get_note_service, get_notebook_service
from wisenotes.exceptions import DatabaseError
from wisenotes.middleware.rate_limit import RateLimitMiddleware
from wisenotes.models.notebook import Notebook

ALICE = "alice"
BOB = "bob"


async def create_notebook(client, headers, title="Groceries"):
    response = await client.post("/notebooks", json={"title": title}, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


async def create_note(client, headers, notebook_id, content="Buy milk"):
    response = await client.post(
        f"/notebooks/{notebook_id}/notes", json={"content": content}, headers=headers
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/notebooks"),
            ("POST", "/notebooks"),
            ("GET", "/notebooks/1"),
            ("PUT", "/notebooks/1"),
            ("DELETE", "/notebooks/1"),
            ("GET", "/notebooks/1/notes"),
            ("POST", "/notebooks/1/notes"),
            ("GET", "/notebooks/1/notes/1"),
            ("PUT", "/notebooks/1/notes/1"),
            ("DELETE", "/notebooks/1/notes/1"),
        ],
    )
    async def test_missing_token_is_401(self, test_client, method, path):
        response = await test_client.request(method, path, json={"title": "x", "content": "x"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_wrong_signature_is_401(self, test_client, make_token):
        token = make_token(ALICE, secret="some-other-secret-0123456789abcdef")

        response = await test_client.get("/notebooks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token_is_401(self, test_client, make_token):
        token = make_token(ALICE, expires_in=timedelta(minutes=-5))

        response = await test_client.get("/notebooks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_without_user_claim_is_401(self, test_client, make_token):
        token = make_token(sub=None, email="alice@example.com")

        response = await test_client.get("/notebooks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, test_client):
        response = await test_client.get("/notebooks", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_nothing_written_without_auth(self, test_client, auth_headers):
        await test_client.post("/notebooks", json={"title": "Sneaky"})

        response = await test_client.get("/notebooks", headers=auth_headers(ALICE))
        assert response.json() == []


class TestNotebookEndpoints:

    @pytest.mark.asyncio
    async def test_create_returns_201_with_location(self, test_client, auth_headers):
        response = await test_client.post(
            "/notebooks", json={"title": "Groceries"}, headers=auth_headers(ALICE)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Groceries"
        assert body["note_count"] == 0
        assert response.headers["Location"] == f"/notebooks/{body['id']}"

    @pytest.mark.asyncio
    async def test_location_resolves(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        created = await test_client.post("/notebooks", json={"title": "Work"}, headers=headers)

        response = await test_client.get(created.headers["Location"], headers=headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Work"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "    "}, {"title": "x" * 26}])
    async def test_invalid_title_is_400(self, test_client, auth_headers, payload):
        response = await test_client.post("/notebooks", json=payload, headers=auth_headers(ALICE))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["field_name"] == "title"

    @pytest.mark.asyncio
    async def test_title_at_limit_is_accepted(self, test_client, auth_headers):
        response = await test_client.post(
            "/notebooks", json={"title": "x" * 25}, headers=auth_headers(ALICE)
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_caller(self, test_client, auth_headers):
        await create_notebook(test_client, auth_headers(ALICE), "Alice's")
        await create_notebook(test_client, auth_headers(BOB), "Bob's")

        response = await test_client.get("/notebooks", headers=auth_headers(ALICE))

        assert response.status_code == 200
        assert [nb["title"] for nb in response.json()] == ["Alice's"]

    @pytest.mark.asyncio
    async def test_update_returns_204(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)

        response = await test_client.put(
            f"/notebooks/{notebook_id}", json={"title": "Renamed"}, headers=headers
        )

        assert response.status_code == 204
        assert response.content == b""
        fetched = await test_client.get(f"/notebooks/{notebook_id}", headers=headers)
        assert fetched.json()["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_update_with_same_title_returns_204(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers, "Same")

        response = await test_client.put(
            f"/notebooks/{notebook_id}", json={"title": "Same"}, headers=headers
        )

        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_foreign_notebook_is_404_everywhere(self, test_client, auth_headers):
        notebook_id = await create_notebook(test_client, auth_headers(ALICE), "Private")
        bob = auth_headers(BOB)

        get_resp = await test_client.get(f"/notebooks/{notebook_id}", headers=bob)
        put_resp = await test_client.put(
            f"/notebooks/{notebook_id}", json={"title": "Mine now"}, headers=bob
        )
        del_resp = await test_client.delete(f"/notebooks/{notebook_id}", headers=bob)

        assert [get_resp.status_code, put_resp.status_code, del_resp.status_code] == [404, 404, 404]
        assert str(notebook_id) not in get_resp.json()["message"]
        still_there = await test_client.get(f"/notebooks/{notebook_id}", headers=auth_headers(ALICE))
        assert still_there.json()["title"] == "Private"

    @pytest.mark.asyncio
    async def test_delete_cascades_to_notes(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)
        note_id = await create_note(test_client, headers, notebook_id)

        response = await test_client.delete(f"/notebooks/{notebook_id}", headers=headers)

        assert response.status_code == 204
        gone = await test_client.get(f"/notebooks/{notebook_id}", headers=headers)
        assert gone.status_code == 404
        note = await test_client.get(f"/notebooks/{notebook_id}/notes/{note_id}", headers=headers)
        assert note.status_code == 404

    @pytest.mark.asyncio
    async def test_note_count_reflects_notes(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)
        await create_note(test_client, headers, notebook_id, "one")
        await create_note(test_client, headers, notebook_id, "two")

        response = await test_client.get(f"/notebooks/{notebook_id}", headers=headers)

        assert response.json()["note_count"] == 2


class TestNoteEndpoints:

    @pytest.mark.asyncio
    async def test_create_returns_201_with_location(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)

        response = await test_client.post(
            f"/notebooks/{notebook_id}/notes", json={"content": "Buy milk"}, headers=headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["content"] == "Buy milk"
        assert response.headers["Location"] == f"/notebooks/{notebook_id}/notes/{body['id']}"

    @pytest.mark.asyncio
    async def test_create_in_foreign_notebook_is_403(self, test_client, auth_headers):
        notebook_id = await create_notebook(test_client, auth_headers(ALICE))

        response = await test_client.post(
            f"/notebooks/{notebook_id}/notes", json={"content": "hi"}, headers=auth_headers(BOB)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_invalid_content_in_foreign_notebook_is_400(self, test_client, auth_headers):
        notebook_id = await create_notebook(test_client, auth_headers(ALICE))

        response = await test_client.post(
            f"/notebooks/{notebook_id}/notes", json={"content": ""}, headers=auth_headers(BOB)
        )

        assert response.status_code == 400
        assert response.json()["field_name"] == "content"

    @pytest.mark.asyncio
    async def test_content_over_limit_is_400(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)

        response = await test_client.post(
            f"/notebooks/{notebook_id}/notes", json={"content": "c" * 501}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"max_length": 500}

    @pytest.mark.asyncio
    async def test_list_of_foreign_notebook_is_empty(self, test_client, auth_headers):
        alice = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, alice)
        await create_note(test_client, alice, notebook_id)

        response = await test_client.get(f"/notebooks/{notebook_id}/notes", headers=auth_headers(BOB))

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_note_through_wrong_notebook_is_404(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        nb_a = await create_notebook(test_client, headers, "A")
        nb_b = await create_notebook(test_client, headers, "B")
        note_id = await create_note(test_client, headers, nb_a)

        response = await test_client.get(f"/notebooks/{nb_b}/notes/{note_id}", headers=headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_returns_200_with_view(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)
        note_id = await create_note(test_client, headers, notebook_id, "old")

        response = await test_client.put(
            f"/notebooks/{notebook_id}/notes/{note_id}", json={"content": "new"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json() == {"id": note_id, "content": "new"}

    @pytest.mark.asyncio
    async def test_update_foreign_note_is_404(self, test_client, auth_headers):
        alice = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, alice)
        note_id = await create_note(test_client, alice, notebook_id, "mine")

        response = await test_client.put(
            f"/notebooks/{notebook_id}/notes/{note_id}",
            json={"content": "overwritten"},
            headers=auth_headers(BOB),
        )

        assert response.status_code == 404
        fetched = await test_client.get(f"/notebooks/{notebook_id}/notes/{note_id}", headers=alice)
        assert fetched.json()["content"] == "mine"

    @pytest.mark.asyncio
    async def test_delete_returns_204(self, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)
        note_id = await create_note(test_client, headers, notebook_id)

        response = await test_client.delete(
            f"/notebooks/{notebook_id}/notes/{note_id}", headers=headers
        )

        assert response.status_code == 204
        again = await test_client.delete(f"/notebooks/{notebook_id}/notes/{note_id}", headers=headers)
        assert again.status_code == 404


class TestErrorResponses:

    @pytest.mark.asyncio
    async def test_database_error_is_generic_500(self, app, test_client, auth_headers):
        failing = MagicMock()
        failing.list_notebooks = AsyncMock(
            side_effect=DatabaseError(message="connection reset", context={"host": "db-1"})
        )
        app.dependency_overrides[get_notebook_service] = lambda: failing

        response = await test_client.get("/notebooks", headers=auth_headers(ALICE))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "connection reset" not in body["message"]
        assert "db-1" not in response.text

    @pytest.mark.asyncio
    async def test_note_database_error_is_500(self, app, test_client, auth_headers):
        failing = MagicMock()
        failing.list_notes = AsyncMock(side_effect=DatabaseError())
        app.dependency_overrides[get_note_service] = lambda: failing

        response = await test_client.get("/notebooks/1/notes", headers=auth_headers(ALICE))

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client, auth_headers):
        response = await test_client.get(
            "/notebooks/999", headers={**auth_headers(ALICE), "X-Request-ID": "trace-123"}
        )

        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client, auth_headers):
        response = await test_client.get("/notebooks", headers=auth_headers(ALICE))

        assert len(response.headers["X-Request-ID"]) == 8


class CommitFailingSession(AsyncSession):
    """Session whose commit fails as if the store went away mid-transaction."""

    async def commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


def route_sessions_to_failing_commits(app, db_engine):
    factory = async_sessionmaker(db_engine, class_=CommitFailingSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_failed_commit_on_create_is_500(self, app, db_engine, test_client, auth_headers):
        route_sessions_to_failing_commits(app, db_engine)

        response = await test_client.post(
            "/notebooks", json={"title": "Lost"}, headers=auth_headers(ALICE)
        )

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
        assert "Location" not in response.headers

    @pytest.mark.asyncio
    async def test_failed_commit_leaves_nothing_behind(
        self, app, db_engine, session_factory, test_client, auth_headers
    ):
        route_sessions_to_failing_commits(app, db_engine)

        await test_client.post("/notebooks", json={"title": "Lost"}, headers=auth_headers(ALICE))

        async with session_factory() as session:
            assert await session.scalar(select(func.count(Notebook.id))) == 0

    @pytest.mark.asyncio
    async def test_failed_commit_on_delete_is_500(self, app, db_engine, test_client, auth_headers):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)
        normal_session = app.dependency_overrides[get_db_session]
        route_sessions_to_failing_commits(app, db_engine)

        response = await test_client.delete(f"/notebooks/{notebook_id}", headers=headers)

        assert response.status_code == 500
        app.dependency_overrides[get_db_session] = normal_session
        still_there = await test_client.get(f"/notebooks/{notebook_id}", headers=headers)
        assert still_there.status_code == 200


class TestUnstorableIds:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", [0, -1, MAX_ROW_ID + 1, 2**63])
    async def test_notebook_routes_answer_404(self, test_client, auth_headers, bad_id):
        headers = auth_headers(ALICE)

        get_resp = await test_client.get(f"/notebooks/{bad_id}", headers=headers)
        put_resp = await test_client.put(f"/notebooks/{bad_id}", json={"title": "x"}, headers=headers)
        del_resp = await test_client.delete(f"/notebooks/{bad_id}", headers=headers)

        assert [get_resp.status_code, put_resp.status_code, del_resp.status_code] == [404, 404, 404]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", [0, MAX_ROW_ID + 1, 2**63])
    async def test_note_routes_answer_per_operation(self, test_client, auth_headers, bad_id):
        headers = auth_headers(ALICE)
        notebook_id = await create_notebook(test_client, headers)

        listed = await test_client.get(f"/notebooks/{bad_id}/notes", headers=headers)
        created = await test_client.post(
            f"/notebooks/{bad_id}/notes", json={"content": "hi"}, headers=headers
        )
        get_resp = await test_client.get(f"/notebooks/{notebook_id}/notes/{bad_id}", headers=headers)
        put_resp = await test_client.put(
            f"/notebooks/{notebook_id}/notes/{bad_id}", json={"content": "hi"}, headers=headers
        )
        del_resp = await test_client.delete(f"/notebooks/{bad_id}/notes/1", headers=headers)

        assert listed.status_code == 200
        assert listed.json() == []
        assert created.status_code == 403
        assert [get_resp.status_code, put_resp.status_code, del_resp.status_code] == [404, 404, 404]


class TestUnexpectedErrors:

    @pytest.mark.asyncio
    async def test_unexpected_error_body_carries_request_id(self, app, auth_headers):
        broken = MagicMock()
        broken.list_notebooks = AsyncMock(side_effect=RuntimeError("boom"))
        app.dependency_overrides[get_notebook_service] = lambda: broken

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(
                "/notebooks", headers={**auth_headers(ALICE), "X-Request-ID": "rid-123"}
            )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["request_id"] == "rid-123"
        assert "boom" not in response.text


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_requests_over_limit_get_429(self):
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"ok": True}

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            first = await client.get("/ping")
            second = await client.get("/ping")
            third = await client.get("/ping")
            health_resp = await client.get("/health")

        assert [first.status_code, second.status_code] == [200, 200]
        assert third.status_code == 429
        assert third.json()["error"] == "rate_limit_exceeded"
        assert 0 < int(third.headers["Retry-After"]) <= 61
        assert health_resp.status_code == 200
