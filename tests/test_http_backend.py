"""
Tests for the REST backend, against httpx.MockTransport.
"""

import json

import httpx
import pytest

from family_hub.config import ApiSettings
from family_hub.services.storage import (
    BackendUnavailableError,
    HttpEntityBackend,
    NotFoundError,
    StorageError,
)


TASK = {
    "id": "task_1",
    "title": "Buy groceries",
    "assignee": "Sarah",
    "dueDate": "2024-03-15",
    "priority": "medium",
    "completed": False,
    "createdAt": "2024-03-01T12:00:00Z",
    "updatedAt": "2024-03-01T12:00:00Z",
}


def make_backend(handler, max_retries=1):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return HttpEntityBackend(ApiSettings(max_retries=max_retries), client=client)


class TestHttpEntityBackend:
    """Tests for HttpEntityBackend."""

    @pytest.mark.asyncio
    async def test_list_records(self):
        """Test GET /api/<resource>."""
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json=[TASK])

        backend = make_backend(handler)
        rows = await backend.list_records("tasks")

        assert rows == [TASK]
        assert seen == [("GET", "/api/tasks")]
        assert backend.identity == "http://test"

    @pytest.mark.asyncio
    async def test_list_non_list_is_error(self):
        """Test that an error object with status 200 is not taken as data."""
        backend = make_backend(lambda request: httpx.Response(200, json={"error": "db down"}))

        with pytest.raises(StorageError):
            await backend.list_records("tasks")

    @pytest.mark.asyncio
    async def test_list_retries_transport_errors(self):
        """Test that a failed read is retried up to max_retries."""
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[])

        backend = make_backend(handler, max_retries=2)

        assert await backend.list_records("events") == []
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_list_gives_up(self):
        """Test that exhausting retries raises BackendUnavailableError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend = make_backend(handler)

        with pytest.raises(BackendUnavailableError):
            await backend.list_records("events")

    @pytest.mark.asyncio
    async def test_create_record(self):
        """Test POST with the wire body; writes are not retried."""
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={**TASK, **bodies[-1]})

        backend = make_backend(handler, max_retries=3)
        record = await backend.create_record("tasks", {"title": "Mow lawn"})

        assert record["title"] == "Mow lawn"
        assert bodies == [{"title": "Mow lawn"}]

    @pytest.mark.asyncio
    async def test_create_without_id_is_error(self):
        """Test that a create response with no record raises."""
        backend = make_backend(lambda request: httpx.Response(200, json={}))

        with pytest.raises(StorageError):
            await backend.create_record("tasks", {"title": "Mow lawn"})

    @pytest.mark.asyncio
    async def test_update_sends_id_in_body(self):
        """Test PUT with {id, ...changes}."""
        captured = {}

        def handler(request):
            captured["method"] = request.method
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={**TASK, "completed": True})

        backend = make_backend(handler)
        record = await backend.update_record("tasks", "task_1", {"completed": True})

        assert captured == {"method": "PUT", "body": {"id": "task_1", "completed": True}}
        assert record["completed"] is True

    @pytest.mark.asyncio
    async def test_update_missing_record(self):
        """Test that 404 and an empty body both mean not found."""
        backend = make_backend(lambda request: httpx.Response(404))
        with pytest.raises(NotFoundError):
            await backend.update_record("tasks", "nope", {"completed": True})

        backend = make_backend(lambda request: httpx.Response(200, json=None))
        with pytest.raises(NotFoundError):
            await backend.update_record("tasks", "nope", {"completed": True})

    @pytest.mark.asyncio
    async def test_delete_record(self):
        """Test DELETE ?id=<id>."""
        seen = []

        def handler(request):
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"success": True})

        backend = make_backend(handler)

        assert await backend.delete_record("family-members", "member_1") is True
        assert seen == [{"id": "member_1"}]

    @pytest.mark.asyncio
    async def test_delete_missing_is_false(self):
        """Test that deleting an unknown id reports False instead of raising."""
        backend = make_backend(lambda request: httpx.Response(404))
        assert await backend.delete_record("tasks", "nope") is False

    @pytest.mark.asyncio
    async def test_server_error(self):
        """Test that a 500 carries its status code."""
        backend = make_backend(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(StorageError) as exc_info:
            await backend.delete_record("tasks", "task_1")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_bootstrap(self):
        """Test POST /api/init."""
        paths = []

        def handler(request):
            paths.append((request.method, request.url.path))
            return httpx.Response(200, json={"success": True})

        backend = make_backend(handler)

        assert await backend.bootstrap(seed=True) is True
        assert paths == [("POST", "/api/init")]

        failing = make_backend(lambda request: httpx.Response(200, json={"success": False}))
        assert await failing.bootstrap() is False

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        """Test that aclose() leaves a caller-owned client open."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
            base_url="http://test",
        )
        backend = HttpEntityBackend(ApiSettings(), client=client)

        await backend.aclose()

        assert not client.is_closed
        await client.aclose()
