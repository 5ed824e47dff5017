"""
Tests for wiring the application context together.
"""

import pytest

from family_hub.config import Settings
from family_hub.models import NotificationType, TaskDraft
from family_hub.orchestrator import create_app_context
from family_hub.services.storage import InMemoryEntityBackend

from conftest import TODAY, FlakyBackend


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.setenv("BACKEND", "memory")
    monkeypatch.setenv("STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("PUSH_VAPID_PUBLIC_KEY", "demo-vapid-key")
    return Settings()


class TestAppContext:
    """Tests for create_app_context() and the start/shutdown lifecycle."""

    @pytest.mark.asyncio
    async def test_memory_backend_from_settings(self, settings):
        """Test that the backend named in settings is built and seeded on start."""
        context = create_app_context(settings)
        assert isinstance(context.backend, InMemoryEntityBackend)

        await context.start(run_sweeper=False)

        assert context.started
        assert len(context.store.tasks) == 2
        assert len(context.store.family_members) == 2
        await context.shutdown()
        assert not context.store.is_mounted

    @pytest.mark.asyncio
    async def test_writes_reach_notifications(self, settings, kv_store):
        """Test that the engine is subscribed to gateway mutations."""
        context = create_app_context(settings, backend=FlakyBackend(today=TODAY), local_store=kv_store)
        await context.start(run_sweeper=False)

        await context.gateway.add_task(TaskDraft(title="Walk the dog", assignee="Alex", due_date=TODAY))

        assert [n.type for n in context.notifications.notifications] == [NotificationType.TASK]
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_planning_add_reaches_calendar(self, settings, kv_store):
        """Test that the planning service is wired to the calendar bridge."""
        context = create_app_context(settings, backend=FlakyBackend(today=TODAY), local_store=kv_store)
        await context.start(run_sweeper=False)
        before = len(context.store.events)

        result = await context.planning.add_party({
            "title": "Game Night", "type": "gathering", "date": TODAY.isoformat(),
            "time": "19:00", "location": "Living room", "organizer": "Alex",
        })

        assert result.ok
        assert len(context.store.events) == before + 1
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, settings, kv_store):
        """Test that a second start() does nothing."""
        backend = FlakyBackend(today=TODAY)
        context = create_app_context(settings, backend=backend, local_store=kv_store)

        await context.start(run_sweeper=False)
        await context.start(run_sweeper=False)

        assert backend.bootstrap_calls == 1
        assert context.store.load_count == 1
        await context.shutdown()
