"""
Tests for the notification engine: the log, quiet hours, persistence,
expiry and the mutation-to-alert mapping.
"""

import asyncio
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from family_hub.models import (
    AuditEventType,
    EntityKind,
    MutationEvent,
    NotificationPriority,
    NotificationType,
    PermissionState,
    Subscription,
    SubscriptionStatus,
    SyncAction,
)
from family_hub.notifications import NotificationBuilder, NotificationEngine, within_quiet_hours
from family_hub.notifications.engine import NOTIFICATIONS_KEY, PREFERENCES_KEY
from family_hub.services.local_store import KeyValueStore

from conftest import CREATED, TODAY, RecordingTransport, make_event, make_member, make_task


NOON = datetime(2024, 3, 15, 12, 0)
LATE_NIGHT = datetime(2024, 3, 15, 23, 30)


@pytest.fixture
def engine(kv_store, transport, audit_logger):
    return NotificationEngine(kv_store, transport, audit_logger, clock=lambda: NOON)


def system_draft(title="Hello"):
    return NotificationBuilder.system(title, "Something happened")


class TestQuietHours:
    """Tests for within_quiet_hours."""

    def test_window_wrapping_midnight(self):
        """Test a 22:00-07:00 window."""
        assert within_quiet_hours(time(23, 30), "22:00", "07:00")
        assert within_quiet_hours(time(6, 59), "22:00", "07:00")
        assert within_quiet_hours(time(3, 0), "22:00", "07:00")
        assert not within_quiet_hours(time(12, 0), "22:00", "07:00")
        assert not within_quiet_hours(time(21, 59), "22:00", "07:00")

    def test_both_ends_inclusive(self):
        """Test that start and end minutes are inside the window."""
        assert within_quiet_hours(time(22, 0), "22:00", "07:00")
        assert within_quiet_hours(time(7, 0), "22:00", "07:00")
        assert not within_quiet_hours(time(7, 1), "22:00", "07:00")

    def test_same_day_window(self):
        """Test a window that does not wrap."""
        assert within_quiet_hours(datetime(2024, 3, 15, 13, 0), "12:00", "14:00")
        assert not within_quiet_hours(datetime(2024, 3, 15, 15, 0), "12:00", "14:00")
        assert within_quiet_hours(time(10, 0), "09:00", "17:00")
        assert not within_quiet_hours(time(20, 0), "09:00", "17:00")


class TestNotificationLog:
    """Tests for add, mark and remove."""

    @pytest.mark.asyncio
    async def test_add_prepends_unread(self, engine):
        """Test that new notifications go to the head of the log, unread."""
        first = await engine.add(system_draft("First"))
        second = await engine.add(system_draft("Second"))

        assert [n.id for n in engine.notifications] == [second.id, first.id]
        assert engine.unread_count == 2
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_mark_and_remove(self, engine):
        """Test marking single and all notifications read, and removal."""
        a = await engine.add(system_draft("A"))
        b = await engine.add(system_draft("B"))
        await engine.add(system_draft("C"))

        assert engine.mark_as_read(a.id)
        assert not engine.mark_as_read("missing")
        assert engine.unread_count == 2

        assert engine.mark_all_as_read() == 2
        assert engine.unread_count == 0

        assert engine.remove(b.id)
        assert not engine.remove(b.id)
        assert len(engine.notifications) == 2

        engine.clear_all()
        assert engine.notifications == []

    @pytest.mark.asyncio
    async def test_shown_on_platform_outside_quiet_hours(self, engine, transport):
        """Test that a notification is displayed when nothing suppresses it."""
        await engine.add(NotificationBuilder.system("Urgent", "Now", NotificationPriority.URGENT))

        assert len(transport.shown) == 1
        assert transport.shown[0].title == "Urgent"
        assert transport.shown[0].require_interaction is True

    @pytest.mark.asyncio
    async def test_quiet_hours_suppress_display_not_log(self, kv_store, transport):
        """Test that during quiet hours the log still records the notification."""
        engine = NotificationEngine(kv_store, transport, clock=lambda: LATE_NIGHT)

        await engine.add(system_draft())

        assert transport.shown == []
        assert len(engine.notifications) == 1
        assert engine.is_within_quiet_hours()

    @pytest.mark.asyncio
    async def test_no_permission_or_disabled_suppresses_display(self, kv_store):
        """Test that display needs both the preference and a granted permission."""
        denied = RecordingTransport(permission=PermissionState.DENIED)
        engine = NotificationEngine(kv_store, denied, clock=lambda: NOON)
        await engine.add(system_draft())
        assert denied.shown == []

        granted = RecordingTransport()
        engine = NotificationEngine(kv_store, granted, clock=lambda: NOON)
        await engine.restore()
        await engine.update_preferences(enable_browser_notifications=False)
        await engine.add(system_draft())
        assert granted.shown == []
        assert len(engine.notifications) == 2

    @pytest.mark.asyncio
    async def test_display_failure_is_logged(self, kv_store, audit_logger):
        """Test that a failing transport does not lose the notification."""
        class BrokenTransport(RecordingTransport):
            async def send_local(self, payload):
                raise RuntimeError("display failed")

        engine = NotificationEngine(kv_store, BrokenTransport(), audit_logger, clock=lambda: NOON)
        await engine.add(system_draft())

        assert len(engine.notifications) == 1
        errors = audit_logger.events_of(AuditEventType.SYSTEM_ERROR)
        assert errors[0].error_message == "display failed"


class TestPersistence:
    """Tests for restore()."""

    @pytest.mark.asyncio
    async def test_log_and_preferences_survive_restart(self, kv_store, transport):
        """Test that a second engine restores what the first saved."""
        first = NotificationEngine(kv_store, transport, clock=lambda: NOON)
        saved = await first.add(system_draft())
        first.mark_as_read(saved.id)
        await first.update_preferences(quiet_hours_start="21:30", enable_family_updates=False)

        second = NotificationEngine(kv_store, transport, clock=lambda: NOON)
        await second.restore()

        assert [n.id for n in second.notifications] == [saved.id]
        assert second.notifications[0].read is True
        assert second.preferences.quiet_hours_start == "21:30"
        assert second.preferences.enable_family_updates is False

    @pytest.mark.asyncio
    async def test_corrupt_state_falls_back_to_defaults(self, kv_store, audit_logger):
        """Test that unreadable preferences and log are replaced, not raised."""
        kv_store.write(PREFERENCES_KEY, {})
        kv_store._path(PREFERENCES_KEY).write_text("{oops", encoding="utf-8")
        kv_store.write(NOTIFICATIONS_KEY, {"not": "a list"})

        engine = NotificationEngine(kv_store, audit_logger=audit_logger)
        await engine.restore()

        assert engine.preferences.reminder_minutes_before == 15
        assert engine.notifications == []
        corrupt = audit_logger.events_of(AuditEventType.LOCAL_STATE_CORRUPT)
        assert len(corrupt) == 2

    @pytest.mark.asyncio
    async def test_invalid_entries_dropped(self, kv_store):
        """Test that one bad log entry does not discard the rest."""
        kv_store.write(NOTIFICATIONS_KEY, [
            {"type": "system", "title": "Old", "message": "x",
             "timestamp": "2024-03-14T10:00:00+00:00"},
            {"type": "nonsense", "title": "Bad", "message": "x"},
            {"type": "system", "title": "New", "message": "x",
             "timestamp": "2024-03-15T10:00:00+00:00"},
        ])

        engine = NotificationEngine(kv_store)
        await engine.restore()

        assert [n.title for n in engine.notifications] == ["New", "Old"]

    @pytest.mark.asyncio
    async def test_unwritable_state_keeps_log_in_memory(self, tmp_path, transport, audit_logger):
        """Test that a failing state directory does not lose notifications or raise."""
        blocked = tmp_path / "state"
        blocked.write_text("not a directory", encoding="utf-8")
        engine = NotificationEngine(KeyValueStore(blocked), transport, audit_logger, clock=lambda: NOON)

        added = await engine.add(system_draft())
        assert engine.mark_as_read(added.id) is True
        await engine.update_preferences(quiet_hours_start="21:00")

        assert [n.id for n in engine.notifications] == [added.id]
        assert engine.notifications[0].read is True
        assert engine.preferences.quiet_hours_start == "21:00"
        failures = audit_logger.events_of(AuditEventType.LOCAL_STATE_WRITE_FAILED)
        assert len(failures) == 3
        assert {e.description for e in failures} >= {
            f"Local state '{NOTIFICATIONS_KEY}' not saved; keeping in-memory value",
            f"Local state '{PREFERENCES_KEY}' not saved; keeping in-memory value",
        }

    @pytest.mark.asyncio
    async def test_invalid_preference_update_rejected(self, engine):
        """Test that an invalid change raises and leaves preferences unchanged."""
        with pytest.raises(ValidationError):
            await engine.update_preferences(quiet_hours_end="25:00")
        assert engine.preferences.quiet_hours_end == "07:00"


class TestTimers:
    """Tests for expiry and scheduled delivery."""

    @pytest.mark.asyncio
    async def test_sweep_expired(self, engine):
        """Test that expired notifications are removed."""
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        expired = system_draft("Gone").model_copy(update={"expires_at": now - timedelta(minutes=1)})
        await engine.add(expired)
        await engine.add(system_draft("Stays"))

        assert engine.sweep_expired(now) == 1
        assert [n.title for n in engine.notifications] == ["Stays"]
        assert engine.sweep_expired(now) == 0

    @pytest.mark.asyncio
    async def test_schedule_delivers_after_delay(self, engine):
        """Test that a scheduled notification is added once its delay passes."""
        task = engine.schedule(system_draft("Later"), 0.01)
        assert engine.notifications == []
        assert engine.pending_scheduled == 1

        await task

        assert [n.title for n in engine.notifications] == ["Later"]
        assert engine.pending_scheduled == 0

    @pytest.mark.asyncio
    async def test_stop_cancels_pending(self, engine):
        """Test that stop() cancels the sweeper and pending deliveries."""
        engine.start_expiry_sweeper()
        engine.schedule(system_draft("Never"), 60)

        await engine.stop()
        await asyncio.sleep(0)

        assert engine.pending_scheduled == 0
        assert engine.notifications == []


class TestMutationAlerts:
    """Tests for handle_mutation."""

    @pytest.mark.asyncio
    async def test_new_task_creates_task_reminder(self, engine):
        """Test the alert for a newly created task."""
        task = make_task()
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.TASK, action=SyncAction.CREATE, entity_id=task.id, entity=task,
        ))

        assert added.type == NotificationType.TASK
        assert added.message == '"Buy groceries" assigned to Sarah is due 3/15/2024'

    @pytest.mark.asyncio
    async def test_completed_task_creates_family_update(self, engine):
        """Test that completing a task announces it."""
        task = make_task(completed=True)
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.TASK, action=SyncAction.UPDATE, entity_id=task.id,
            entity=task, changes={"completed": True},
        ))

        assert added.type == NotificationType.FAMILY
        assert added.message == 'Sarah completed "Buy groceries"'

    @pytest.mark.asyncio
    async def test_other_task_updates_are_quiet(self, engine):
        """Test that an update not completing the task adds nothing."""
        task = make_task()
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.TASK, action=SyncAction.UPDATE, entity_id=task.id,
            entity=task, changes={"title": "Buy groceries"},
        ))
        assert added is None
        assert engine.notifications == []

    @pytest.mark.asyncio
    async def test_due_subscription_alert(self, engine):
        """Test the alert for a subscription marked due."""
        sub = Subscription(
            id="sub_1", created_at=CREATED, updated_at=CREATED, name="Netflix",
            cost=Decimal("15.99"), status=SubscriptionStatus.DUE, next_payment=date(2024, 3, 20),
        )
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.SUBSCRIPTION, action=SyncAction.UPDATE, entity_id=sub.id,
            entity=sub, changes={"status": "due"},
        ))

        assert added.priority == NotificationPriority.HIGH
        assert added.message == "Netflix payment of $15.99 is due 3/20/2024"

    @pytest.mark.asyncio
    async def test_unrelated_edit_of_due_subscription_is_quiet(self, engine):
        """Test that editing other fields of an already-due subscription adds nothing."""
        sub = Subscription(
            id="sub_1", created_at=CREATED, updated_at=CREATED, name="Netflix",
            cost=Decimal("15.99"), status=SubscriptionStatus.DUE, next_payment=date(2024, 3, 20),
            website="https://netflix.example",
        )
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.SUBSCRIPTION, action=SyncAction.UPDATE, entity_id=sub.id,
            entity=sub, changes={"website": "https://netflix.example"},
        ))

        assert added is None
        assert engine.notifications == []

    @pytest.mark.asyncio
    async def test_new_member_announced(self, engine):
        """Test the family update for a new member."""
        member = make_member(name="Grandma")
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.FAMILY_MEMBER, action=SyncAction.CREATE, entity_id=member.id, entity=member,
        ))
        assert added.message == "Grandma joined the family"

    @pytest.mark.asyncio
    async def test_disabled_type_is_skipped(self, engine):
        """Test that a disabled preference suppresses the alert entirely."""
        await engine.update_preferences(enable_task_reminders=False)
        task = make_task()

        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.TASK, action=SyncAction.CREATE, entity_id=task.id, entity=task,
        ))

        assert added is None
        assert engine.notifications == []

    @pytest.mark.asyncio
    async def test_delete_adds_nothing(self, engine):
        """Test that deletions never notify."""
        task = make_task()
        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.TASK, action=SyncAction.DELETE, entity_id=task.id, entity=task,
        ))
        assert added is None

    @pytest.mark.asyncio
    async def test_future_event_schedules_reminder(self, engine):
        """Test that a new event schedules a reminder ahead of its start."""
        event = make_event(on=TODAY, at="18:00")

        added = await engine.handle_mutation(MutationEvent(
            kind=EntityKind.EVENT, action=SyncAction.CREATE, entity_id=event.id, entity=event,
        ))

        assert added is None
        assert engine.pending_scheduled == 1
        await engine.stop()

    @pytest.mark.asyncio
    async def test_imminent_event_reminder_delivered(self, engine):
        """Test that a reminder already due is delivered right away."""
        event = make_event(on=TODAY, at="12:10")

        await engine.handle_mutation(MutationEvent(
            kind=EntityKind.EVENT, action=SyncAction.CREATE, entity_id=event.id, entity=event,
        ))
        for _ in range(5):
            await asyncio.sleep(0)

        assert [n.type for n in engine.notifications] == [NotificationType.SCHEDULE]
        assert engine.notifications[0].message == "Soccer Practice for Alex starts in 15 minutes"

    @pytest.mark.asyncio
    async def test_past_event_not_reminded(self, engine):
        """Test that an event already started gets no reminder."""
        event = make_event(on=TODAY, at="08:00")

        await engine.handle_mutation(MutationEvent(
            kind=EntityKind.EVENT, action=SyncAction.CREATE, entity_id=event.id, entity=event,
        ))

        assert engine.pending_scheduled == 0
