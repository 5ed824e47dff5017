"""
Notification Engine

Owns the in-app notification log and the user's notification
preferences. Both are persisted to the local key-value store on every
change and restored at startup.

DESIGN DECISION: The log and the platform display are separate.
- add() always records the notification in the log
- It is also shown on the device only if browser notifications are
  enabled, permission is granted and it is not quiet hours
- Push being unavailable never affects the log

The engine subscribes to gateway mutations and turns them into alerts,
gated by the per-type preference toggles.
"""

import asyncio
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional, Union

import structlog
from pydantic import ValidationError

from family_hub.audit import AuditLogger
from family_hub.models.audit import AuditEventBuilder
from family_hub.models.entities import (
    EntityKind,
    Event,
    FamilyMember,
    Subscription,
    SubscriptionStatus,
    Task,
)
from family_hub.models.notifications import (
    Notification,
    NotificationDraft,
    NotificationPreferences,
    NotificationType,
    PermissionState,
    PushPayload,
    utc_now,
)
from family_hub.models.sync import MutationEvent, SyncAction
from family_hub.notifications.builders import NotificationBuilder
from family_hub.notifications.push import PushTransport, UnsupportedPushTransport
from family_hub.services.local_store import KeyValueStore, LocalStateError


logger = structlog.get_logger(__name__)

NOTIFICATIONS_KEY = "notifications"
PREFERENCES_KEY = "notification_preferences"


def _minutes(value: str) -> int:
    hour, minute = value.split(":")[:2]
    return int(hour) * 60 + int(minute)


def within_quiet_hours(moment: Union[time, datetime], start: str, end: str) -> bool:
    """
    Check a wall-clock time against a quiet-hours window.

    Both ends are inclusive. A window whose start is later than its end
    wraps past midnight (22:00-07:00 covers 23:30 and 06:59).
    """
    current = moment.hour * 60 + moment.minute
    start_min = _minutes(start)
    end_min = _minutes(end)

    if start_min > end_min:
        return current >= start_min or current <= end_min
    return start_min <= current <= end_min


class NotificationEngine:
    """
    In-app notification log with quiet-hours aware platform display.

    Usage:
        engine = NotificationEngine(local_store, transport, audit_logger)
        await engine.restore()
        engine.start_expiry_sweeper()
        gateway.add_listener(engine.handle_mutation)
    """

    def __init__(
        self,
        local_store: Optional[KeyValueStore] = None,
        transport: Optional[PushTransport] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sweep_interval_seconds: float = 60,
    ):
        self._local_store = local_store
        self._transport = transport or UnsupportedPushTransport()
        self._audit = audit_logger or AuditLogger()
        # Local wall-clock time; quiet hours and event reminders use it
        self._clock = clock or datetime.now
        self._sweep_interval = sweep_interval_seconds

        self._log: list[Notification] = []
        self._preferences = NotificationPreferences()
        self._sweeper: Optional[asyncio.Task] = None
        self._scheduled: set[asyncio.Task] = set()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def notifications(self) -> list[Notification]:
        """The log, most recent first."""
        return list(self._log)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._log if not n.read)

    @property
    def preferences(self) -> NotificationPreferences:
        return self._preferences

    @property
    def pending_scheduled(self) -> int:
        return len(self._scheduled)

    def is_within_quiet_hours(self, at: Optional[datetime] = None) -> bool:
        moment = at or self._clock()
        return within_quiet_hours(
            moment,
            self._preferences.quiet_hours_start,
            self._preferences.quiet_hours_end,
        )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    async def restore(self) -> None:
        """
        Load preferences and the log from local storage.

        Unreadable preferences fall back to defaults. Unreadable log
        entries are dropped; an unreadable log starts empty.
        """
        if self._local_store is None:
            return

        try:
            raw = self._local_store.read(PREFERENCES_KEY)
            self._preferences = (
                NotificationPreferences.model_validate(raw) if raw is not None
                else NotificationPreferences()
            )
        except (LocalStateError, ValidationError) as e:
            self._preferences = NotificationPreferences()
            await self._audit.log_local_state_corrupt(PREFERENCES_KEY, str(e))

        try:
            raw_log = self._local_store.read(NOTIFICATIONS_KEY) or []
        except LocalStateError as e:
            raw_log = []
            await self._audit.log_local_state_corrupt(NOTIFICATIONS_KEY, str(e))
        if not isinstance(raw_log, list):
            await self._audit.log_local_state_corrupt(NOTIFICATIONS_KEY, "expected a list")
            raw_log = []

        restored = []
        for item in raw_log:
            try:
                restored.append(Notification.model_validate(item))
            except ValidationError as e:
                logger.warning("notification_entry_dropped", error=str(e))
        restored.sort(key=lambda n: n.timestamp, reverse=True)
        self._log = restored

    def _persist_log(self) -> None:
        self._persist(NOTIFICATIONS_KEY, [n.model_dump(mode="json") for n in self._log])

    def _persist_preferences(self) -> None:
        self._persist(PREFERENCES_KEY, self._preferences.model_dump(mode="json"))

    def _persist(self, key: str, value) -> None:
        # In-memory state stays authoritative when the device state cannot be saved.
        if self._local_store is None:
            return
        try:
            self._local_store.write(key, value)
        except LocalStateError as e:
            self._audit.record_local(AuditEventBuilder.local_state_write_failed(key, str(e)))

    # =========================================================================
    # LOG OPERATIONS
    # =========================================================================

    async def add(self, draft: NotificationDraft) -> Notification:
        """
        Record a new unread notification at the head of the log.

        Shown on the device too, unless suppressed by preferences,
        permission or quiet hours.
        """
        notification = Notification(**draft.model_dump())
        self._log.insert(0, notification)
        self._persist_log()

        shown = await self._show_on_platform(notification)
        await self._audit.log_notification_added(
            notification.id, notification.type.value, shown
        )
        return notification

    async def _show_on_platform(self, notification: Notification) -> bool:
        if not self._preferences.enable_browser_notifications:
            return False
        if self._transport.permission != PermissionState.GRANTED:
            return False
        if self.is_within_quiet_hours():
            return False
        try:
            await self._transport.send_local(PushPayload.from_notification(notification))
        except Exception as e:
            await self._audit.log_error(
                error_type="platform_notification_failed",
                error_message=str(e),
                details={"notification_id": notification.id},
            )
            return False
        return True

    def mark_as_read(self, notification_id: str) -> bool:
        for idx, n in enumerate(self._log):
            if n.id == notification_id:
                self._log[idx] = n.model_copy(update={"read": True})
                self._persist_log()
                return True
        return False

    def mark_all_as_read(self) -> int:
        """Returns how many notifications changed state."""
        changed = self.unread_count
        self._log = [n.model_copy(update={"read": True}) for n in self._log]
        self._persist_log()
        return changed

    def remove(self, notification_id: str) -> bool:
        before = len(self._log)
        self._log = [n for n in self._log if n.id != notification_id]
        if len(self._log) == before:
            return False
        self._persist_log()
        return True

    def clear_all(self) -> None:
        self._log = []
        self._persist_log()

    async def update_preferences(self, **changes) -> NotificationPreferences:
        """
        Merge changes into the preferences and persist them.

        Raises:
            ValidationError: If a changed value is invalid (nothing is saved)
        """
        merged = {**self._preferences.model_dump(), **changes}
        self._preferences = NotificationPreferences.model_validate(merged)
        self._persist_preferences()
        return self._preferences

    # =========================================================================
    # TIMERS
    # =========================================================================

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Drop expired notifications. Returns how many were removed."""
        now = now or utc_now()
        kept = [n for n in self._log if not n.is_expired(now)]
        removed = len(self._log) - len(kept)
        if removed:
            self._log = kept
            self._persist_log()
        return removed

    def start_expiry_sweeper(self) -> asyncio.Task:
        """Run sweep_expired every sweep interval until stop()."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())
        return self._sweeper

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                removed = self.sweep_expired()
            except Exception as e:
                logger.error("expiry_sweep_failed", error=str(e))
                continue
            if removed:
                logger.debug("expired_notifications_swept", removed=removed)

    def schedule(self, draft: NotificationDraft, delay_seconds: float) -> asyncio.Task:
        """Add a notification after a delay. Pending ones are cancelled by stop()."""
        async def _deliver() -> None:
            await asyncio.sleep(max(delay_seconds, 0))
            await self.add(draft)

        task = asyncio.create_task(_deliver())
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)
        return task

    async def stop(self) -> None:
        """Cancel the sweeper and any scheduled deliveries."""
        tasks = list(self._scheduled)
        if self._sweeper is not None:
            tasks.append(self._sweeper)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._sweeper = None
        self._scheduled.clear()

    # =========================================================================
    # DOMAIN EVENTS
    # =========================================================================

    async def handle_mutation(self, event: MutationEvent) -> Optional[Notification]:
        """
        Turn a gateway mutation into an alert.

        - New task -> task reminder
        - Task marked completed -> family update
        - New event -> schedule reminder, timed reminder_minutes_before the start
        - Subscription created or updated with status "due" -> subscription alert
        - New family member -> family update

        Returns the notification added now, if any.
        """
        entity = event.entity
        if entity is None or event.action == SyncAction.DELETE:
            return None

        prefs = self._preferences
        draft: Optional[NotificationDraft] = None

        if event.kind == EntityKind.TASK and isinstance(entity, Task):
            if event.action == SyncAction.CREATE:
                draft = NotificationBuilder.task_reminder(entity.title, entity.assignee, entity.due_date)
            elif event.changes.get("completed") is True:
                draft = NotificationBuilder.family_update(
                    entity.assignee, f'completed "{entity.title}"'
                )

        elif event.kind == EntityKind.EVENT and isinstance(entity, Event):
            if event.action == SyncAction.CREATE and prefs.allows(NotificationType.SCHEDULE):
                return self._remind_before(entity)

        elif event.kind == EntityKind.SUBSCRIPTION and isinstance(entity, Subscription):
            became_due = event.action == SyncAction.CREATE or event.changes.get("status") == "due"
            if became_due and entity.status == SubscriptionStatus.DUE:
                draft = NotificationBuilder.subscription_alert(
                    entity.name, entity.cost, entity.next_payment
                )

        elif event.kind == EntityKind.FAMILY_MEMBER and isinstance(entity, FamilyMember):
            if event.action == SyncAction.CREATE:
                draft = NotificationBuilder.family_update(entity.name, "joined the family")

        if draft is None or not prefs.allows(draft.type):
            return None
        return await self.add(draft)

    def _remind_before(self, event: Event) -> Optional[Notification]:
        """Schedule (or skip) a reminder for an event; nothing is added synchronously."""
        now = self._clock()
        starts_at = event.starts_at
        if starts_at <= now.replace(tzinfo=None):
            return None

        minutes = self._preferences.reminder_minutes_before
        draft = NotificationBuilder.schedule_reminder(
            event.title, starts_at, event.member, minutes_before=minutes
        ).model_copy(update={"expires_at": starts_at.astimezone(timezone.utc)})

        remind_at = starts_at - timedelta(minutes=minutes)
        delay = (remind_at - now.replace(tzinfo=None)).total_seconds()
        self.schedule(draft, delay)
        return None
