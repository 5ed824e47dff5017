"""
Notification Models

In-app alerts, the user's notification preferences and the
records exchanged with the platform push transport.

Notifications live only in the local log. They are never sent
to the household backend.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from family_hub.models.entities import TIME_PATTERN


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationType(str, Enum):
    SCHEDULE = "schedule"
    SUBSCRIPTION = "subscription"
    TASK = "task"
    FAMILY = "family"
    REMINDER = "reminder"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationDraft(BaseModel):
    """What a caller supplies; the engine assigns id, timestamp and read state."""

    type: NotificationType
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., max_length=1000)
    priority: NotificationPriority = NotificationPriority.MEDIUM

    action_url: Optional[str] = None
    action_label: Optional[str] = None
    expires_at: Optional[datetime] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Notification(NotificationDraft):
    """
    A single entry in the notification log.

    The log is kept most-recent-first. A notification is either
    unread or read; removal deletes it outright.
    """

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Unique notification identifier"
    )
    timestamp: datetime = Field(default_factory=utc_now)
    read: bool = False

    def is_expired(self, now: datetime) -> bool:
        """Naive datetimes on either side are taken as UTC."""
        if self.expires_at is None:
            return False
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return expires <= now


class NotificationPreferences(BaseModel):
    """User-facing notification settings, persisted locally."""

    enable_browser_notifications: bool = True
    enable_push_notifications: bool = False
    enable_schedule_reminders: bool = True
    enable_subscription_alerts: bool = True
    enable_task_reminders: bool = True
    enable_family_updates: bool = True
    reminder_minutes_before: int = Field(default=15, ge=0, le=24 * 60)
    quiet_hours_start: str = Field(default="22:00", pattern=TIME_PATTERN)
    quiet_hours_end: str = Field(default="07:00", pattern=TIME_PATTERN)

    def allows(self, notification_type: NotificationType) -> bool:
        """Check the per-type toggle. System and generic reminders are always allowed."""
        toggles = {
            NotificationType.SCHEDULE: self.enable_schedule_reminders,
            NotificationType.SUBSCRIPTION: self.enable_subscription_alerts,
            NotificationType.TASK: self.enable_task_reminders,
            NotificationType.FAMILY: self.enable_family_updates,
        }
        return toggles.get(notification_type, True)


# =============================================================================
# PUSH
# =============================================================================

class PermissionState(str, Enum):
    """Platform notification permission, as reported by the platform."""
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class PushFailureReason(str, Enum):
    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    TRANSPORT_ERROR = "transport_error"


class PushSubscriptionHandle(BaseModel):
    """Opaque subscription handle returned by the platform."""

    endpoint: str
    keys: dict[str, str] = Field(default_factory=dict)


class PushPayload(BaseModel):
    """What is handed to the platform for display."""

    title: str
    body: str
    tag: Optional[str] = None
    url: Optional[str] = None
    require_interaction: bool = False
    silent: bool = False
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_notification(cls, notification: Notification) -> "PushPayload":
        return cls(
            title=notification.title,
            body=notification.message,
            tag=notification.id,
            url=notification.action_url,
            require_interaction=notification.priority == NotificationPriority.URGENT,
            silent=notification.priority == NotificationPriority.LOW,
            data=notification.metadata,
        )


class PushToggleResult(BaseModel):
    """Outcome of switching push delivery on or off."""

    enabled: bool
    reason: Optional[PushFailureReason] = None
    message: str = ""
