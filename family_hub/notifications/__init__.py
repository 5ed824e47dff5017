"""In-app notifications, preferences and push delivery."""

from family_hub.notifications.builders import NotificationBuilder
from family_hub.notifications.engine import NotificationEngine, within_quiet_hours
from family_hub.notifications.push import (
    PushService,
    PushTransport,
    UnsupportedPushTransport,
)

__all__ = [
    "NotificationBuilder",
    "NotificationEngine",
    "PushService",
    "PushTransport",
    "UnsupportedPushTransport",
    "within_quiet_hours",
]
