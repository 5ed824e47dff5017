"""
Push Delivery

The platform side of notifications (permission prompts, push
subscriptions, on-screen display) sits behind PushTransport. The
engine only ever talks to this interface.

DESIGN DECISION: Push is optional.
- No transport support -> reason "unsupported"
- Permission refused -> reason "permission_denied"
- Subscription fails or no server key -> reason "transport_error"
None of these affect the in-app notification log.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from family_hub.audit import AuditLogger
from family_hub.config import PushSettings
from family_hub.models.notifications import (
    PermissionState,
    PushFailureReason,
    PushPayload,
    PushSubscriptionHandle,
    PushToggleResult,
)
from family_hub.services.local_store import KeyValueStore, LocalStateError

if TYPE_CHECKING:
    from family_hub.notifications.engine import NotificationEngine


PUSH_SUBSCRIPTION_KEY = "push_subscription"


class PushTransport(ABC):
    """Platform notification capability."""

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether this platform can show notifications at all."""

    @property
    @abstractmethod
    def permission(self) -> PermissionState:
        """Current permission, without prompting."""

    @abstractmethod
    async def request_permission(self) -> PermissionState:
        """Prompt for permission if it has not been decided yet."""

    @abstractmethod
    async def subscribe(self, server_key: str) -> Optional[PushSubscriptionHandle]:
        """
        Register for push delivery.

        Returns None if the platform declined to create a subscription.
        """

    @abstractmethod
    async def unsubscribe(self) -> bool:
        """Drop the current subscription. Returns True if one was removed."""

    @abstractmethod
    async def send_local(self, payload: PushPayload) -> None:
        """Show a notification on this device."""


class UnsupportedPushTransport(PushTransport):
    """Transport for environments with no notification support (servers, tests)."""

    def is_supported(self) -> bool:
        return False

    @property
    def permission(self) -> PermissionState:
        return PermissionState.DEFAULT

    async def request_permission(self) -> PermissionState:
        return PermissionState.DENIED

    async def subscribe(self, server_key: str) -> Optional[PushSubscriptionHandle]:
        return None

    async def unsubscribe(self) -> bool:
        return False

    async def send_local(self, payload: PushPayload) -> None:
        return None


class PushService:
    """
    Turns push delivery on and off.

    The subscription handle is kept in the local key-value store; the
    enable flag lives in the engine's notification preferences.
    """

    def __init__(
        self,
        transport: PushTransport,
        engine: "NotificationEngine",
        settings: Optional[PushSettings] = None,
        local_store: Optional[KeyValueStore] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transport = transport
        self._engine = engine
        self._settings = settings or PushSettings()
        self._local_store = local_store
        self._audit = audit_logger or AuditLogger()
        self._handle: Optional[PushSubscriptionHandle] = None

    @property
    def is_supported(self) -> bool:
        return self._transport.is_supported()

    @property
    def is_subscribed(self) -> bool:
        return self._handle is not None

    @property
    def subscription(self) -> Optional[PushSubscriptionHandle]:
        return self._handle

    async def restore(self) -> None:
        """Read a previously stored subscription handle."""
        if self._local_store is None:
            return
        try:
            raw = self._local_store.read(PUSH_SUBSCRIPTION_KEY)
            self._handle = PushSubscriptionHandle.model_validate(raw) if raw else None
        except (LocalStateError, ValueError) as e:
            self._handle = None
            await self._audit.log_local_state_corrupt(PUSH_SUBSCRIPTION_KEY, str(e))

    async def enable(self) -> PushToggleResult:
        """Request permission, subscribe, and switch the preference on."""
        if not self._transport.is_supported():
            return await self._refused(
                PushFailureReason.UNSUPPORTED,
                "Push notifications are not supported on this device",
            )

        permission = self._transport.permission
        if permission != PermissionState.GRANTED:
            permission = await self._transport.request_permission()
        if permission != PermissionState.GRANTED:
            return await self._refused(
                PushFailureReason.PERMISSION_DENIED,
                "Notification permission was not granted",
            )

        if not self._settings.is_configured:
            return await self._refused(
                PushFailureReason.TRANSPORT_ERROR,
                "Push server key is not configured",
            )

        try:
            handle = await self._transport.subscribe(self._settings.vapid_public_key)
        except Exception as e:
            return await self._refused(PushFailureReason.TRANSPORT_ERROR, f"Subscription failed: {e}")
        if handle is None:
            return await self._refused(
                PushFailureReason.TRANSPORT_ERROR,
                "Push subscription was not created",
            )

        self._handle = handle
        await self._save_handle(handle)
        await self._engine.update_preferences(enable_push_notifications=True)
        await self._audit.log_push_toggled(True)
        return PushToggleResult(enabled=True, message="Push notifications enabled")

    async def disable(self) -> PushToggleResult:
        """Unsubscribe and switch the preference off, even if unsubscribing fails."""
        reason = None
        message = "Push notifications disabled"
        try:
            await self._transport.unsubscribe()
        except Exception as e:
            reason = PushFailureReason.TRANSPORT_ERROR
            message = f"Unsubscribe failed: {e}"

        self._handle = None
        await self._save_handle(None)
        await self._engine.update_preferences(enable_push_notifications=False)
        await self._audit.log_push_toggled(False, reason.value if reason else None)
        return PushToggleResult(enabled=False, reason=reason, message=message)

    async def _save_handle(self, handle: Optional[PushSubscriptionHandle]) -> None:
        if self._local_store is None:
            return
        try:
            if handle is None:
                self._local_store.delete(PUSH_SUBSCRIPTION_KEY)
            else:
                self._local_store.write(PUSH_SUBSCRIPTION_KEY, handle.model_dump())
        except LocalStateError as e:
            await self._audit.log_local_state_write_failed(PUSH_SUBSCRIPTION_KEY, str(e))

    async def _refused(self, reason: PushFailureReason, message: str) -> PushToggleResult:
        await self._audit.log_push_toggled(False, reason.value)
        return PushToggleResult(enabled=False, reason=reason, message=message)
