"""
Application Context for Family Hub

This module ties the components together into one explicit service
graph: backend, local key-value store, audit logger, entity store,
gateway, notification engine, push service, planning service and
calendar bridge.

DESIGN DECISION: No ambient singletons.
- create_app_context() builds everything from settings
- Screens receive the AppContext and call into it
- start() bootstraps and loads; shutdown() unmounts and releases
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from family_hub.audit import AuditLogger
from family_hub.config import Settings, get_settings
from family_hub.notifications import (
    NotificationEngine,
    PushService,
    PushTransport,
    UnsupportedPushTransport,
)
from family_hub.planning import PlanningCalendarBridge, PlanningService
from family_hub.services.local_store import KeyValueStore
from family_hub.services.storage import (
    AuditStorageInterface,
    EntityBackend,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntityBackend,
    HttpEntityBackend,
    InMemoryEntityBackend,
)
from family_hub.sync import EntityStore, SyncGateway


logger = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """Every service the screens need, wired together."""

    settings: Settings
    backend: EntityBackend
    local_store: KeyValueStore
    audit_logger: AuditLogger
    store: EntityStore
    gateway: SyncGateway
    notifications: NotificationEngine
    push: PushService
    planning: PlanningService
    bridge: PlanningCalendarBridge
    started: bool = False

    async def start(self, run_sweeper: bool = True) -> None:
        """Restore local state, bootstrap the backend and load the store."""
        if self.started:
            return
        await self.notifications.restore()
        await self.push.restore()
        await self.gateway.initialize()
        if run_sweeper:
            self.notifications.start_expiry_sweeper()
        self.started = True

    async def shutdown(self) -> None:
        """Unmount the store, stop timers and release the backend."""
        self.store.close()
        await self.notifications.stop()
        await self.backend.aclose()
        self.started = False


def _create_backend(
    settings: Settings,
) -> tuple[EntityBackend, Optional[AuditStorageInterface]]:
    """Pick the entity backend (and audit sink, for Sheets) named in settings."""
    choice = settings.app.backend
    if choice == "sheets":
        client = GoogleSheetsClient(settings.google_sheets)
        return GoogleSheetsEntityBackend(client), GoogleSheetsAuditStorage(client)
    if choice == "memory":
        return InMemoryEntityBackend(), None
    return HttpEntityBackend(settings.api), None


def create_app_context(
    settings: Optional[Settings] = None,
    backend: Optional[EntityBackend] = None,
    transport: Optional[PushTransport] = None,
    local_store: Optional[KeyValueStore] = None,
) -> AppContext:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from. Defaults to get_settings().
        backend: Use this backend instead of the one named in settings.
        transport: Platform push transport. Defaults to unsupported.
        local_store: Key-value store. Defaults to one under state_dir.
    """
    settings = settings or get_settings()
    audit_storage = None
    if backend is None:
        backend, audit_storage = _create_backend(settings)

    audit_logger = AuditLogger(audit_storage)
    local_store = local_store or KeyValueStore(settings.app.state_dir)

    store = EntityStore(backend, audit_logger)
    gateway = SyncGateway(
        backend,
        store,
        audit_logger=audit_logger,
        local_store=local_store,
        seed_example_data=settings.app.seed_example_data,
    )

    transport = transport or UnsupportedPushTransport()
    notifications = NotificationEngine(
        local_store=local_store,
        transport=transport,
        audit_logger=audit_logger,
        sweep_interval_seconds=settings.app.expiry_sweep_interval_seconds,
    )
    gateway.add_listener(notifications.handle_mutation)

    push = PushService(
        transport,
        notifications,
        settings=settings.push,
        local_store=local_store,
        audit_logger=audit_logger,
    )

    bridge = PlanningCalendarBridge(gateway, audit_logger)
    planning = PlanningService(backend, bridge, audit_logger)

    logger.info(
        "app_context_created",
        backend=backend.identity,
        environment=settings.app.app_environment,
    )

    return AppContext(
        settings=settings,
        backend=backend,
        local_store=local_store,
        audit_logger=audit_logger,
        store=store,
        gateway=gateway,
        notifications=notifications,
        push=push,
        planning=planning,
        bridge=bridge,
    )
