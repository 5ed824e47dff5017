"""
Audit Logger

DESIGN DECISION: Every write, reload and bridge projection is logged.
Remote failures are swallowed by the sync layer, so this log is the
only place they surface.

The audit logger:
- Is async so it can persist without blocking the write path
- Gracefully handles failures (a broken audit sink never breaks a write)
- Supports correlation IDs to tie a write to the reload it triggers
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from family_hub.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from family_hub.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (always)
    2. An audit storage sink such as the AuditLog worksheet (optional)

    `history` keeps the most recent events in memory so the dashboard
    and tests can inspect what happened without a storage sink.
    """

    HISTORY_LIMIT = 500

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        self._storage = storage
        self._logger = structlog.get_logger("family_hub.audit")
        self.history: list[AuditEvent] = []

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        self.record_local(event)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def record_local(self, event: AuditEvent) -> None:
        """Write to the structured log and history only. Safe to call from sync code."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self.history.append(event)
        del self.history[:-self.HISTORY_LIMIT]

    def events_of(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self.history if e.event_type == event_type]

    async def log_entity_written(
        self,
        action: str,
        resource: str,
        entity_id: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.entity_written(
            action=action,
            resource=resource,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_write_failed(
        self,
        action: str,
        resource: str,
        error_message: str,
        correlation_id: Optional[UUID],
        entity_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.write_failed(
            action=action,
            resource=resource,
            error_message=error_message,
            correlation_id=correlation_id,
            entity_id=entity_id,
        ))

    async def log_store_loaded(
        self,
        counts: dict[str, int],
        failed: list[str],
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.store_loaded(counts, failed, correlation_id))

    async def log_collection_fetch_failed(
        self,
        resource: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.collection_fetch_failed(
            resource=resource,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_record_rejected(
        self,
        resource: str,
        entity_id: Optional[str],
        error_message: str,
    ) -> None:
        await self.log(AuditEventBuilder.record_rejected(resource, entity_id, error_message))

    async def log_reload_discarded(self, correlation_id: Optional[UUID]) -> None:
        await self.log(AuditEventBuilder.reload_discarded(correlation_id))

    async def log_bootstrap(
        self,
        event_type: AuditEventType,
        backend_identity: str,
        error_message: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.bootstrap(event_type, backend_identity, error_message))

    async def log_bridge_event(
        self,
        planning_id: str,
        event_title: str,
        ok: bool,
        error_message: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.bridge_event(
            planning_id=planning_id,
            event_title=event_title,
            ok=ok,
            error_message=error_message,
        ))

    async def log_notification_added(
        self,
        notification_id: str,
        notification_type: str,
        platform_shown: bool,
    ) -> None:
        await self.log(AuditEventBuilder.notification_added(
            notification_id, notification_type, platform_shown
        ))

    async def log_push_toggled(self, enabled: bool, reason: Optional[str] = None) -> None:
        await self.log(AuditEventBuilder.push_toggled(enabled, reason))

    async def log_local_state_corrupt(self, key: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.local_state_corrupt(key, error_message))

    async def log_local_state_write_failed(self, key: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.local_state_write_failed(key, error_message))

    async def log_listener_failed(self, listener: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.listener_failed(listener, error_message))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a write; the reload it triggers
    carries the same id.
    """
    return uuid4()
