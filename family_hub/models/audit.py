"""
Audit Models for Family Hub

Every write, reload and bridge projection produces an audit event.
Events go to the structured local log and, when a sheet backend is
configured, to an append-only AuditLog worksheet.

Correlation ids tie a write to the reload it triggers.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from family_hub.models.notifications import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entity writes
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    WRITE_FAILED = "write_failed"

    # Store reloads
    STORE_LOADED = "store_loaded"
    COLLECTION_FETCH_FAILED = "collection_fetch_failed"
    RECORD_REJECTED = "record_rejected"
    RELOAD_DISCARDED = "reload_discarded"

    # Bootstrap
    BOOTSTRAP_COMPLETED = "bootstrap_completed"
    BOOTSTRAP_FAILED = "bootstrap_failed"
    BOOTSTRAP_SKIPPED = "bootstrap_skipped"

    # Planning bridge
    BRIDGE_EVENT_CREATED = "bridge_event_created"
    BRIDGE_EVENT_FAILED = "bridge_event_failed"

    # Notifications
    NOTIFICATION_ADDED = "notification_added"
    PUSH_TOGGLED = "push_toggled"
    LOCAL_STATE_CORRUPT = "local_state_corrupt"
    LOCAL_STATE_WRITE_FAILED = "local_state_write_failed"

    # System events
    LISTENER_FAILED = "listener_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What is this about? (resource name + backend id)
    resource: Optional[str] = None
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "resource": self.resource,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row for the AuditLog worksheet.

        Columns: [event_id, timestamp, event_type, severity, resource,
        entity_id, correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.resource or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_written(SyncAction.CREATE, "tasks", task_id, cid)
        event = AuditEventBuilder.write_failed(SyncAction.DELETE, "events", "boom", cid)
    """

    _WRITE_TYPES = {
        "create": AuditEventType.ENTITY_CREATED,
        "update": AuditEventType.ENTITY_UPDATED,
        "delete": AuditEventType.ENTITY_DELETED,
    }

    @staticmethod
    def entity_written(
        action: str,
        resource: str,
        entity_id: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventBuilder._WRITE_TYPES[action],
            resource=resource,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{resource}: {action} {entity_id}",
        )

    @staticmethod
    def write_failed(
        action: str,
        resource: str,
        error_message: str,
        correlation_id: Optional[UUID],
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            resource=resource,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Failed to {action} {resource}",
            details={"action": action},
            error_message=error_message,
        )

    @staticmethod
    def store_loaded(
        counts: dict[str, int],
        failed: list[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Store reloaded ({len(failed)} collections failed)",
            details={"counts": counts, "failed": failed},
        )

    @staticmethod
    def collection_fetch_failed(
        resource: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            resource=resource,
            correlation_id=correlation_id,
            description=f"Failed to fetch {resource}, using empty collection",
            error_message=error_message,
        )

    @staticmethod
    def record_rejected(
        resource: str,
        entity_id: Optional[str],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_REJECTED,
            severity=AuditSeverity.WARNING,
            resource=resource,
            entity_id=entity_id,
            description=f"Skipped malformed {resource} record",
            error_message=error_message,
        )

    @staticmethod
    def reload_discarded(correlation_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RELOAD_DISCARDED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Reload finished after store was closed; results discarded",
        )

    @staticmethod
    def bootstrap(
        event_type: AuditEventType,
        backend_identity: str,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        severity = (
            AuditSeverity.ERROR
            if event_type == AuditEventType.BOOTSTRAP_FAILED
            else AuditSeverity.INFO
        )
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            description=f"Bootstrap {event_type.value.split('_')[-1]} for {backend_identity}",
            details={"backend": backend_identity},
            error_message=error_message,
        )

    @staticmethod
    def bridge_event(
        planning_id: str,
        event_title: str,
        ok: bool,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.BRIDGE_EVENT_CREATED if ok
                else AuditEventType.BRIDGE_EVENT_FAILED
            ),
            severity=AuditSeverity.INFO if ok else AuditSeverity.WARNING,
            resource="events",
            description=f"Calendar event from planning record: {event_title}",
            details={"planning_id": planning_id, "title": event_title},
            error_message=error_message,
        )

    @staticmethod
    def notification_added(
        notification_id: str,
        notification_type: str,
        platform_shown: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_ADDED,
            severity=AuditSeverity.DEBUG,
            entity_id=notification_id,
            description=f"Notification added ({notification_type})",
            details={"platform_shown": platform_shown},
        )

    @staticmethod
    def push_toggled(
        enabled: bool,
        reason: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_TOGGLED,
            severity=AuditSeverity.INFO if reason is None else AuditSeverity.WARNING,
            description=f"Push notifications {'enabled' if enabled else 'disabled'}",
            details={"enabled": enabled, "reason": reason},
        )

    @staticmethod
    def local_state_corrupt(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCAL_STATE_CORRUPT,
            severity=AuditSeverity.WARNING,
            description=f"Local state '{key}' unreadable, using defaults",
            error_message=error_message,
        )

    @staticmethod
    def local_state_write_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCAL_STATE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Local state '{key}' not saved; keeping in-memory value",
            error_message=error_message,
        )

    @staticmethod
    def listener_failed(listener: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LISTENER_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Mutation listener failed: {listener}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
