"""
Synchronization Models

Results returned by the gateway and the mutation events it publishes.
"""

from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from family_hub.models.entities import EntityKind


class SyncAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class SyncResult(BaseModel):
    """
    Outcome of one gateway write.

    The gateway never raises on remote failure. Callers that want to
    show feedback check `ok`; callers that don't can ignore the result.
    """

    ok: bool
    action: SyncAction
    resource: str
    entity_id: Optional[str] = None
    entity: Optional[Any] = None
    error: Optional[str] = None
    correlation_id: Optional[UUID] = None

    @classmethod
    def failure(
        cls,
        action: SyncAction,
        resource: str,
        error: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> "SyncResult":
        return cls(
            ok=False,
            action=action,
            resource=resource,
            entity_id=entity_id,
            error=error,
            correlation_id=correlation_id,
        )


class MutationEvent(BaseModel):
    """Published after a successful write to one of the five collections."""

    kind: EntityKind
    action: SyncAction
    entity_id: str
    entity: Optional[Any] = None
    changes: dict[str, Any] = Field(default_factory=dict)
