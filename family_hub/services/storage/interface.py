"""
Abstract Backend Interface

DESIGN DECISION: The sync layer talks to one small abstract interface.
Concrete backends:
1. HTTP - the household REST API (/api/<resource>)
2. Google Sheets - one worksheet per resource
3. In-memory - tests and demo mode

Records cross this interface as camelCase dicts, exactly as they
travel on the wire. Validation into models happens in the store.
"""

from abc import ABC, abstractmethod
from typing import Optional

from family_hub.models.audit import AuditEvent


class EntityBackend(ABC):
    """
    Remote resource contract: list, create, update, delete per resource,
    plus a one-off bootstrap that makes sure storage exists.
    """

    @property
    @abstractmethod
    def identity(self) -> str:
        """
        Stable identifier for the backing store (URL, spreadsheet id...).

        Used to key the persistent bootstrap flag.
        """

    @abstractmethod
    async def list_records(self, resource: str) -> list[dict]:
        """
        Fetch every record of a resource.

        Raises:
            StorageError: If the fetch fails
        """

    @abstractmethod
    async def create_record(self, resource: str, body: dict) -> dict:
        """
        Create a record. `body` has no id or timestamps.

        Returns:
            The created record with id, createdAt and updatedAt populated

        Raises:
            StorageError: If the create fails
        """

    @abstractmethod
    async def update_record(self, resource: str, record_id: str, body: dict) -> dict:
        """
        Merge `body` into an existing record and refresh updatedAt.

        Returns:
            The updated record

        Raises:
            NotFoundError: If no record has this id
            StorageError: If the update fails
        """

    @abstractmethod
    async def delete_record(self, resource: str, record_id: str) -> bool:
        """
        Delete a record by id.

        Returns:
            True if a record was deleted, False if the id was unknown

        Raises:
            StorageError: If the delete fails
        """

    @abstractmethod
    async def bootstrap(self, seed: bool = False) -> bool:
        """
        Ensure backing storage exists, optionally seeding example records.

        Returns:
            True if storage is ready
        """

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Returns True if persisted."""

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""


class StorageError(Exception):
    """Base exception for backend operations."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(StorageError):
    """Record not found in the backend."""
    pass


class BackendUnavailableError(StorageError):
    """Could not reach the backend at all."""
    pass
