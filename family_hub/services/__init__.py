"""Services package."""

from family_hub.services.local_store import KeyValueStore, LocalStateError
from family_hub.services.storage import (
    AuditStorageInterface,
    BackendUnavailableError,
    EntityBackend,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntityBackend,
    HttpEntityBackend,
    InMemoryEntityBackend,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Local state
    "KeyValueStore",
    "LocalStateError",
    # Storage services
    "AuditStorageInterface",
    "BackendUnavailableError",
    "EntityBackend",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEntityBackend",
    "HttpEntityBackend",
    "InMemoryEntityBackend",
    "NotFoundError",
    "StorageError",
]
