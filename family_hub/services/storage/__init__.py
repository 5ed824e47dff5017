"""
Storage Services Package

Provides the abstract backend interface and its implementations:
the household REST API, Google Sheets and an in-memory table set.
"""

from family_hub.services.storage.interface import (
    AuditStorageInterface,
    BackendUnavailableError,
    EntityBackend,
    NotFoundError,
    StorageError,
)
from family_hub.services.storage.http_backend import HttpEntityBackend
from family_hub.services.storage.memory import InMemoryEntityBackend
from family_hub.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntityBackend,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "EntityBackend",
    # Exceptions
    "BackendUnavailableError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEntityBackend",
    "HttpEntityBackend",
    "InMemoryEntityBackend",
]
