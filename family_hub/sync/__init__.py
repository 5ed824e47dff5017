"""Entity store and synchronization gateway."""

from family_hub.sync.gateway import NOT_FOUND, MutationListener, SyncGateway, bootstrap_flag_key
from family_hub.sync.store import EntityStore, StoreSnapshot

__all__ = [
    "NOT_FOUND",
    "EntityStore",
    "MutationListener",
    "StoreSnapshot",
    "SyncGateway",
    "bootstrap_flag_key",
]
