"""
Entity Store

Local mirror of the five remote collections. Readers see an immutable
snapshot; every reload replaces it wholesale.

DESIGN DECISION: Loading is fail-soft.
- A collection whose fetch fails becomes empty; the others are unaffected
- A row that fails validation is skipped; the rest of its collection loads
- load() never raises

The store moves UNINITIALIZED -> LOADING -> READY on the first load and
stays READY afterwards. There is no error state.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from pydantic import ValidationError

from family_hub.audit import AuditLogger
from family_hub.models.entities import (
    EntityKind,
    Event,
    FamilyMember,
    Subscription,
    Task,
    Transaction,
)
from family_hub.models.sync import StoreState
from family_hub.services.storage.interface import EntityBackend


@dataclass(frozen=True)
class StoreSnapshot:
    """One consistent view of all five collections."""

    tasks: tuple[Task, ...] = ()
    events: tuple[Event, ...] = ()
    subscriptions: tuple[Subscription, ...] = ()
    family_members: tuple[FamilyMember, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    failed: frozenset[EntityKind] = field(default_factory=frozenset)

    _ATTRS = {
        EntityKind.TASK: "tasks",
        EntityKind.EVENT: "events",
        EntityKind.SUBSCRIPTION: "subscriptions",
        EntityKind.FAMILY_MEMBER: "family_members",
        EntityKind.TRANSACTION: "transactions",
    }

    def collection(self, kind: EntityKind) -> tuple:
        return getattr(self, self._ATTRS[kind])

    def find(self, kind: EntityKind, entity_id: str):
        """Return the record with this id, or None."""
        return next((r for r in self.collection(kind) if r.id == entity_id), None)

    def counts(self) -> dict[str, int]:
        return {kind.resource: len(self.collection(kind)) for kind in EntityKind}


class EntityStore:
    """
    Holds the latest snapshot and knows how to refresh it.

    Usage:
        store = EntityStore(backend, audit_logger)
        await store.load()
        for task in store.tasks: ...
        store.close()   # later loads are discarded
    """

    def __init__(
        self,
        backend: EntityBackend,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._backend = backend
        self._audit = audit_logger or AuditLogger()
        self._snapshot = StoreSnapshot()
        self._state = StoreState.UNINITIALIZED
        self._mounted = True
        self.load_count = 0

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_loading(self) -> bool:
        """True until the first load has finished."""
        return self._state != StoreState.READY

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._snapshot.tasks

    @property
    def events(self) -> tuple[Event, ...]:
        return self._snapshot.events

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return self._snapshot.subscriptions

    @property
    def family_members(self) -> tuple[FamilyMember, ...]:
        return self._snapshot.family_members

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._snapshot.transactions

    def close(self) -> None:
        """Unmount the store. Reloads that finish afterwards are discarded."""
        self._mounted = False

    async def load(self, correlation_id: Optional[UUID] = None) -> StoreSnapshot:
        """
        Fetch all five collections concurrently and replace the snapshot.

        Returns the snapshot in effect afterwards (the previous one if the
        store was closed while the fetch was in flight).
        """
        if self._state == StoreState.UNINITIALIZED:
            self._state = StoreState.LOADING

        kinds = list(EntityKind)
        results = await asyncio.gather(
            *(self._fetch(kind, correlation_id) for kind in kinds)
        )

        if not self._mounted:
            await self._audit.log_reload_discarded(correlation_id)
            return self._snapshot

        collections = dict(zip(kinds, results))
        failed = frozenset(kind for kind, records in collections.items() if records is None)
        snapshot = StoreSnapshot(
            tasks=collections[EntityKind.TASK] or (),
            events=collections[EntityKind.EVENT] or (),
            subscriptions=collections[EntityKind.SUBSCRIPTION] or (),
            family_members=collections[EntityKind.FAMILY_MEMBER] or (),
            transactions=collections[EntityKind.TRANSACTION] or (),
            failed=failed,
        )
        self._snapshot = snapshot
        self._state = StoreState.READY
        self.load_count += 1

        await self._audit.log_store_loaded(
            counts=snapshot.counts(),
            failed=sorted(kind.resource for kind in failed),
            correlation_id=correlation_id,
        )
        return snapshot

    async def _fetch(
        self,
        kind: EntityKind,
        correlation_id: Optional[UUID],
    ) -> Optional[tuple]:
        """Fetch and validate one collection. None means the fetch failed."""
        try:
            rows = await self._backend.list_records(kind.resource)
        except Exception as e:
            await self._audit.log_collection_fetch_failed(
                resource=kind.resource,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return None

        records = []
        for row in rows:
            try:
                records.append(kind.record_model.model_validate(row))
            except ValidationError as e:
                entity_id = row.get("id") if isinstance(row, dict) else None
                await self._audit.log_record_rejected(
                    resource=kind.resource,
                    entity_id=entity_id,
                    error_message=str(e),
                )
        return tuple(records)
