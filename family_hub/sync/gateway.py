"""
Synchronization Gateway

The only write path to the backend. Every call is one remote request,
then a full reload of the store, then return.

DESIGN DECISION: Writes never raise.
- Remote failures are logged through the audit logger and reported in
  the returned SyncResult
- Unknown ids on update/delete are no-ops (ok=False, error="not found")
- The reload runs whether or not the write succeeded

Successful writes are published to mutation listeners after the reload,
so a listener reading the store sees the new state.
"""

import inspect
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from family_hub.audit import AuditLogger, create_correlation_id
from family_hub.models.entities import (
    EntityKind,
    EntityModel,
    EventDraft,
    EventPatch,
    FamilyMemberDraft,
    FamilyMemberPatch,
    PatchModel,
    SubscriptionDraft,
    SubscriptionPatch,
    TaskDraft,
    TaskPatch,
    TransactionDraft,
    TransactionPatch,
)
from family_hub.models.audit import AuditEventType
from family_hub.models.sync import MutationEvent, SyncAction, SyncResult
from family_hub.services.local_store import KeyValueStore, LocalStateError
from family_hub.services.storage.interface import EntityBackend, NotFoundError
from family_hub.sync.store import EntityStore


NOT_FOUND = "not found"

MutationListener = Callable[[MutationEvent], Union[None, Awaitable[None]]]


def bootstrap_flag_key(backend_identity: str) -> str:
    return f"bootstrap:{backend_identity}"


class SyncGateway:
    """
    Create/update/delete round-trips for the five entity kinds.

    Drafts and patches may be passed as models or as plain dicts
    (snake_case or camelCase keys); dicts are validated first.
    """

    def __init__(
        self,
        backend: EntityBackend,
        store: EntityStore,
        audit_logger: Optional[AuditLogger] = None,
        local_store: Optional[KeyValueStore] = None,
        seed_example_data: bool = True,
    ):
        self._backend = backend
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._local_store = local_store
        self._seed = seed_example_data
        self._listeners: list[MutationListener] = []
        self._initialized = False

    @property
    def store(self) -> EntityStore:
        return self._store

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def add_listener(self, listener: MutationListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: MutationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _publish(self, event: MutationEvent) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                name = getattr(listener, "__qualname__", repr(listener))
                await self._audit.log_listener_failed(name, str(e))

    # =========================================================================
    # BOOTSTRAP
    # =========================================================================

    async def initialize(self) -> bool:
        """
        Prepare the backend once, then load the store.

        Bootstrap is skipped when this backend's flag is already set in
        the local key-value store. Returns True if the backend is known
        to be ready.
        """
        if self._initialized:
            await self._store.load()
            return True

        identity = self._backend.identity
        key = bootstrap_flag_key(identity)
        ready = False

        flag = None
        if self._local_store is not None:
            try:
                flag = self._local_store.read(key)
            except LocalStateError as e:
                await self._audit.log_local_state_corrupt(key, str(e))

        if flag:
            await self._audit.log_bootstrap(AuditEventType.BOOTSTRAP_SKIPPED, identity)
            ready = True
        else:
            try:
                ready = await self._backend.bootstrap(seed=self._seed)
            except Exception as e:
                await self._audit.log_bootstrap(
                    AuditEventType.BOOTSTRAP_FAILED, identity, error_message=str(e)
                )
            else:
                if ready:
                    if self._local_store is not None:
                        try:
                            self._local_store.write(key, {
                                "completedAt": datetime.now(timezone.utc).isoformat(),
                            })
                        except LocalStateError as e:
                            await self._audit.log_local_state_write_failed(key, str(e))
                    await self._audit.log_bootstrap(AuditEventType.BOOTSTRAP_COMPLETED, identity)
                else:
                    await self._audit.log_bootstrap(
                        AuditEventType.BOOTSTRAP_FAILED,
                        identity,
                        error_message="backend reported failure",
                    )

        self._initialized = True
        await self._store.load()
        return ready

    # =========================================================================
    # GENERIC WRITES
    # =========================================================================

    async def create(self, kind: EntityKind, draft: Union[EntityModel, dict]) -> SyncResult:
        """Create a record, then reload."""
        correlation_id = create_correlation_id()
        resource = kind.resource

        try:
            body = self._coerce(kind.draft_model, draft).to_wire()
        except ValidationError as e:
            await self._audit.log_write_failed("create", resource, str(e), correlation_id)
            return SyncResult.failure(SyncAction.CREATE, resource, str(e), correlation_id=correlation_id)

        try:
            record = await self._backend.create_record(resource, body)
        except Exception as e:
            await self._audit.log_write_failed("create", resource, str(e), correlation_id)
            result = SyncResult.failure(SyncAction.CREATE, resource, str(e), correlation_id=correlation_id)
        else:
            entity_id = str(record.get("id"))
            await self._audit.log_entity_written("create", resource, entity_id, correlation_id)
            result = SyncResult(
                ok=True,
                action=SyncAction.CREATE,
                resource=resource,
                entity_id=entity_id,
                entity=self._parse(kind, record),
                correlation_id=correlation_id,
            )

        await self._store.load(correlation_id)
        if result.ok:
            await self._publish(MutationEvent(
                kind=kind,
                action=SyncAction.CREATE,
                entity_id=result.entity_id,
                entity=result.entity,
                changes=body,
            ))
        return result

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: Union[PatchModel, dict],
    ) -> SyncResult:
        """Merge changes into a record, then reload."""
        correlation_id = create_correlation_id()
        resource = kind.resource

        try:
            body = self._coerce(kind.patch_model, patch).to_wire()
        except ValidationError as e:
            await self._audit.log_write_failed("update", resource, str(e), correlation_id, entity_id)
            return SyncResult.failure(
                SyncAction.UPDATE, resource, str(e),
                entity_id=entity_id, correlation_id=correlation_id,
            )

        try:
            record = await self._backend.update_record(resource, entity_id, body)
        except NotFoundError:
            await self._audit.log_write_failed("update", resource, NOT_FOUND, correlation_id, entity_id)
            result = SyncResult.failure(
                SyncAction.UPDATE, resource, NOT_FOUND,
                entity_id=entity_id, correlation_id=correlation_id,
            )
        except Exception as e:
            await self._audit.log_write_failed("update", resource, str(e), correlation_id, entity_id)
            result = SyncResult.failure(
                SyncAction.UPDATE, resource, str(e),
                entity_id=entity_id, correlation_id=correlation_id,
            )
        else:
            await self._audit.log_entity_written("update", resource, entity_id, correlation_id)
            result = SyncResult(
                ok=True,
                action=SyncAction.UPDATE,
                resource=resource,
                entity_id=entity_id,
                entity=self._parse(kind, record),
                correlation_id=correlation_id,
            )

        await self._store.load(correlation_id)
        if result.ok:
            entity = self._store.snapshot.find(kind, entity_id) or result.entity
            await self._publish(MutationEvent(
                kind=kind,
                action=SyncAction.UPDATE,
                entity_id=entity_id,
                entity=entity,
                changes=body,
            ))
        return result

    async def delete(self, kind: EntityKind, entity_id: str) -> SyncResult:
        """Delete a record by id, then reload."""
        correlation_id = create_correlation_id()
        resource = kind.resource
        previous = self._store.snapshot.find(kind, entity_id)

        try:
            deleted = await self._backend.delete_record(resource, entity_id)
        except Exception as e:
            await self._audit.log_write_failed("delete", resource, str(e), correlation_id, entity_id)
            result = SyncResult.failure(
                SyncAction.DELETE, resource, str(e),
                entity_id=entity_id, correlation_id=correlation_id,
            )
        else:
            if deleted:
                await self._audit.log_entity_written("delete", resource, entity_id, correlation_id)
                result = SyncResult(
                    ok=True,
                    action=SyncAction.DELETE,
                    resource=resource,
                    entity_id=entity_id,
                    entity=previous,
                    correlation_id=correlation_id,
                )
            else:
                await self._audit.log_write_failed("delete", resource, NOT_FOUND, correlation_id, entity_id)
                result = SyncResult.failure(
                    SyncAction.DELETE, resource, NOT_FOUND,
                    entity_id=entity_id, correlation_id=correlation_id,
                )

        await self._store.load(correlation_id)
        if result.ok:
            await self._publish(MutationEvent(
                kind=kind,
                action=SyncAction.DELETE,
                entity_id=entity_id,
                entity=previous,
            ))
        return result

    @staticmethod
    def _coerce(model: type, value: Any):
        if isinstance(value, model):
            return value
        if isinstance(value, EntityModel):
            value = value.model_dump(exclude_unset=isinstance(value, PatchModel))
        return model.model_validate(value)

    @staticmethod
    def _parse(kind: EntityKind, record: dict):
        """Validate the backend's echo. The reload is authoritative, so a bad echo is just dropped."""
        try:
            return kind.record_model.model_validate(record)
        except ValidationError:
            return None

    # =========================================================================
    # PER-KIND CONVENIENCE
    # =========================================================================

    async def add_task(self, draft: Union[TaskDraft, dict]) -> SyncResult:
        return await self.create(EntityKind.TASK, draft)

    async def update_task(self, task_id: str, patch: Union[TaskPatch, dict]) -> SyncResult:
        return await self.update(EntityKind.TASK, task_id, patch)

    async def delete_task(self, task_id: str) -> SyncResult:
        return await self.delete(EntityKind.TASK, task_id)

    async def toggle_task(self, task_id: str) -> SyncResult:
        """Flip a task's completed flag based on the current snapshot."""
        task = self._store.snapshot.find(EntityKind.TASK, task_id)
        if task is None:
            return SyncResult.failure(SyncAction.UPDATE, EntityKind.TASK.resource, NOT_FOUND, entity_id=task_id)
        return await self.update_task(task_id, TaskPatch(completed=not task.completed))

    async def add_event(self, draft: Union[EventDraft, dict]) -> SyncResult:
        return await self.create(EntityKind.EVENT, draft)

    async def update_event(self, event_id: str, patch: Union[EventPatch, dict]) -> SyncResult:
        return await self.update(EntityKind.EVENT, event_id, patch)

    async def delete_event(self, event_id: str) -> SyncResult:
        return await self.delete(EntityKind.EVENT, event_id)

    async def add_subscription(self, draft: Union[SubscriptionDraft, dict]) -> SyncResult:
        return await self.create(EntityKind.SUBSCRIPTION, draft)

    async def update_subscription(
        self,
        subscription_id: str,
        patch: Union[SubscriptionPatch, dict],
    ) -> SyncResult:
        return await self.update(EntityKind.SUBSCRIPTION, subscription_id, patch)

    async def delete_subscription(self, subscription_id: str) -> SyncResult:
        return await self.delete(EntityKind.SUBSCRIPTION, subscription_id)

    async def add_family_member(self, draft: Union[FamilyMemberDraft, dict]) -> SyncResult:
        return await self.create(EntityKind.FAMILY_MEMBER, draft)

    async def update_family_member(
        self,
        member_id: str,
        patch: Union[FamilyMemberPatch, dict],
    ) -> SyncResult:
        return await self.update(EntityKind.FAMILY_MEMBER, member_id, patch)

    async def delete_family_member(self, member_id: str) -> SyncResult:
        return await self.delete(EntityKind.FAMILY_MEMBER, member_id)

    async def add_transaction(self, draft: Union[TransactionDraft, dict]) -> SyncResult:
        return await self.create(EntityKind.TRANSACTION, draft)

    async def update_transaction(
        self,
        transaction_id: str,
        patch: Union[TransactionPatch, dict],
    ) -> SyncResult:
        return await self.update(EntityKind.TRANSACTION, transaction_id, patch)

    async def delete_transaction(self, transaction_id: str) -> SyncResult:
        return await self.delete(EntityKind.TRANSACTION, transaction_id)
