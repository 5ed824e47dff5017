"""
Planning Service

CRUD for trips and parties. These live in their own backend resources,
outside the entity store; the planning screen reads them on demand.

A successful add is handed to the calendar bridge. Updates and deletes
are not.
"""

from typing import Optional, Union

from pydantic import ValidationError

from family_hub.audit import AuditLogger, create_correlation_id
from family_hub.models.planning import (
    PARTIES_RESOURCE,
    TRIPS_RESOURCE,
    Party,
    PartyDraft,
    PartyPatch,
    Trip,
    TripDraft,
    TripPatch,
)
from family_hub.models.sync import SyncAction, SyncResult
from family_hub.planning.bridge import PlanningCalendarBridge
from family_hub.services.storage.interface import EntityBackend, NotFoundError
from family_hub.sync.gateway import NOT_FOUND


class PlanningService:
    """Trips and parties against the backend, with calendar projection on add."""

    def __init__(
        self,
        backend: EntityBackend,
        bridge: Optional[PlanningCalendarBridge] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._backend = backend
        self._bridge = bridge
        self._audit = audit_logger or AuditLogger()

    # =========================================================================
    # READS
    # =========================================================================

    async def list_trips(self) -> list[Trip]:
        return await self._list(TRIPS_RESOURCE, Trip)

    async def list_parties(self) -> list[Party]:
        return await self._list(PARTIES_RESOURCE, Party)

    async def _list(self, resource: str, model: type) -> list:
        """Fail-soft: a failed fetch is an empty list, a bad row is skipped."""
        try:
            rows = await self._backend.list_records(resource)
        except Exception as e:
            await self._audit.log_collection_fetch_failed(resource, str(e), None)
            return []

        records = []
        for row in rows:
            try:
                records.append(model.model_validate(row))
            except ValidationError as e:
                entity_id = row.get("id") if isinstance(row, dict) else None
                await self._audit.log_record_rejected(resource, entity_id, str(e))
        return records

    # =========================================================================
    # TRIPS
    # =========================================================================

    async def add_trip(self, draft: Union[TripDraft, dict]) -> SyncResult:
        result = await self._create(TRIPS_RESOURCE, TripDraft, Trip, draft)
        if result.ok and self._bridge is not None and result.entity is not None:
            await self._bridge.on_trip_added(result.entity)
        return result

    async def update_trip(self, trip_id: str, patch: Union[TripPatch, dict]) -> SyncResult:
        return await self._update(TRIPS_RESOURCE, TripPatch, Trip, trip_id, patch)

    async def delete_trip(self, trip_id: str) -> SyncResult:
        return await self._delete(TRIPS_RESOURCE, trip_id)

    # =========================================================================
    # PARTIES
    # =========================================================================

    async def add_party(self, draft: Union[PartyDraft, dict]) -> SyncResult:
        result = await self._create(PARTIES_RESOURCE, PartyDraft, Party, draft)
        if result.ok and self._bridge is not None and result.entity is not None:
            await self._bridge.on_party_added(result.entity)
        return result

    async def update_party(self, party_id: str, patch: Union[PartyPatch, dict]) -> SyncResult:
        return await self._update(PARTIES_RESOURCE, PartyPatch, Party, party_id, patch)

    async def delete_party(self, party_id: str) -> SyncResult:
        return await self._delete(PARTIES_RESOURCE, party_id)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def _create(self, resource: str, draft_model: type, record_model: type, draft) -> SyncResult:
        correlation_id = create_correlation_id()
        try:
            body = (draft if isinstance(draft, draft_model) else draft_model.model_validate(draft)).to_wire()
            record = await self._backend.create_record(resource, body)
            entity = record_model.model_validate(record)
        except Exception as e:
            await self._audit.log_write_failed("create", resource, str(e), correlation_id)
            return SyncResult.failure(SyncAction.CREATE, resource, str(e), correlation_id=correlation_id)

        await self._audit.log_entity_written("create", resource, entity.id, correlation_id)
        return SyncResult(
            ok=True,
            action=SyncAction.CREATE,
            resource=resource,
            entity_id=entity.id,
            entity=entity,
            correlation_id=correlation_id,
        )

    async def _update(
        self,
        resource: str,
        patch_model: type,
        record_model: type,
        record_id: str,
        patch,
    ) -> SyncResult:
        correlation_id = create_correlation_id()
        try:
            body = (patch if isinstance(patch, patch_model) else patch_model.model_validate(patch)).to_wire()
            record = await self._backend.update_record(resource, record_id, body)
            entity = record_model.model_validate(record)
        except NotFoundError:
            await self._audit.log_write_failed("update", resource, NOT_FOUND, correlation_id, record_id)
            return SyncResult.failure(
                SyncAction.UPDATE, resource, NOT_FOUND,
                entity_id=record_id, correlation_id=correlation_id,
            )
        except Exception as e:
            await self._audit.log_write_failed("update", resource, str(e), correlation_id, record_id)
            return SyncResult.failure(
                SyncAction.UPDATE, resource, str(e),
                entity_id=record_id, correlation_id=correlation_id,
            )

        await self._audit.log_entity_written("update", resource, record_id, correlation_id)
        return SyncResult(
            ok=True,
            action=SyncAction.UPDATE,
            resource=resource,
            entity_id=record_id,
            entity=entity,
            correlation_id=correlation_id,
        )

    async def _delete(self, resource: str, record_id: str) -> SyncResult:
        correlation_id = create_correlation_id()
        try:
            deleted = await self._backend.delete_record(resource, record_id)
        except Exception as e:
            await self._audit.log_write_failed("delete", resource, str(e), correlation_id, record_id)
            return SyncResult.failure(
                SyncAction.DELETE, resource, str(e),
                entity_id=record_id, correlation_id=correlation_id,
            )
        if not deleted:
            await self._audit.log_write_failed("delete", resource, NOT_FOUND, correlation_id, record_id)
            return SyncResult.failure(
                SyncAction.DELETE, resource, NOT_FOUND,
                entity_id=record_id, correlation_id=correlation_id,
            )

        await self._audit.log_entity_written("delete", resource, record_id, correlation_id)
        return SyncResult(
            ok=True,
            action=SyncAction.DELETE,
            resource=resource,
            entity_id=record_id,
            correlation_id=correlation_id,
        )
