"""
Shared fixtures.

No test talks to a real backend: the in-memory backend stands in for
the household API, and FlakyBackend injects failures per operation.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from family_hub.audit import AuditLogger
from family_hub.models import (
    Event,
    EventCategory,
    FamilyMember,
    PermissionState,
    PushPayload,
    PushSubscriptionHandle,
    Task,
    TaskPriority,
    Transaction,
    TransactionType,
)
from family_hub.notifications.push import PushTransport
from family_hub.services.local_store import KeyValueStore
from family_hub.services.storage import InMemoryEntityBackend, StorageError
from family_hub.sync import EntityStore, SyncGateway


TODAY = date(2024, 3, 15)
CREATED = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FlakyBackend(InMemoryEntityBackend):
    """In-memory backend that raises StorageError for chosen (operation, resource) pairs."""

    def __init__(self, fail_on: Optional[set] = None, **kwargs):
        super().__init__(**kwargs)
        self.fail_on = set(fail_on or ())
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, resource: str) -> None:
        self.calls.append((operation, resource))
        if (operation, resource) in self.fail_on or (operation, "*") in self.fail_on:
            raise StorageError(f"{operation} {resource} failed")

    async def list_records(self, resource):
        self._check("list", resource)
        return await super().list_records(resource)

    async def create_record(self, resource, body):
        self._check("create", resource)
        return await super().create_record(resource, body)

    async def update_record(self, resource, record_id, body):
        self._check("update", resource)
        return await super().update_record(resource, record_id, body)

    async def delete_record(self, resource, record_id):
        self._check("delete", resource)
        return await super().delete_record(resource, record_id)

    async def bootstrap(self, seed=False):
        self._check("bootstrap", "*")
        return await super().bootstrap(seed)


class RecordingTransport(PushTransport):
    """Push transport that records what it was asked to show."""

    def __init__(
        self,
        supported: bool = True,
        permission: PermissionState = PermissionState.GRANTED,
        grant_on_request: bool = True,
        subscribe_raises: bool = False,
    ):
        self.supported = supported
        self._permission = permission
        self.grant_on_request = grant_on_request
        self.subscribe_raises = subscribe_raises
        self.shown: list[PushPayload] = []
        self.unsubscribed = 0

    def is_supported(self) -> bool:
        return self.supported

    @property
    def permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        if self._permission == PermissionState.DEFAULT:
            self._permission = (
                PermissionState.GRANTED if self.grant_on_request else PermissionState.DENIED
            )
        return self._permission

    async def subscribe(self, server_key):
        if self.subscribe_raises:
            raise RuntimeError("push service unreachable")
        return PushSubscriptionHandle(
            endpoint="https://push.example.com/sub/1",
            keys={"p256dh": "key", "auth": "secret"},
        )

    async def unsubscribe(self) -> bool:
        self.unsubscribed += 1
        return True

    async def send_local(self, payload: PushPayload) -> None:
        self.shown.append(payload)


# =============================================================================
# RECORD FACTORIES
# =============================================================================

def make_task(id="task_1", title="Buy groceries", assignee="Sarah", due=TODAY,
              completed=False, priority=TaskPriority.MEDIUM) -> Task:
    return Task(
        id=id, created_at=CREATED, updated_at=CREATED,
        title=title, assignee=assignee, due_date=due,
        priority=priority, completed=completed,
    )


def make_event(id="event_1", title="Soccer Practice", on=TODAY, at="09:00",
               member="Alex", category=EventCategory.FAMILY) -> Event:
    return Event(
        id=id, created_at=CREATED, updated_at=CREATED,
        title=title, date=on, time=at, member=member, category=category,
    )


def make_member(id="member_1", name="Sarah", role="Mom") -> FamilyMember:
    return FamilyMember(id=id, created_at=CREATED, updated_at=CREATED, name=name, role=role)


def make_transaction(id="tx_1", type=TransactionType.EXPENSE, amount="10.00",
                     on=TODAY, category="Groceries", member="Sarah") -> Transaction:
    return Transaction(
        id=id, created_at=CREATED, updated_at=CREATED,
        type=type, category=category, amount=Decimal(amount),
        description="", date=on, member=member,
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def backend():
    return FlakyBackend(today=TODAY)


@pytest.fixture
def kv_store(tmp_path):
    return KeyValueStore(tmp_path / "state")


@pytest.fixture
def store(backend, audit_logger):
    return EntityStore(backend, audit_logger)


@pytest.fixture
def gateway(backend, store, audit_logger, kv_store):
    return SyncGateway(backend, store, audit_logger=audit_logger, local_store=kv_store)


@pytest.fixture
def transport():
    return RecordingTransport()
