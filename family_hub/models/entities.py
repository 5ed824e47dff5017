"""
Household Entity Models

The five record kinds mirrored from the backend: tasks, calendar events,
subscriptions, family members and transactions.

Each kind comes in three shapes:
- <Kind>Draft: the create body (no id, no timestamps - the backend assigns those)
- <Kind>:      the persisted record as returned by the backend
- <Kind>Patch: the update body (every field optional, only set fields are sent)

The wire format is camelCase (dueDate, billingCycle, createdAt...).
Python code uses snake_case; aliases are generated automatically.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"

# Amounts are Decimal in Python but plain JSON numbers on the wire.
Money = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


# =============================================================================
# ENUMS
# =============================================================================

class TaskPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EventCategory(str, Enum):
    PERSONAL = "personal"
    WORK = "work"
    FAMILY = "family"
    HEALTH = "health"
    SOCIAL = "social"


class BillingCycle(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class SubscriptionCategory(str, Enum):
    ENTERTAINMENT = "entertainment"
    PRODUCTIVITY = "productivity"
    UTILITIES = "utilities"
    HEALTH = "health"
    EDUCATION = "education"
    OTHER = "other"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    DUE = "due"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# BASE
# =============================================================================

class EntityModel(BaseModel):
    """Common configuration for every wire model."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Serialize to the camelCase JSON body the backend expects."""
        return self.model_dump(mode="json", by_alias=True)


class PatchModel(EntityModel):
    """Marker base for partial updates; only explicitly set fields are sent."""

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set


class RecordMixin(EntityModel):
    """Server-assigned identity and timestamps."""

    id: str = Field(..., min_length=1, description="Server-assigned identifier")
    created_at: dt.datetime = Field(..., description="Creation timestamp")
    updated_at: dt.datetime = Field(..., description="Last-modified timestamp")


# =============================================================================
# TASKS
# =============================================================================

class TaskDraft(EntityModel):
    title: str = Field(..., min_length=1, max_length=200)
    assignee: str = Field(..., min_length=1, max_length=100)
    due_date: dt.date
    priority: TaskPriority = TaskPriority.MEDIUM
    completed: bool = False


class Task(RecordMixin, TaskDraft):
    """A household task."""


class TaskPatch(PatchModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    assignee: Optional[str] = Field(default=None, min_length=1, max_length=100)
    due_date: Optional[dt.date] = None
    priority: Optional[TaskPriority] = None
    completed: Optional[bool] = None


# =============================================================================
# EVENTS
# =============================================================================

class EventDraft(EntityModel):
    title: str = Field(..., min_length=1, max_length=200)
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN, description="Time of day, HH:MM")
    member: str = Field(..., min_length=1, max_length=100)
    category: EventCategory
    description: Optional[str] = Field(default=None, max_length=1000)


class Event(RecordMixin, EventDraft):
    """A calendar event."""

    @property
    def starts_at(self) -> dt.datetime:
        hour, minute = self.time.split(":")[:2]
        return dt.datetime(self.date.year, self.date.month, self.date.day, int(hour), int(minute))


class EventPatch(PatchModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[dt.date] = None
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    member: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[EventCategory] = None
    description: Optional[str] = Field(default=None, max_length=1000)


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

class SubscriptionDraft(EntityModel):
    name: str = Field(..., min_length=1, max_length=200)
    cost: Money
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    category: SubscriptionCategory = SubscriptionCategory.OTHER
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    next_payment: dt.date
    website: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=1000)


class Subscription(RecordMixin, SubscriptionDraft):
    """A recurring payment."""


class SubscriptionPatch(PatchModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    cost: Optional[Money] = None
    billing_cycle: Optional[BillingCycle] = None
    category: Optional[SubscriptionCategory] = None
    status: Optional[SubscriptionStatus] = None
    next_payment: Optional[dt.date] = None
    website: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=1000)


# =============================================================================
# FAMILY MEMBERS
# =============================================================================

class FamilyMemberDraft(EntityModel):
    name: str = Field(..., min_length=1, max_length=100)
    role: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=200)
    tasks: int = Field(default=0, ge=0, description="Derived open task count")
    upcoming: int = Field(default=0, ge=0, description="Derived upcoming event count")


class FamilyMember(RecordMixin, FamilyMemberDraft):
    """A member of the household."""


class FamilyMemberPatch(PatchModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=200)
    tasks: Optional[int] = Field(default=None, ge=0)
    upcoming: Optional[int] = Field(default=None, ge=0)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(EntityModel):
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    amount: Money
    description: str = Field(default="", max_length=500)
    date: dt.date
    member: str = Field(..., min_length=1, max_length=100)


class Transaction(RecordMixin, TransactionDraft):
    """A single income or expense entry."""


class TransactionPatch(PatchModel):
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[Money] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[dt.date] = None
    member: Optional[str] = Field(default=None, min_length=1, max_length=100)


# =============================================================================
# ENTITY KINDS
# =============================================================================

class EntityKind(str, Enum):
    """The five collections held by the entity store."""
    TASK = "task"
    EVENT = "event"
    SUBSCRIPTION = "subscription"
    FAMILY_MEMBER = "family_member"
    TRANSACTION = "transaction"

    @property
    def resource(self) -> str:
        """Remote resource name (the /api/<resource> path segment)."""
        return _KIND_SPECS[self][0]

    @property
    def record_model(self) -> type[EntityModel]:
        return _KIND_SPECS[self][1]

    @property
    def draft_model(self) -> type[EntityModel]:
        return _KIND_SPECS[self][2]

    @property
    def patch_model(self) -> type[PatchModel]:
        return _KIND_SPECS[self][3]


_KIND_SPECS: dict[EntityKind, tuple[str, type, type, type]] = {
    EntityKind.TASK: ("tasks", Task, TaskDraft, TaskPatch),
    EntityKind.EVENT: ("events", Event, EventDraft, EventPatch),
    EntityKind.SUBSCRIPTION: ("subscriptions", Subscription, SubscriptionDraft, SubscriptionPatch),
    EntityKind.FAMILY_MEMBER: ("family-members", FamilyMember, FamilyMemberDraft, FamilyMemberPatch),
    EntityKind.TRANSACTION: ("transactions", Transaction, TransactionDraft, TransactionPatch),
}
