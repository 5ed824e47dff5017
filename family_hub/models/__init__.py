"""
Data Models Package

All Pydantic models used by Family Hub. Everything read from the backend
or the local key-value store is validated against these schemas.
"""

from family_hub.models.entities import (
    BillingCycle,
    EntityKind,
    EntityModel,
    Event,
    EventCategory,
    EventDraft,
    EventPatch,
    FamilyMember,
    FamilyMemberDraft,
    FamilyMemberPatch,
    PatchModel,
    Subscription,
    SubscriptionCategory,
    SubscriptionDraft,
    SubscriptionPatch,
    SubscriptionStatus,
    Task,
    TaskDraft,
    TaskPatch,
    TaskPriority,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionType,
)
from family_hub.models.planning import (
    PARTIES_RESOURCE,
    TRIPS_RESOURCE,
    Party,
    PartyDraft,
    PartyPatch,
    PartyType,
    PlanningStatus,
    Trip,
    TripDraft,
    TripPatch,
)
from family_hub.models.notifications import (
    Notification,
    NotificationDraft,
    NotificationPreferences,
    NotificationPriority,
    NotificationType,
    PermissionState,
    PushFailureReason,
    PushPayload,
    PushSubscriptionHandle,
    PushToggleResult,
)
from family_hub.models.views import (
    CalendarDay,
    CalendarItem,
    CalendarItemKind,
    FinancialRollup,
    MemberActivity,
    SubscriptionCostSummary,
)
from family_hub.models.sync import (
    MutationEvent,
    StoreState,
    SyncAction,
    SyncResult,
)
from family_hub.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "BillingCycle",
    "EntityKind",
    "EntityModel",
    "Event",
    "EventCategory",
    "EventDraft",
    "EventPatch",
    "FamilyMember",
    "FamilyMemberDraft",
    "FamilyMemberPatch",
    "PatchModel",
    "Subscription",
    "SubscriptionCategory",
    "SubscriptionDraft",
    "SubscriptionPatch",
    "SubscriptionStatus",
    "Task",
    "TaskDraft",
    "TaskPatch",
    "TaskPriority",
    "Transaction",
    "TransactionDraft",
    "TransactionPatch",
    "TransactionType",
    # Planning
    "PARTIES_RESOURCE",
    "TRIPS_RESOURCE",
    "Party",
    "PartyDraft",
    "PartyPatch",
    "PartyType",
    "PlanningStatus",
    "Trip",
    "TripDraft",
    "TripPatch",
    # Notifications
    "Notification",
    "NotificationDraft",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationType",
    "PermissionState",
    "PushFailureReason",
    "PushPayload",
    "PushSubscriptionHandle",
    "PushToggleResult",
    # Derived views
    "CalendarDay",
    "CalendarItem",
    "CalendarItemKind",
    "FinancialRollup",
    "MemberActivity",
    "SubscriptionCostSummary",
    # Sync
    "MutationEvent",
    "StoreState",
    "SyncAction",
    "SyncResult",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
