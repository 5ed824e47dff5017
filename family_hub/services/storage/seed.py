"""
Example household data used when bootstrapping a fresh backend.

Dates are relative to `today` so the dashboard always has something
happening this week.
"""

from datetime import date, timedelta
from decimal import Decimal

from family_hub.models.entities import (
    BillingCycle,
    EntityKind,
    EventCategory,
    EventDraft,
    FamilyMemberDraft,
    SubscriptionCategory,
    SubscriptionDraft,
    SubscriptionStatus,
    TaskDraft,
    TaskPriority,
    TransactionDraft,
    TransactionType,
)


def example_records(today: date) -> dict[str, list[dict]]:
    """Wire-format create bodies, keyed by resource name."""
    def days(n: int) -> date:
        return today + timedelta(days=n)

    members = [
        FamilyMemberDraft(name="Sarah", role="Mom", email="sarah@family.com"),
        FamilyMemberDraft(name="Alex", role="Son", email="alex@family.com"),
    ]
    tasks = [
        TaskDraft(title="Buy groceries", assignee="Sarah", due_date=days(2), priority=TaskPriority.HIGH),
        TaskDraft(title="Soccer practice pickup", assignee="Alex", due_date=days(1)),
    ]
    events = [
        EventDraft(
            title="Soccer Practice",
            date=today,
            time="09:00",
            member="Alex",
            category=EventCategory.FAMILY,
            description="Weekly soccer practice",
        ),
        EventDraft(
            title="Dentist Appointment",
            date=days(1),
            time="14:00",
            member="Sarah",
            category=EventCategory.HEALTH,
        ),
    ]
    subscriptions = [
        SubscriptionDraft(
            name="Netflix",
            cost=Decimal("15.99"),
            billing_cycle=BillingCycle.MONTHLY,
            category=SubscriptionCategory.ENTERTAINMENT,
            status=SubscriptionStatus.ACTIVE,
            next_payment=days(15),
            website="https://netflix.com",
        ),
        SubscriptionDraft(
            name="Spotify",
            cost=Decimal("9.99"),
            billing_cycle=BillingCycle.MONTHLY,
            category=SubscriptionCategory.ENTERTAINMENT,
            status=SubscriptionStatus.DUE,
            next_payment=days(2),
            website="https://spotify.com",
        ),
    ]
    transactions = [
        TransactionDraft(
            type=TransactionType.INCOME,
            category="Salary",
            amount=Decimal("4200.00"),
            description="Monthly salary",
            date=today.replace(day=1),
            member="Sarah",
        ),
        TransactionDraft(
            type=TransactionType.EXPENSE,
            category="Groceries",
            amount=Decimal("156.40"),
            description="Weekly shop",
            date=today,
            member="Sarah",
        ),
    ]

    return {
        EntityKind.FAMILY_MEMBER.resource: [m.to_wire() for m in members],
        EntityKind.TASK.resource: [t.to_wire() for t in tasks],
        EntityKind.EVENT.resource: [e.to_wire() for e in events],
        EntityKind.SUBSCRIPTION.resource: [s.to_wire() for s in subscriptions],
        EntityKind.TRANSACTION.resource: [t.to_wire() for t in transactions],
    }
