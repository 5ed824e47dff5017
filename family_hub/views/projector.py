"""
Derived-View Projector

Pure functions from a store snapshot to the aggregates the screens show.
Nothing here is persisted or cached; callers recompute after each reload.

Empty inputs yield zero-valued aggregates. Dates are already validated
by the store, so no function here needs to handle malformed records.
"""

import calendar
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from family_hub.models.entities import (
    BillingCycle,
    Event,
    Subscription,
    SubscriptionStatus,
    Task,
    Transaction,
    TransactionType,
)
from family_hub.models.views import (
    CalendarDay,
    CalendarItem,
    CalendarItemKind,
    FinancialRollup,
    MemberActivity,
    SubscriptionCostSummary,
)
from family_hub.sync.store import StoreSnapshot


# Tasks have a due date but no time; they sort after every event that day
TASK_SORT_TIME = "23:59"

CENT = Decimal("0.01")

# Multiplier from one billing period to one month
_MONTHLY_FACTOR = {
    BillingCycle.WEEKLY: Decimal(52) / Decimal(12),
    BillingCycle.MONTHLY: Decimal(1),
    BillingCycle.QUARTERLY: Decimal(1) / Decimal(3),
    BillingCycle.YEARLY: Decimal(1) / Decimal(12),
}


def _event_item(event: Event) -> CalendarItem:
    return CalendarItem(
        kind=CalendarItemKind.EVENT,
        source_id=event.id,
        title=event.title,
        date=event.date,
        time=event.time[:5],
        member=event.member,
        category=event.category.value,
    )


def _task_item(task: Task) -> CalendarItem:
    return CalendarItem(
        kind=CalendarItemKind.TASK,
        source_id=task.id,
        title=task.title,
        date=task.due_date,
        time=TASK_SORT_TIME,
        member=task.assignee,
        priority=task.priority.value,
        completed=task.completed,
    )


# =============================================================================
# CALENDAR
# =============================================================================

def calendar_day(snapshot: StoreSnapshot, target: date) -> CalendarDay:
    """
    Everything on one calendar day.

    Events come first in time order, then tasks due that day.
    """
    events = sorted(
        (e for e in snapshot.events if e.date == target),
        key=lambda e: e.time[:5],
    )
    tasks = [t for t in snapshot.tasks if t.due_date == target]

    items = [_event_item(e) for e in events] + [_task_item(t) for t in tasks]
    return CalendarDay(date=target, items=items)


def calendar_month(snapshot: StoreSnapshot, year: int, month: int) -> list[CalendarDay]:
    """One CalendarDay per day of the month, empty days included."""
    _, last_day = calendar.monthrange(year, month)
    return [
        calendar_day(snapshot, date(year, month, day))
        for day in range(1, last_day + 1)
    ]


def todays_events(snapshot: StoreSnapshot, today: date) -> list[Event]:
    return sorted(
        (e for e in snapshot.events if e.date == today),
        key=lambda e: e.time[:5],
    )


# =============================================================================
# FINANCE
# =============================================================================

def financial_rollup(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> FinancialRollup:
    """
    Income, expense and net over an optional inclusive date range.

    Either bound may be omitted.
    """
    income = Decimal("0")
    expense = Decimal("0")
    count = 0

    for tx in transactions:
        if start is not None and tx.date < start:
            continue
        if end is not None and tx.date > end:
            continue
        count += 1
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount

    return FinancialRollup(
        income=income,
        expense=expense,
        net=income - expense,
        transaction_count=count,
        period_start=start,
        period_end=end,
    )


def monthly_rollup(transactions: Iterable[Transaction], reference: date) -> FinancialRollup:
    """Rollup over the calendar month (and year) containing `reference`."""
    _, last_day = calendar.monthrange(reference.year, reference.month)
    return financial_rollup(
        transactions,
        start=reference.replace(day=1),
        end=reference.replace(day=last_day),
    )


def subscription_costs(subscriptions: Iterable[Subscription]) -> SubscriptionCostSummary:
    """
    Recurring cost of every non-cancelled subscription, normalized to a month.

    Paused subscriptions still count toward the totals.
    """
    monthly = Decimal("0")
    active = 0
    due = 0

    for sub in subscriptions:
        if sub.status == SubscriptionStatus.ACTIVE:
            active += 1
        elif sub.status == SubscriptionStatus.DUE:
            due += 1
        if sub.status == SubscriptionStatus.CANCELLED:
            continue
        monthly += sub.cost * _MONTHLY_FACTOR[sub.billing_cycle]

    return SubscriptionCostSummary(
        monthly_total=monthly.quantize(CENT, rounding=ROUND_HALF_UP),
        yearly_total=(monthly * 12).quantize(CENT, rounding=ROUND_HALF_UP),
        active_count=active,
        due_count=due,
    )


# =============================================================================
# MEMBERS
# =============================================================================

def member_activity(snapshot: StoreSnapshot, now: datetime) -> list[MemberActivity]:
    """
    Per member: open tasks assigned to them and events strictly after `now`.

    Members are matched by name. `now` is compared against naive local
    event times; a timezone-aware value is taken as wall-clock time.
    """
    wall_clock = now.replace(tzinfo=None)
    activity = []
    for member in snapshot.family_members:
        open_tasks = sum(
            1 for t in snapshot.tasks
            if t.assignee == member.name and not t.completed
        )
        upcoming = sum(
            1 for e in snapshot.events
            if e.member == member.name and e.starts_at > wall_clock
        )
        activity.append(MemberActivity(
            member_id=member.id,
            name=member.name,
            open_tasks=open_tasks,
            upcoming_events=upcoming,
        ))
    return activity
