"""
Derived View Models

These are never persisted. The projector recomputes them from the
current store snapshot whenever a screen needs them.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CalendarItemKind(str, Enum):
    EVENT = "event"
    TASK = "task"


class CalendarItem(BaseModel):
    """
    One row in a calendar day.

    Tagged with its originating kind so a screen can offer the right
    action (toggle completion for a task, edit for an event).
    """

    kind: CalendarItemKind
    source_id: str
    title: str
    date: date
    time: str
    member: str
    category: Optional[str] = None
    priority: Optional[str] = None
    completed: Optional[bool] = None


class CalendarDay(BaseModel):
    date: date
    items: list[CalendarItem] = Field(default_factory=list)

    @property
    def event_count(self) -> int:
        return sum(1 for item in self.items if item.kind == CalendarItemKind.EVENT)

    @property
    def task_count(self) -> int:
        return sum(1 for item in self.items if item.kind == CalendarItemKind.TASK)


class FinancialRollup(BaseModel):
    """Income, expense and net balance over a period."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    transaction_count: int = 0
    period_start: Optional[date] = None
    period_end: Optional[date] = None


class MemberActivity(BaseModel):
    member_id: str
    name: str
    open_tasks: int = 0
    upcoming_events: int = 0


class SubscriptionCostSummary(BaseModel):
    monthly_total: Decimal = Decimal("0")
    yearly_total: Decimal = Decimal("0")
    active_count: int = 0
    due_count: int = 0
