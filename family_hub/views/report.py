"""
Household Report

A point-in-time summary of the household plus the raw transactions,
tasks and events. The dashboard exports it as CSV or opens a mail
draft with the summary.
"""

import csv
import io
from datetime import datetime
from decimal import Decimal
from urllib.parse import quote

from pydantic import BaseModel, Field

from family_hub.models.entities import Event, SubscriptionStatus, Task, Transaction
from family_hub.sync.store import StoreSnapshot
from family_hub.views.projector import financial_rollup, subscription_costs


class ReportSummary(BaseModel):
    family_members: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    total_events: int = 0
    total_transactions: int = 0
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    active_subscriptions: int = 0
    subscription_costs: Decimal = Decimal("0")


class HouseholdReport(BaseModel):
    generated_at: datetime
    summary: ReportSummary
    transactions: list[Transaction] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"family-hub-report-{self.generated_at.date().isoformat()}.csv"


def build_household_report(snapshot: StoreSnapshot, generated_at: datetime) -> HouseholdReport:
    """Summarize a snapshot. Subscription costs are the monthly-normalized total."""
    rollup = financial_rollup(snapshot.transactions)
    summary = ReportSummary(
        family_members=len(snapshot.family_members),
        total_tasks=len(snapshot.tasks),
        completed_tasks=sum(1 for t in snapshot.tasks if t.completed),
        total_events=len(snapshot.events),
        total_transactions=rollup.transaction_count,
        total_income=rollup.income,
        total_expenses=rollup.expense,
        active_subscriptions=sum(
            1 for s in snapshot.subscriptions if s.status != SubscriptionStatus.CANCELLED
        ),
        subscription_costs=subscription_costs(snapshot.subscriptions).monthly_total,
    )
    return HouseholdReport(
        generated_at=generated_at,
        summary=summary,
        transactions=list(snapshot.transactions),
        tasks=list(snapshot.tasks),
        events=list(snapshot.events),
    )


def _money(value: Decimal) -> str:
    return f"${value:.2f}"


def render_csv(report: HouseholdReport) -> str:
    """Render the report as sectioned CSV with every cell quoted."""
    summary = report.summary
    rows: list[list] = [
        ["Family Hub Report - Generated on", report.generated_at.strftime("%Y-%m-%d %H:%M:%S")],
        [],
        ["Summary"],
        ["Metric", "Value"],
        ["Family Members", summary.family_members],
        ["Total Tasks", summary.total_tasks],
        ["Completed Tasks", summary.completed_tasks],
        ["Total Events", summary.total_events],
        ["Total Income", _money(summary.total_income)],
        ["Total Expenses", _money(summary.total_expenses)],
        ["Subscription Costs", _money(summary.subscription_costs)],
        [],
        ["Transactions"],
        ["Date", "Description", "Type", "Amount", "Category"],
    ]
    rows += [
        [t.date.isoformat(), t.description, t.type.value, _money(t.amount), t.category]
        for t in report.transactions
    ]
    rows += [[], ["Tasks"], ["Title", "Assignee", "Due Date", "Priority", "Completed"]]
    rows += [
        [t.title, t.assignee, t.due_date.isoformat(), t.priority.value, "Yes" if t.completed else "No"]
        for t in report.tasks
    ]
    rows += [[], ["Events"], ["Title", "Date", "Time", "Member", "Category"]]
    rows += [
        [e.title, e.date.isoformat(), e.time, e.member, e.category.value]
        for e in report.events
    ]

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def render_email_summary(report: HouseholdReport) -> str:
    """Plain-text summary for the body of a report email."""
    summary = report.summary
    lines = [
        "Hi,",
        "",
        "Please find the Family Hub report summary below:",
        "",
        "📊 FAMILY SUMMARY",
        f"• Family Members: {summary.family_members}",
        f"• Total Tasks: {summary.total_tasks} ({summary.completed_tasks} completed)",
        f"• Upcoming Events: {summary.total_events}",
        f"• Active Subscriptions: {summary.active_subscriptions}",
        "",
        "💰 FINANCIAL OVERVIEW",
        f"• Total Income: {_money(summary.total_income)}",
        f"• Total Expenses: {_money(summary.total_expenses)}",
        f"• Monthly Subscriptions: {_money(summary.subscription_costs)}",
        f"• Net Balance: {_money(summary.total_income - summary.total_expenses)}",
        "",
        f"Generated on: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "Best regards,",
        "Family Hub",
    ]
    return "\n".join(lines)


def email_report_link(report: HouseholdReport, subject: str = "Family Hub Report") -> str:
    """mailto: link with no recipient, so the mail client asks for one."""
    return f"mailto:?subject={quote(subject, safe='')}&body={quote(render_email_summary(report), safe='')}"
