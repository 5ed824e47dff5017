"""Derived views over the entity store."""

from family_hub.views.projector import (
    calendar_day,
    calendar_month,
    financial_rollup,
    member_activity,
    monthly_rollup,
    subscription_costs,
    todays_events,
)
from family_hub.views.report import (
    HouseholdReport,
    ReportSummary,
    build_household_report,
    email_report_link,
    render_csv,
    render_email_summary,
)

__all__ = [
    "HouseholdReport",
    "ReportSummary",
    "build_household_report",
    "calendar_day",
    "calendar_month",
    "email_report_link",
    "financial_rollup",
    "member_activity",
    "monthly_rollup",
    "render_csv",
    "render_email_summary",
    "subscription_costs",
    "todays_events",
]
