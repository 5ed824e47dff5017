"""
Notification Builders

Ready-made drafts for the common alert types. Each carries the screen
to open (action_url) and the button label for it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from family_hub.models.notifications import (
    NotificationDraft,
    NotificationPriority,
    NotificationType,
)


def _short_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


class NotificationBuilder:
    """
    Helper class to build notification drafts with common patterns.

    Usage:
        draft = NotificationBuilder.task_reminder("Buy groceries", "Sarah", due)
        await engine.add(draft)
    """

    @staticmethod
    def schedule_reminder(
        event_title: str,
        event_time: datetime,
        member_name: Optional[str] = None,
        minutes_before: int = 15,
    ) -> NotificationDraft:
        who = f" for {member_name}" if member_name else ""
        return NotificationDraft(
            type=NotificationType.SCHEDULE,
            title="Upcoming Event",
            message=f"{event_title}{who} starts in {minutes_before} minutes",
            priority=NotificationPriority.MEDIUM,
            action_url="/?section=schedule",
            action_label="View Schedule",
            metadata={
                "event_title": event_title,
                "event_time": event_time.isoformat(),
                "member_name": member_name,
            },
        )

    @staticmethod
    def subscription_alert(
        subscription_name: str,
        amount: Decimal,
        due_date: date,
    ) -> NotificationDraft:
        return NotificationDraft(
            type=NotificationType.SUBSCRIPTION,
            title="Subscription Due",
            message=f"{subscription_name} payment of ${amount:.2f} is due {_short_date(due_date)}",
            priority=NotificationPriority.HIGH,
            action_url="/?section=financial",
            action_label="Manage Subscriptions",
            metadata={
                "subscription_name": subscription_name,
                "due_date": due_date.isoformat(),
                "amount": str(amount),
            },
        )

    @staticmethod
    def task_reminder(task_title: str, assignee: str, due_date: date) -> NotificationDraft:
        return NotificationDraft(
            type=NotificationType.TASK,
            title="Task Due Soon",
            message=f'"{task_title}" assigned to {assignee} is due {_short_date(due_date)}',
            priority=NotificationPriority.MEDIUM,
            action_url="/?section=activities",
            action_label="View Tasks",
            metadata={
                "task_title": task_title,
                "assignee": assignee,
                "due_date": due_date.isoformat(),
            },
        )

    @staticmethod
    def family_update(member_name: str, action: str) -> NotificationDraft:
        return NotificationDraft(
            type=NotificationType.FAMILY,
            title="Family Update",
            message=f"{member_name} {action}",
            priority=NotificationPriority.LOW,
            action_url="/?section=family",
            action_label="View Family",
            metadata={"member_name": member_name, "action": action},
        )

    @staticmethod
    def system(
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> NotificationDraft:
        return NotificationDraft(
            type=NotificationType.SYSTEM,
            title=title,
            message=message,
            priority=priority,
        )
