"""Trip and party planning, and their projection into the calendar."""

from family_hub.planning.bridge import (
    PlanningCalendarBridge,
    extract_planning_title,
    is_generated_event,
    party_to_event,
    trip_to_events,
)
from family_hub.planning.service import PlanningService

__all__ = [
    "PlanningCalendarBridge",
    "PlanningService",
    "extract_planning_title",
    "is_generated_event",
    "party_to_event",
    "trip_to_events",
]
