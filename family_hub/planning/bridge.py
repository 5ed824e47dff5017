"""
Planning-to-Calendar Bridge

Projects trips and parties into ordinary calendar events so they show
up on the schedule next to everything else.

DESIGN DECISION: Projection is one-way and add-only.
- Each generated event goes through the gateway like any user event
- A failed event is logged; the others are still attempted
- Nothing is rolled back, and later edits or deletes of the trip or
  party never retract the events

Generated events are recognizable by their title prefix.
"""

import re
from typing import Iterable, Optional

from family_hub.audit import AuditLogger
from family_hub.models.entities import EventCategory, EventDraft
from family_hub.models.planning import Party, PartyType, Trip
from family_hub.models.sync import SyncResult
from family_hub.sync.gateway import SyncGateway


TRIP_START_PREFIX = "🧳 Trip Start:"
TRIP_END_PREFIX = "🏠 Trip End:"
TRIP_START_TIME = "09:00"
TRIP_END_TIME = "18:00"

PARTY_EMOJI = {
    PartyType.BIRTHDAY: "🎂",
    PartyType.ANNIVERSARY: "💕",
    PartyType.HOLIDAY: "🎄",
    PartyType.CELEBRATION: "🎉",
    PartyType.GATHERING: "👥",
    PartyType.OTHER: "🎊",
}

_GENERATED_PREFIXES = (TRIP_START_PREFIX, TRIP_END_PREFIX, *PARTY_EMOJI.values())

_PLANNING_TITLE = re.compile(
    r"(?:Trip Start:|Trip End:|" + "|".join(PARTY_EMOJI.values()) + r")\s*(.+)"
)


def trip_to_events(trip: Trip) -> list[EventDraft]:
    """A start event, plus an end event when the trip spans more than one day."""
    events = [
        EventDraft(
            title=f"{TRIP_START_PREFIX} {trip.title}",
            date=trip.start_date,
            time=TRIP_START_TIME,
            member=trip.organizer,
            category=EventCategory.FAMILY,
            description=f"Trip to {trip.destination}. {trip.description or ''}",
        )
    ]
    if trip.end_date != trip.start_date:
        events.append(EventDraft(
            title=f"{TRIP_END_PREFIX} {trip.title}",
            date=trip.end_date,
            time=TRIP_END_TIME,
            member=trip.organizer,
            category=EventCategory.FAMILY,
            description=f"Return from {trip.destination}",
        ))
    return events


def party_to_event(party: Party) -> EventDraft:
    emoji = PARTY_EMOJI.get(party.type, PARTY_EMOJI[PartyType.OTHER])
    return EventDraft(
        title=f"{emoji} {party.title}",
        date=party.date,
        time=party.time,
        member=party.organizer,
        category=EventCategory.FAMILY,
        description=f"{party.type.value.capitalize()} at {party.location}. {party.description or ''}",
    )


def is_generated_event(title: str) -> bool:
    """True if an event title carries a trip or party prefix."""
    return any(prefix in title for prefix in _GENERATED_PREFIXES)


def extract_planning_title(title: str) -> Optional[str]:
    """The trip or party title embedded in a generated event title."""
    match = _PLANNING_TITLE.search(title)
    return match.group(1) if match else None


class PlanningCalendarBridge:
    """Sends projected events through the gateway and logs the outcome of each."""

    def __init__(
        self,
        gateway: SyncGateway,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._gateway = gateway
        self._audit = audit_logger or AuditLogger()

    async def on_trip_added(self, trip: Trip) -> list[SyncResult]:
        return await self._emit(trip.id, trip_to_events(trip))

    async def on_party_added(self, party: Party) -> list[SyncResult]:
        return await self._emit(party.id, [party_to_event(party)])

    async def sync_all(
        self,
        trips: Iterable[Trip],
        parties: Iterable[Party],
    ) -> list[SyncResult]:
        """Project every given trip and party. Used to backfill the calendar."""
        results = []
        for trip in trips:
            results += await self.on_trip_added(trip)
        for party in parties:
            results += await self.on_party_added(party)
        return results

    async def _emit(self, planning_id: str, drafts: list[EventDraft]) -> list[SyncResult]:
        results = []
        for draft in drafts:
            result = await self._gateway.add_event(draft)
            await self._audit.log_bridge_event(
                planning_id=planning_id,
                event_title=draft.title,
                ok=result.ok,
                error_message=result.error,
            )
            results.append(result)
        return results
