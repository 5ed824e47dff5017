"""
Planning Models

Trips and parties are planned outside the calendar. When one is added,
the planning bridge projects it into calendar events.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from family_hub.models.entities import (
    TIME_PATTERN,
    EntityModel,
    Money,
    PatchModel,
    RecordMixin,
)


class PlanningStatus(str, Enum):
    PLANNING = "planning"
    CONFIRMED = "confirmed"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PartyType(str, Enum):
    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"
    HOLIDAY = "holiday"
    CELEBRATION = "celebration"
    GATHERING = "gathering"
    OTHER = "other"


TRIPS_RESOURCE = "trips"
PARTIES_RESOURCE = "parties"


# =============================================================================
# TRIPS
# =============================================================================

class TripDraft(EntityModel):
    title: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    start_date: dt.date
    end_date: dt.date
    budget: Optional[Money] = None
    status: PlanningStatus = PlanningStatus.PLANNING
    description: Optional[str] = Field(default=None, max_length=1000)
    organizer: str = Field(..., min_length=1, max_length=100)

    @model_validator(mode='after')
    def validate_dates(self) -> 'TripDraft':
        if self.end_date < self.start_date:
            raise ValueError("Trip end date cannot be before start date")
        return self


class Trip(RecordMixin, TripDraft):
    """A planned family trip."""


class TripPatch(PatchModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    destination: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    budget: Optional[Money] = None
    status: Optional[PlanningStatus] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    organizer: Optional[str] = Field(default=None, min_length=1, max_length=100)


# =============================================================================
# PARTIES
# =============================================================================

class PartyDraft(EntityModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: PartyType = PartyType.OTHER
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN)
    location: str = Field(..., min_length=1, max_length=200)
    budget: Optional[Money] = None
    guest_count: int = Field(default=0, ge=0)
    status: PlanningStatus = PlanningStatus.PLANNING
    description: Optional[str] = Field(default=None, max_length=1000)
    organizer: str = Field(..., min_length=1, max_length=100)


class Party(RecordMixin, PartyDraft):
    """A planned party or gathering."""


class PartyPatch(PatchModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[PartyType] = None
    date: Optional[dt.date] = None
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    budget: Optional[Money] = None
    guest_count: Optional[int] = Field(default=None, ge=0)
    status: Optional[PlanningStatus] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    organizer: Optional[str] = Field(default=None, min_length=1, max_length=100)
