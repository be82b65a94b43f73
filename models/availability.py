"""Availability models: recurring opening windows and the slots derived from them."""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from utils.datetime_utils import format_hhmm, minutes_to_time, time_to_minutes


class AvailabilityRule(BaseModel):
    """Venue- or staff-scoped recurring opening window for one weekday."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "venue_id": 1,
                "staff_member_id": None,
                "day_of_week": 1,
                "start_time": "09:00",
                "end_time": "18:00",
                "is_active": True,
            }
        }
    )

    id: Optional[int] = None
    venue_id: int
    staff_member_id: Optional[int] = None
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time
    is_active: bool = True

    @model_validator(mode="after")
    def _check_window(self) -> "AvailabilityRule":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class TimeInterval(BaseModel):
    """Half-open ``[start, end)`` interval in minutes since midnight."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0, le=24 * 60)
    end: int = Field(..., ge=0, le=24 * 60)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeInterval":
        if self.start >= self.end:
            raise ValueError("interval start must be before end")
        return self

    @classmethod
    def from_times(cls, start: time, end: time) -> "TimeInterval":
        return cls(start=time_to_minutes(start), end=time_to_minutes(end))

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        end = "24:00" if self.end == 24 * 60 else format_hhmm(minutes_to_time(self.end))
        return f"{format_hhmm(minutes_to_time(self.start))}-{end}"


class SlotCandidate(BaseModel):
    """One candidate start time of a day, flagged available or not."""

    start_time: time
    end_time: time
    available: bool = True

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)


class DayAvailability(BaseModel):
    """All candidate slots of one day for one resource and service."""

    day: date
    day_of_week: int
    time_slots: List[SlotCandidate] = Field(default_factory=list)

    @property
    def available_count(self) -> int:
        return sum(1 for slot in self.time_slots if slot.available)
