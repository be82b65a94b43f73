"""Booking models: a reservation of one resource for one wall-clock interval."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from utils.datetime_utils import combine, time_to_minutes


class BookingStatus(str, Enum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Only these statuses hold a slot and take part in conflict checks.
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class ResourceKey(BaseModel):
    """The reservable resource: a staff member, or the venue itself when no staff is set."""

    model_config = ConfigDict(frozen=True)

    venue_id: int
    staff_member_id: Optional[int] = None

    def __str__(self) -> str:
        if self.staff_member_id is None:
            return f"venue:{self.venue_id}"
        return f"venue:{self.venue_id}/staff:{self.staff_member_id}"


class Booking(BaseModel):
    """Booking record as stored and returned to collaborators."""

    id: Optional[int] = None
    booking_token: str = Field(..., min_length=16)
    venue_id: int
    staff_member_id: Optional[int] = None
    service_id: int
    booking_date: date
    start_time: time
    end_time: time
    party_size: int = Field(default=1, ge=1)
    customer_id: Optional[int] = None
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    special_requests: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "booking_token": "q3Zt0cXbC1m5h6Yf0s2r9uJkLwE4vNaP8dGiTy7oB1U",
                "venue_id": 1,
                "staff_member_id": 4,
                "service_id": 2,
                "booking_date": "2026-11-02",
                "start_time": "10:00",
                "end_time": "10:30",
                "party_size": 1,
                "customer_name": "Anna Schmidt",
                "customer_email": "anna@example.com",
                "status": "pending",
            }
        }
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "Booking":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if self.cancellation_reason and self.status != BookingStatus.CANCELLED:
            raise ValueError("cancellation_reason is only allowed on cancelled bookings")
        return self

    @property
    def resource(self) -> ResourceKey:
        return ResourceKey(venue_id=self.venue_id, staff_member_id=self.staff_member_id)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def starts_at(self) -> datetime:
        return combine(self.booking_date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return combine(self.booking_date, self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class BookingCreate(BaseModel):
    """Booking request as received from the calling layer.

    Field constraints are checked by the engine, not here, so that a bad
    party size or e-mail surfaces as an engine ``ValidationError`` with a
    reason code.
    """

    venue_id: int
    service_id: int
    staff_member_id: Optional[int] = None
    booking_date: date
    start_time: time
    party_size: int = 1
    customer_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    special_requests: Optional[str] = None

    @property
    def resource(self) -> ResourceKey:
        return ResourceKey(venue_id=self.venue_id, staff_member_id=self.staff_member_id)
