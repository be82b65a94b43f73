"""Domain events emitted after a booking mutation is committed."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .booking import Booking, BookingStatus


class BookingEventType(str, Enum):
    CREATED = "booking.created"
    STATUS_CHANGED = "booking.status_changed"
    CANCELLED = "booking.cancelled"
    COMPLETED = "booking.completed"
    RESCHEDULED = "booking.rescheduled"


class BookingEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: BookingEventType
    booking: Booking
    old_status: Optional[BookingStatus] = None
    actor_label: str
    reason: Optional[str] = None
    occurred_at: datetime
