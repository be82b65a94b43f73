"""Audit log models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .booking import BookingStatus


class AuditAction(str, Enum):
    """Kind of mutation recorded in the audit log."""

    STATUS_CHANGE = "status_change"
    CANCEL = "cancel"
    UPDATE = "update"


class AuditLogEntry(BaseModel):
    """Immutable record of one mutation to one booking."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    booking_id: Optional[int] = None  # assigned on commit for a booking being created
    action: AuditAction
    old_status: Optional[BookingStatus] = None
    new_status: Optional[BookingStatus] = None
    actor_type: str = Field(..., description="customer, admin, owner, staff or system")
    actor_label: str
    reason: Optional[str] = None
    created_at: datetime
