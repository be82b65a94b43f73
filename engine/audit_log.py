"""Append-only audit trail of booking mutations."""

from datetime import datetime
from typing import List, Optional

from db.base import BookingRepository
from models.audit import AuditAction, AuditLogEntry
from models.booking import BookingStatus
from utils.datetime_utils import venue_now
from utils.logging_config import get_logger

logger = get_logger(__name__)


def build_entry(
    booking_id: Optional[int],
    action: AuditAction,
    actor,
    now: datetime,
    old_status: Optional[BookingStatus] = None,
    new_status: Optional[BookingStatus] = None,
    reason: Optional[str] = None,
) -> AuditLogEntry:
    """Draft an entry to be committed together with its booking change."""
    return AuditLogEntry(
        booking_id=booking_id,
        action=action,
        old_status=old_status,
        new_status=new_status,
        actor_type=actor.actor_type,
        actor_label=actor.label,
        reason=reason,
        created_at=now,
    )


class AuditLog:
    """
    Read and append access to the audit trail.

    Entries tied to a booking change are written by the repository in the
    same commit as the change; ``append`` is for standalone notes.
    """

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def append(
        self,
        booking_id: int,
        action: AuditAction,
        actor,
        old_status: Optional[BookingStatus] = None,
        new_status: Optional[BookingStatus] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AuditLogEntry:
        entry = build_entry(
            booking_id, action, actor, now or venue_now(), old_status, new_status, reason
        )
        stored = await self.repository.append_audit_entry(entry)
        logger.info(f"Audit entry {stored.id} ({action.value}) for booking {booking_id}")
        return stored

    async def list_for_booking(self, booking_id: int) -> List[AuditLogEntry]:
        """Entries of one booking, oldest first."""
        return await self.repository.list_audit_entries(booking_id)
