"""
Booking lifecycle state machine.

Legal transitions::

    pending   -> confirmed, cancelled
    confirmed -> cancelled, completed, no_show
    cancelled -> pending, confirmed        (admins only)
    completed, no_show                     (terminal)

Every transition except pending -> confirmed needs a non-empty reason.
A cancelled booking that has already ended cannot be reopened.
"""

from datetime import datetime
from typing import Dict, FrozenSet, Optional, Union

from pydantic import BaseModel

from models.actor import is_admin
from models.audit import AuditAction, AuditLogEntry
from models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from utils.exceptions import IllegalTransition, TemporalPolicyViolation, ValidationError
from utils.validation import normalize_reason

from .audit_log import build_entry

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CANCELLED: frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

REASON_OPTIONAL = frozenset({(BookingStatus.PENDING, BookingStatus.CONFIRMED)})

ADMIN_ONLY_SOURCES = frozenset({BookingStatus.CANCELLED})

# Outcomes that can only be recorded once the appointment is over
REQUIRES_ELAPSED = frozenset({BookingStatus.COMPLETED, BookingStatus.NO_SHOW})


def parse_status(value: Union[str, BookingStatus]) -> BookingStatus:
    """
    Raises:
        ValidationError: If ``value`` is not a known status
    """
    try:
        return BookingStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise ValidationError(
            f"Invalid status {value!r}. Allowed: {allowed}",
            code="invalid_status",
            details={"status": str(value)},
        )


def can_transition(source: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[source]


def is_terminal(status: BookingStatus) -> bool:
    return not TRANSITIONS[status]


def requires_reason(source: BookingStatus, target: BookingStatus) -> bool:
    return (source, target) not in REASON_OPTIONAL


class TransitionPlan(BaseModel):
    """A validated transition: the booking after it and the entry recording it."""

    booking: Booking
    audit_entry: AuditLogEntry
    old_status: BookingStatus
    new_status: BookingStatus
    reason: Optional[str] = None

    @property
    def reactivates(self) -> bool:
        """Whether the booking takes a slot again (leaves cancelled)."""
        return self.old_status not in ACTIVE_STATUSES and self.new_status in ACTIVE_STATUSES


class BookingStateMachine:
    """Validates transitions and computes their effect. Never writes anything."""

    def plan(
        self,
        booking: Booking,
        target: Union[str, BookingStatus],
        actor,
        reason: Optional[str],
        now: datetime,
    ) -> TransitionPlan:
        """
        Check a transition and build the updated booking plus its audit entry.

        Raises:
            ValidationError: Unknown target status or missing reason
            IllegalTransition: Transition not in the table, or reopening by a non-admin
            TemporalPolicyViolation: Outcome recorded too early, or reopening a past booking
        """
        target = parse_status(target)
        source = booking.status

        if not can_transition(source, target):
            raise IllegalTransition(
                f"Cannot change status from {source.value} to {target.value}",
                details={"from": source.value, "to": target.value},
            )

        if source in ADMIN_ONLY_SOURCES and not is_admin(actor):
            raise IllegalTransition(
                f"Only an administrator can reopen a {source.value} booking",
                code="admin_only",
                details={"from": source.value, "to": target.value},
            )

        reason = normalize_reason(reason)
        if reason is None and requires_reason(source, target):
            raise ValidationError(
                f"A reason is required to change status from {source.value} to {target.value}",
                code="reason_required",
                details={"from": source.value, "to": target.value},
            )

        if target in REQUIRES_ELAPSED and booking.ends_at > now:
            raise TemporalPolicyViolation(
                f"Cannot mark booking as {target.value} before it has ended",
                code="appointment_not_elapsed",
                details={"ends_at": booking.ends_at.isoformat()},
            )

        if source in ADMIN_ONLY_SOURCES and booking.ends_at < now:
            raise TemporalPolicyViolation(
                f"Cannot reopen a past booking as {target.value}",
                code="booking_in_past",
                details={"ends_at": booking.ends_at.isoformat()},
            )

        updates = {"status": target, "updated_at": now}
        if target == BookingStatus.CANCELLED:
            updates.update(cancellation_reason=reason, cancelled_at=now)
        elif source == BookingStatus.CANCELLED:
            updates.update(cancellation_reason=None, cancelled_at=None)

        action = (
            AuditAction.CANCEL if target == BookingStatus.CANCELLED else AuditAction.STATUS_CHANGE
        )
        entry = build_entry(booking.id, action, actor, now, source, target, reason)

        return TransitionPlan(
            booking=booking.model_copy(update=updates),
            audit_entry=entry,
            old_status=source,
            new_status=target,
            reason=reason,
        )
