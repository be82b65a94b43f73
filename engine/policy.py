"""
Temporal policy engine.

Applies a venue's time-based business rules (minimum lead time, maximum
booking horizon, cancellation cutoff) to an operation at a given moment.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from models.actor import is_admin
from models.booking import Booking
from models.venue import VenuePolicy
from utils.datetime_utils import hours_between
from utils.exceptions import TemporalPolicyViolation
from utils.logging_config import get_logger

logger = get_logger(__name__)


class PolicyOperation(str, Enum):
    CREATE = "create"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"


def check_lead_time(
    policy: VenuePolicy, start: datetime, now: datetime, min_hours: Optional[int] = None
) -> None:
    """Reject starts closer than ``booking_advance_hours`` to now (past starts included)."""
    hours = policy.booking_advance_hours if min_hours is None else min_hours
    if start - now < timedelta(hours=hours):
        raise TemporalPolicyViolation(
            f"Bookings must be made at least {hours} hours in advance",
            code="too_soon",
            details={
                "booking_advance_hours": hours,
                "hours_until_start": round(hours_between(now, start), 2),
            },
        )


def check_horizon(policy: VenuePolicy, day: date, now: datetime) -> None:
    """Reject dates more than ``booking_advance_days`` calendar days ahead (0 = today only)."""
    last_day = now.date() + timedelta(days=policy.booking_advance_days)
    if day > last_day:
        raise TemporalPolicyViolation(
            f"Bookings can be made at most {policy.booking_advance_days} days in advance",
            code="too_far_out",
            details={
                "booking_advance_days": policy.booking_advance_days,
                "last_bookable_date": last_day.isoformat(),
            },
        )


def check_cancellation_window(policy: VenuePolicy, booking: Booking, now: datetime) -> None:
    """Reject changes to a booking that starts within ``cancellation_hours``."""
    if booking.starts_at - now < timedelta(hours=policy.cancellation_hours):
        raise TemporalPolicyViolation(
            f"Bookings can only be changed up to {policy.cancellation_hours} hours before the start",
            code="past_cancellation_cutoff",
            details={
                "cancellation_hours": policy.cancellation_hours,
                "hours_until_start": round(hours_between(now, booking.starts_at), 2),
            },
        )


class PolicyEngine:
    """
    Evaluates venue policy for create, reschedule and cancel operations.

    Admin actors skip the cancellation cutoff and may book up to the present
    moment when ``admin_bypass`` is set. The booking horizon applies to everyone.
    """

    def __init__(self, admin_bypass: bool = True):
        self.admin_bypass = admin_bypass

    def _bypasses(self, actor) -> bool:
        return self.admin_bypass and actor is not None and is_admin(actor)

    def check_eligibility(
        self,
        operation: PolicyOperation,
        policy: VenuePolicy,
        now: datetime,
        *,
        booking: Optional[Booking] = None,
        requested_start: Optional[datetime] = None,
        actor=None,
    ) -> None:
        """
        Raise ``TemporalPolicyViolation`` if ``operation`` is not allowed at ``now``.

        Args:
            operation: What is being attempted
            policy: The venue's policy
            now: Evaluation instant, venue-local
            booking: The existing booking (reschedule, cancel)
            requested_start: The new start (create, reschedule)
            actor: Who is asking

        Raises:
            ValueError: If the arguments needed by ``operation`` are missing
            TemporalPolicyViolation: If a rule rejects the operation
        """
        bypass = self._bypasses(actor)

        if operation in (PolicyOperation.RESCHEDULE, PolicyOperation.CANCEL):
            if booking is None:
                raise ValueError(f"{operation.value} requires the existing booking")
            if not bypass:
                check_cancellation_window(policy, booking, now)

        if operation in (PolicyOperation.CREATE, PolicyOperation.RESCHEDULE):
            if requested_start is None:
                raise ValueError(f"{operation.value} requires the requested start")
            check_lead_time(policy, requested_start, now, min_hours=0 if bypass else None)
            check_horizon(policy, requested_start.date(), now)

    def is_bookable(
        self, policy: VenuePolicy, requested_start: datetime, now: datetime, actor=None
    ) -> bool:
        """Whether a new booking could start at ``requested_start``."""
        try:
            self.check_eligibility(
                PolicyOperation.CREATE, policy, now, requested_start=requested_start, actor=actor
            )
        except TemporalPolicyViolation:
            return False
        return True
