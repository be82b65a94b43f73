"""
Conflict detection and slot availability.

Two bookings conflict when they hold the same resource on the same date and
their half-open intervals overlap. Only pending and confirmed bookings hold
a slot.
"""

from datetime import date
from typing import Iterable, List, Optional

from db.base import BookingRepository
from models.availability import SlotCandidate, TimeInterval
from models.booking import ACTIVE_STATUSES, Booking, ResourceKey
from utils.datetime_utils import minutes_to_time
from utils.logging_config import get_logger

from .opening_hours import OpeningHoursResolver
from .slot_grid import generate_start_times

logger = get_logger(__name__)


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap: back-to-back intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def find_conflict(
    interval: TimeInterval,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[int] = None,
) -> Optional[Booking]:
    """First active booking overlapping ``interval``, ignoring ``exclude_booking_id``."""
    for booking in bookings:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if booking.status not in ACTIVE_STATUSES:
            continue
        if overlaps(interval.start, interval.end, booking.start_minutes, booking.end_minutes):
            return booking
    return None


class ConflictChecker:
    """Answers availability questions against committed bookings."""

    def __init__(self, repository: BookingRepository, resolver: OpeningHoursResolver):
        self.repository = repository
        self.resolver = resolver

    async def find_conflicting_booking(
        self,
        resource: ResourceKey,
        day: date,
        interval: TimeInterval,
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[Booking]:
        bookings = await self.repository.list_resource_bookings(resource, day)
        return find_conflict(interval, bookings, exclude_booking_id)

    async def is_available(
        self,
        resource: ResourceKey,
        day: date,
        interval: TimeInterval,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """True iff no active booking of ``resource`` on ``day`` overlaps ``interval``."""
        conflict = await self.find_conflicting_booking(
            resource, day, interval, exclude_booking_id
        )
        return conflict is None

    async def list_available_slots(
        self,
        resource: ResourceKey,
        day: date,
        duration_minutes: int,
        granularity_minutes: int,
        exclude_booking_id: Optional[int] = None,
    ) -> List[SlotCandidate]:
        """
        All grid candidates of the day, each flagged available or taken.

        Returns an empty list when the resource is closed. The same inputs
        against the same committed bookings always yield the same list.
        """
        intervals = await self.resolver.resolve(resource, day)
        if not intervals:
            return []

        bookings = await self.repository.list_resource_bookings(resource, day)
        candidates = []
        for start in generate_start_times(intervals, duration_minutes, granularity_minutes):
            end = start + duration_minutes
            candidate = TimeInterval(start=start, end=end)
            taken = find_conflict(candidate, bookings, exclude_booking_id) is not None
            candidates.append(
                SlotCandidate(
                    start_time=minutes_to_time(start),
                    end_time=minutes_to_time(end),
                    available=not taken,
                )
            )
        return candidates
