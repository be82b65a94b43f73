"""
In-memory repository.

Used for tests and single-process deployments. Reads hand out copies, and
every mutation validates first and writes last without awaiting in between,
so a concurrent reader never sees a booking without its audit entry.
"""

import itertools
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from models.audit import AuditLogEntry
from models.availability import AvailabilityRule
from models.booking import ACTIVE_STATUSES, Booking, BookingStatus, ResourceKey
from models.venue import Service, VenuePolicy
from utils.exceptions import DatabaseError, SlotConflict
from utils.logging_config import get_logger

from .base import BookingRepository

logger = get_logger(__name__)


def _newest_first(bookings: List[Booking]) -> List[Booking]:
    return sorted(
        bookings, key=lambda b: (b.booking_date, b.start_time, b.id or 0), reverse=True
    )


class InMemoryRepository(BookingRepository):
    """Dictionary-backed implementation of ``BookingRepository``."""

    def __init__(self):
        self._policies: Dict[int, VenuePolicy] = {}
        self._services: Dict[int, Service] = {}
        self._rules: List[AvailabilityRule] = []
        self._staff_services: Dict[int, Set[int]] = {}
        self._inactive_staff: Set[int] = set()
        self._bookings: Dict[int, Booking] = {}
        self._tokens: Dict[str, int] = {}
        self._audit: Dict[int, List[AuditLogEntry]] = {}
        self._booking_ids = itertools.count(1)
        self._audit_ids = itertools.count(1)
        self._rule_ids = itertools.count(1)

    # ========== Seeding ==========

    def add_venue_policy(self, policy: VenuePolicy) -> VenuePolicy:
        self._policies[policy.venue_id] = policy
        return policy

    def add_service(self, service: Service) -> Service:
        self._services[service.id] = service
        return service

    def add_staff_member(
        self, staff_member_id: int, service_ids: Iterable[int], is_active: bool = True
    ) -> None:
        self._staff_services[staff_member_id] = set(service_ids)
        if is_active:
            self._inactive_staff.discard(staff_member_id)
        else:
            self._inactive_staff.add(staff_member_id)

    def add_availability_rule(self, rule: AvailabilityRule) -> AvailabilityRule:
        if rule.id is None:
            rule = rule.model_copy(update={"id": next(self._rule_ids)})
        self._rules.append(rule)
        return rule

    def add_booking(self, booking: Booking) -> Booking:
        """Store a booking as-is, without engine checks or audit (fixtures, imports)."""
        if booking.id is None:
            booking = booking.model_copy(update={"id": next(self._booking_ids)})
        self._bookings[booking.id] = booking
        self._tokens[booking.booking_token] = booking.id
        self._audit.setdefault(booking.id, [])
        return booking.model_copy()

    # ========== Reference Data ==========

    async def get_venue_policy(self, venue_id: int) -> Optional[VenuePolicy]:
        return self._policies.get(venue_id)

    async def get_service(self, service_id: int) -> Optional[Service]:
        return self._services.get(service_id)

    async def list_availability_rules(
        self, venue_id: int, day_of_week: Optional[int] = None
    ) -> List[AvailabilityRule]:
        return [
            rule
            for rule in self._rules
            if rule.venue_id == venue_id
            and (day_of_week is None or rule.day_of_week == day_of_week)
            and rule.is_active
        ]

    async def can_staff_perform_service(self, staff_member_id: int, service_id: int) -> bool:
        if staff_member_id in self._inactive_staff:
            return False
        return service_id in self._staff_services.get(staff_member_id, ())

    # ========== Booking Reads ==========

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy() if booking else None

    async def get_booking_by_token(self, token: str) -> Optional[Booking]:
        booking_id = self._tokens.get(token)
        if booking_id is None:
            return None
        return await self.get_booking(booking_id)

    async def list_resource_bookings(
        self,
        resource: ResourceKey,
        day: date,
        statuses: Iterable[BookingStatus] = ACTIVE_STATUSES,
    ) -> List[Booking]:
        wanted = set(statuses)
        rows = [
            b.model_copy()
            for b in self._bookings.values()
            if b.resource == resource and b.booking_date == day and b.status in wanted
        ]
        return sorted(rows, key=lambda b: (b.start_time, b.id))

    async def list_venue_bookings(
        self,
        venue_id: int,
        day: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        rows = []
        for b in self._bookings.values():
            if b.venue_id != venue_id:
                continue
            if day is not None and b.booking_date != day:
                continue
            if start_date is not None and b.booking_date < start_date:
                continue
            if end_date is not None and b.booking_date > end_date:
                continue
            if status is not None and b.status != status:
                continue
            rows.append(b.model_copy())
        return _newest_first(rows)

    async def list_customer_bookings(
        self, customer_email: str, from_date: Optional[date] = None
    ) -> List[Booking]:
        email = customer_email.strip().lower()
        rows = [
            b.model_copy()
            for b in self._bookings.values()
            if b.customer_email.lower() == email
            and (from_date is None or b.booking_date >= from_date)
        ]
        return _newest_first(rows)

    # ========== Mutations ==========

    async def insert_booking(self, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        if booking.booking_token in self._tokens:
            raise DatabaseError("Duplicate booking token")
        self._assert_no_overlap(booking)

        booking_id = next(self._booking_ids)
        stored = booking.model_copy(update={"id": booking_id})
        entry = self._stamp_entry(audit_entry, booking_id)

        self._bookings[booking_id] = stored
        self._tokens[stored.booking_token] = booking_id
        self._audit[booking_id] = [entry]
        logger.debug(f"Inserted booking {booking_id}")
        return stored.model_copy()

    async def update_booking(self, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        if booking.id is None or booking.id not in self._bookings:
            raise DatabaseError(f"Cannot update unknown booking {booking.id}")
        if self._bookings[booking.id].booking_token != booking.booking_token:
            raise DatabaseError("Booking token is immutable")
        self._assert_no_overlap(booking)

        entry = self._stamp_entry(audit_entry, booking.id)

        self._bookings[booking.id] = booking.model_copy()
        self._audit[booking.id].append(entry)
        logger.debug(f"Updated booking {booking.id}")
        return booking.model_copy()

    async def append_audit_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        if entry.booking_id not in self._bookings:
            raise DatabaseError(f"Cannot audit unknown booking {entry.booking_id}")
        stamped = self._stamp_entry(entry, entry.booking_id)
        self._audit[entry.booking_id].append(stamped)
        return stamped

    async def list_audit_entries(self, booking_id: int) -> List[AuditLogEntry]:
        entries = self._audit.get(booking_id, [])
        return sorted(entries, key=lambda e: (e.created_at, e.id))

    async def erase_booking(self, booking_id: int) -> bool:
        booking = self._bookings.pop(booking_id, None)
        if booking is None:
            return False
        self._tokens.pop(booking.booking_token, None)
        self._audit.pop(booking_id, None)
        return True

    # ========== Helpers ==========

    def _stamp_entry(self, entry: AuditLogEntry, booking_id: int) -> AuditLogEntry:
        if entry.booking_id is not None and entry.booking_id != booking_id:
            raise DatabaseError(
                f"Audit entry belongs to booking {entry.booking_id}, not {booking_id}"
            )
        return entry.model_copy(update={"id": next(self._audit_ids), "booking_id": booking_id})

    def _assert_no_overlap(self, booking: Booking) -> None:
        """Storage-level guard equivalent to the exclusion constraint of the SQL schema."""
        if not booking.is_active:
            return
        for other in self._bookings.values():
            if other.id == booking.id or not other.is_active:
                continue
            if other.resource != booking.resource or other.booking_date != booking.booking_date:
                continue
            if booking.start_minutes < other.end_minutes and other.start_minutes < booking.end_minutes:
                raise SlotConflict(
                    "Time slot already booked",
                    details={"conflicting_booking_id": other.id},
                )
