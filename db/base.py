"""
Abstract persistence interface consumed by the booking engine.

Every mutation method writes the booking row and its audit entry as one
unit: either both are stored or neither is.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional

from models.audit import AuditLogEntry
from models.availability import AvailabilityRule
from models.booking import ACTIVE_STATUSES, Booking, BookingStatus, ResourceKey
from models.venue import Service, VenuePolicy


class BookingRepository(ABC):
    """Storage for bookings, audit entries and venue reference data."""

    # ========== Reference Data ==========

    @abstractmethod
    async def get_venue_policy(self, venue_id: int) -> Optional[VenuePolicy]:
        """Booking policy of a venue, or None if the venue is unknown or inactive."""

    @abstractmethod
    async def get_service(self, service_id: int) -> Optional[Service]:
        """Service by id, or None if unknown."""

    @abstractmethod
    async def list_availability_rules(
        self, venue_id: int, day_of_week: Optional[int] = None
    ) -> List[AvailabilityRule]:
        """Active rules of a venue (venue-wide and staff-specific), optionally for one weekday."""

    @abstractmethod
    async def can_staff_perform_service(self, staff_member_id: int, service_id: int) -> bool:
        """Whether an active staff member is assigned to a service."""

    # ========== Booking Reads ==========

    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_booking_by_token(self, token: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def list_resource_bookings(
        self,
        resource: ResourceKey,
        day: date,
        statuses: Iterable[BookingStatus] = ACTIVE_STATUSES,
    ) -> List[Booking]:
        """Bookings of one resource on one date whose status is in ``statuses``."""

    @abstractmethod
    async def list_venue_bookings(
        self,
        venue_id: int,
        day: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """Bookings of a venue, newest date/time first."""

    @abstractmethod
    async def list_customer_bookings(
        self, customer_email: str, from_date: Optional[date] = None
    ) -> List[Booking]:
        """Bookings made with an e-mail address, newest date/time first."""

    # ========== Mutations ==========

    @abstractmethod
    async def insert_booking(self, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        """Store a new booking with its creation audit entry; returns it with an id."""

    @abstractmethod
    async def update_booking(self, booking: Booking, audit_entry: AuditLogEntry) -> Booking:
        """Replace a stored booking and append its audit entry."""

    @abstractmethod
    async def append_audit_entry(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Append a standalone audit entry; returns it with id and timestamp."""

    @abstractmethod
    async def list_audit_entries(self, booking_id: int) -> List[AuditLogEntry]:
        """Audit entries of a booking, oldest first."""

    @abstractmethod
    async def erase_booking(self, booking_id: int) -> bool:
        """Physically remove a booking and its audit entries. True if something was removed."""
