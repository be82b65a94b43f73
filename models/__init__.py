"""Pydantic models for data validation and serialization."""

from .actor import SYSTEM, Actor, AdminActor, CustomerActor, SystemActor, is_admin
from .audit import AuditAction, AuditLogEntry
from .availability import AvailabilityRule, DayAvailability, SlotCandidate, TimeInterval
from .booking import ACTIVE_STATUSES, Booking, BookingCreate, BookingStatus, ResourceKey
from .events import BookingEvent, BookingEventType
from .venue import Service, VenuePolicy

__all__ = [
    "ACTIVE_STATUSES",
    "Actor",
    "AdminActor",
    "AuditAction",
    "AuditLogEntry",
    "AvailabilityRule",
    "Booking",
    "BookingCreate",
    "BookingEvent",
    "BookingEventType",
    "BookingStatus",
    "CustomerActor",
    "DayAvailability",
    "ResourceKey",
    "SYSTEM",
    "Service",
    "SlotCandidate",
    "SystemActor",
    "TimeInterval",
    "VenuePolicy",
    "is_admin",
]
