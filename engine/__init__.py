"""Booking lifecycle and slot allocation engine."""

from typing import Optional

from db import get_repository

from .events import EventBus
from .locks import KeyedLock
from .policy import PolicyEngine, PolicyOperation
from .service import BookingService
from .state_machine import TRANSITIONS, BookingStateMachine
from .tokens import TokenOperation, generate_booking_token, token_prefix, validate_booking_token

__all__ = [
    "BookingService",
    "BookingStateMachine",
    "EventBus",
    "KeyedLock",
    "PolicyEngine",
    "PolicyOperation",
    "TRANSITIONS",
    "TokenOperation",
    "generate_booking_token",
    "get_booking_service",
    "token_prefix",
    "validate_booking_token",
]

# Global service instance
_service: Optional[BookingService] = None


def get_booking_service() -> BookingService:
    """Get or create the booking service over the configured repository."""
    global _service
    if _service is None:
        _service = BookingService(get_repository())
    return _service
