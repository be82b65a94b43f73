"""
Custom exception classes for the booking engine.
Provides specific error types instead of generic exceptions, so callers can
render a precise message ("too soon", "already booked", "reason required")
instead of one generic failure.
"""

from typing import Any, Dict, Optional


class BookingEngineError(Exception):
    """Base exception for all booking engine errors."""

    default_code = "booking_error"
    retryable = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Machine-readable representation for the calling layer."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class ValidationError(BookingEngineError):
    """Raised when input validation fails (missing reason, invalid enum, bad interval)."""

    default_code = "invalid_field"


class TemporalPolicyViolation(BookingEngineError):
    """Raised when a venue's time-based booking rules reject the operation."""

    default_code = "temporal_policy"


class IllegalTransition(BookingEngineError):
    """Raised when the state machine rejects the requested status change."""

    default_code = "illegal_transition"


class SlotConflict(BookingEngineError):
    """Raised when the requested interval is already taken at commit time."""

    default_code = "slot_unavailable"


class NotFoundError(BookingEngineError):
    """Raised when a booking, venue or service is unknown."""

    default_code = "not_found"


class PermissionDeniedError(BookingEngineError):
    """Raised when a privileged operation is attempted by a non-admin actor."""

    default_code = "forbidden"


class ContentionError(BookingEngineError):
    """Raised when a resource or booking lock could not be acquired in time. Safe to retry."""

    default_code = "lock_timeout"
    retryable = True


class TransientFailure(ContentionError):
    """Raised when contention persisted through every retry attempt."""

    default_code = "contention_exhausted"
    retryable = False


class DatabaseError(Exception):
    """Base exception for persistence backend operations."""

    pass
