"""
Booking tokens: unguessable capability strings issued at creation.

Presenting a token authorizes a fixed set of operations on exactly one
booking, without customer authentication.
"""

import re
import secrets
from enum import Enum
from typing import Optional

from config import settings
from db.base import BookingRepository
from models.booking import Booking
from utils.constants import TOKEN_PREFIX_LENGTH
from utils.exceptions import NotFoundError, ValidationError
from utils.logging_config import get_logger

logger = get_logger(__name__)

# token_urlsafe(16) yields 22 characters
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{22,128}$")


class TokenOperation(str, Enum):
    READ = "read"
    UPDATE_NOTE = "update_note"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


TOKEN_GRANTS = frozenset(TokenOperation)


def generate_booking_token(nbytes: Optional[int] = None) -> str:
    """URL-safe token with ``nbytes`` bytes of randomness (settings.booking_token_bytes)."""
    return secrets.token_urlsafe(nbytes or settings.booking_token_bytes)


def validate_booking_token(token: str) -> bool:
    if not token or not isinstance(token, str):
        return False
    return bool(_TOKEN_RE.match(token))


def token_prefix(token: str) -> str:
    """Loggable prefix; full tokens never go to logs."""
    return f"{token[:TOKEN_PREFIX_LENGTH]}..."


async def resolve_capability(
    repository: BookingRepository, token: str, operation: str
) -> Booking:
    """
    Return the booking a token grants ``operation`` on.

    Raises:
        ValidationError: Malformed token (code invalid_token)
        ValidationError: Tokens do not grant ``operation`` (code not_permitted)
        NotFoundError: No booking carries the token
    """
    if not validate_booking_token(token):
        raise ValidationError("Malformed booking token", code="invalid_token")

    try:
        requested = TokenOperation(operation)
    except ValueError:
        requested = None
    if requested not in TOKEN_GRANTS:
        logger.warning(f"Token {token_prefix(token)} used for ungranted operation {operation!r}")
        raise ValidationError(
            f"Booking tokens do not grant {operation!r}",
            code="not_permitted",
            details={"operation": str(operation)},
        )

    booking = await repository.get_booking_by_token(token)
    if booking is None:
        logger.warning(f"Unknown booking token {token_prefix(token)}")
        raise NotFoundError("Booking not found", code="booking_not_found")
    return booking
