"""
Unit tests for booking tokens, the audit log and domain events.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from engine.audit_log import AuditLog
from engine.events import EventBus
from engine.tokens import (
    TokenOperation,
    generate_booking_token,
    resolve_capability,
    token_prefix,
    validate_booking_token,
)
from models.actor import AdminActor
from models.audit import AuditAction
from models.booking import BookingStatus
from models.events import BookingEvent, BookingEventType
from tests.helpers import NOW, make_booking
from utils.exceptions import DatabaseError, NotFoundError, ValidationError


class TestTokens:
    def test_generated_tokens_are_unique_and_valid(self):
        tokens = {generate_booking_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(validate_booking_token(t) for t in tokens)

    def test_token_length_follows_entropy(self):
        assert len(generate_booking_token(16)) == 22
        assert len(generate_booking_token(32)) == 43

    @pytest.mark.parametrize("token", ["", "short", "has spaces in it and more", None, "a" * 200])
    def test_invalid_tokens(self, token):
        assert not validate_booking_token(token)

    def test_prefix_hides_token(self):
        token = generate_booking_token()
        assert token_prefix(token) == token[:8] + "..."

    @pytest.mark.asyncio
    async def test_resolve_capability(self, repository):
        booking = repository.add_booking(make_booking())

        resolved = await resolve_capability(
            repository, booking.booking_token, TokenOperation.CANCEL
        )

        assert resolved.id == booking.id

    @pytest.mark.asyncio
    async def test_resolve_rejects_ungranted_operation(self, repository):
        booking = repository.add_booking(make_booking())

        with pytest.raises(ValidationError) as exc_info:
            await resolve_capability(repository, booking.booking_token, "erase")

        assert exc_info.value.code == "not_permitted"

    @pytest.mark.asyncio
    async def test_resolve_malformed_token(self, repository):
        with pytest.raises(ValidationError) as exc_info:
            await resolve_capability(repository, "not a token", TokenOperation.READ)
        assert exc_info.value.code == "invalid_token"

    @pytest.mark.asyncio
    async def test_resolve_unknown_token(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            await resolve_capability(repository, generate_booking_token(), TokenOperation.READ)
        assert exc_info.value.code == "booking_not_found"


class TestAuditLog:
    @pytest.mark.asyncio
    async def test_append_standalone_entry(self, repository):
        booking = repository.add_booking(make_booking())
        audit_log = AuditLog(repository)
        admin = AdminActor(admin_id=1, role="owner")

        entry = await audit_log.append(
            booking.id,
            AuditAction.UPDATE,
            admin,
            old_status=BookingStatus.CONFIRMED,
            new_status=BookingStatus.CONFIRMED,
            reason="Called customer to confirm allergies",
            now=NOW,
        )

        assert entry.id is not None
        assert entry.actor_type == "owner"
        assert entry.actor_label == "Venue owner #1"
        assert await audit_log.list_for_booking(booking.id) == [entry]

    @pytest.mark.asyncio
    async def test_append_to_unknown_booking(self, repository):
        with pytest.raises(DatabaseError):
            await AuditLog(repository).append(999, AuditAction.UPDATE, AdminActor(admin_id=1))


class TestEventBus:
    def _event(self):
        return BookingEvent(
            type=BookingEventType.CREATED,
            booking=make_booking(id=1),
            actor_label="System",
            occurred_at=NOW,
        )

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self):
        bus = EventBus()
        sync_handler = MagicMock()
        async_handler = AsyncMock()
        wildcard = MagicMock()
        bus.subscribe(sync_handler, BookingEventType.CREATED)
        bus.subscribe(async_handler, BookingEventType.CREATED)
        bus.subscribe(wildcard)
        other = MagicMock()
        bus.subscribe(other, BookingEventType.CANCELLED)

        event = self._event()
        await bus.publish(event)

        sync_handler.assert_called_once_with(event)
        async_handler.assert_awaited_once_with(event)
        wildcard.assert_called_once_with(event)
        other.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        failing = MagicMock(side_effect=RuntimeError("smtp down"))
        healthy = MagicMock()
        bus.subscribe(failing, BookingEventType.CREATED)
        bus.subscribe(healthy, BookingEventType.CREATED)

        await bus.publish(self._event())

        healthy.assert_called_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        handler = MagicMock()
        bus.subscribe(handler, BookingEventType.CREATED)
        bus.unsubscribe(handler, BookingEventType.CREATED)

        await bus.publish(self._event())

        handler.assert_not_called()
