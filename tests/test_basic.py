"""
Basic unit tests for engine components.
"""

from datetime import date, datetime, time, timezone

import pytest

from config import Settings
from db.memory import InMemoryRepository
from engine import get_booking_service
from engine.state_machine import TRANSITIONS, is_terminal
from models.actor import SYSTEM, AdminActor, CustomerActor
from models.availability import AvailabilityRule, TimeInterval
from models.booking import ACTIVE_STATUSES, BookingStatus
from models.venue import Service
from tests.helpers import make_booking
from utils.datetime_utils import (
    day_of_week,
    format_hhmm,
    minutes_to_time,
    parse_hhmm,
    time_to_minutes,
    to_venue_local,
)
from utils.exceptions import ContentionError, SlotConflict, TransientFailure, ValidationError
from utils.logging_config import setup_logging


def test_booking_status_enum():
    """Test booking status enum."""
    assert BookingStatus.PENDING.value == "pending"
    assert BookingStatus.NO_SHOW.value == "no_show"
    assert ACTIVE_STATUSES == {BookingStatus.PENDING, BookingStatus.CONFIRMED}


def test_every_status_has_transitions_entry():
    """Test the transition table covers every status."""
    assert set(TRANSITIONS) == set(BookingStatus)
    assert is_terminal(BookingStatus.COMPLETED)
    assert is_terminal(BookingStatus.NO_SHOW)
    assert not is_terminal(BookingStatus.CANCELLED)


def test_booking_rejects_inverted_interval():
    """Test booking model refuses start >= end."""
    with pytest.raises(ValueError):
        make_booking(start_time=time(11, 0), end_time=time(10, 0))


def test_booking_rejects_cancellation_reason_on_active_booking():
    with pytest.raises(ValueError):
        make_booking(cancellation_reason="changed plans")


def test_booking_resource_and_times():
    booking = make_booking(staff_member_id=7, booking_date=date(2026, 11, 3))
    assert booking.resource.staff_member_id == 7
    assert booking.start_minutes == 600
    assert booking.end_minutes == 630
    assert booking.ends_at.hour == 10 and booking.ends_at.minute == 30
    assert str(booking.resource) == "venue:1/staff:7"


def test_time_interval():
    morning = TimeInterval(start=540, end=720)
    assert morning.contains(TimeInterval(start=600, end=630))
    assert not morning.overlaps(TimeInterval(start=720, end=780))
    assert str(morning) == "09:00-12:00"
    with pytest.raises(ValueError):
        TimeInterval(start=600, end=600)


def test_actor_labels():
    assert CustomerActor(identifier="anna@example.com").label == "anna@example.com"
    assert CustomerActor(customer_id=5).label == "Customer #5"
    assert AdminActor(admin_id=3, role="owner").label == "Venue owner #3"
    assert AdminActor(admin_id=3, role="staff").actor_type == "staff"
    assert SYSTEM.label == "System"


def test_error_to_dict():
    error = ValidationError("A reason is required", code="reason_required")
    assert error.to_dict() == {
        "error": "ValidationError",
        "code": "reason_required",
        "message": "A reason is required",
        "details": {},
        "retryable": False,
    }
    assert SlotConflict("taken").code == "slot_unavailable"


def test_contention_retryable_flags():
    assert ContentionError("busy").retryable is True
    assert TransientFailure("still busy").retryable is False
    assert isinstance(TransientFailure("still busy"), ContentionError)


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("REPOSITORY_BACKEND", raising=False)
    settings = Settings(_env_file=None)
    assert settings.slot_granularity_minutes == 15
    assert settings.repository_backend == "memory"
    settings.validate_backend()


def test_settings_require_supabase_credentials():
    settings = Settings(_env_file=None, repository_backend="supabase", supabase_url=None)
    with pytest.raises(ValueError, match="supabase_url"):
        settings.validate_backend()


def test_time_helpers():
    assert parse_hhmm("9:05") == time(9, 5)
    assert format_hhmm(time(9, 5)) == "09:05"
    assert time_to_minutes(time(17, 30)) == 1050
    assert minutes_to_time(1050) == time(17, 30)
    with pytest.raises(ValueError):
        parse_hhmm("24:00")
    with pytest.raises(ValueError):
        minutes_to_time(24 * 60)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2026, 11, 8)) == 0  # Sunday
    assert day_of_week(date(2026, 11, 2)) == 1  # Monday
    assert day_of_week(date(2026, 11, 7)) == 6  # Saturday


def test_to_venue_local():
    aware = datetime(2026, 7, 1, 8, 0, tzinfo=timezone.utc)
    assert to_venue_local(aware, "Europe/Berlin") == datetime(2026, 7, 1, 10, 0)
    naive = datetime(2026, 7, 1, 8, 0)
    assert to_venue_local(naive) is naive


def test_get_booking_service_is_singleton():
    service = get_booking_service()
    assert get_booking_service() is service
    assert isinstance(service.repository, InMemoryRepository)


def test_setup_logging_with_file(tmp_path):
    logger = setup_logging(
        "tests.file_logger", log_level="DEBUG", log_file="engine.log", log_dir=str(tmp_path)
    )
    logger.info("booking created")

    assert (tmp_path / "engine.log").exists()
    assert len(logger.handlers) == 2
    assert setup_logging("tests.file_logger") is logger
    assert len(logger.handlers) == 2


def test_schema_examples_use_config_dict():
    assert AvailabilityRule.model_json_schema()["example"]["day_of_week"] == 1
    assert Service.model_json_schema()["example"]["capacity"] == 1
    assert Service(id=1, venue_id=1, name="Haircut", duration_minutes=30).capacity == 1
