"""
Shared test data: a fixed clock and one seeded venue.

Venue 1 is open Monday-Saturday 09:00-18:00 and closed on Sundays. Staff
member 7 works only on Tuesdays 10:00-14:00 and only does haircuts; staff
member 9 has left the venue.
"""

from datetime import date, datetime, time

from db.memory import InMemoryRepository
from engine.tokens import generate_booking_token
from models.availability import AvailabilityRule
from models.booking import Booking, BookingCreate, BookingStatus
from models.venue import Service, VenuePolicy

VENUE_ID = 1
OTHER_VENUE_ID = 2
STAFF_ID = 7
FORMER_STAFF_ID = 9

HAIRCUT_ID = 1  # 30 minutes, parties of up to 2
COLORING_ID = 2  # 90 minutes, one person
RETIRED_SERVICE_ID = 3

# Monday 2026-11-02, 08:00 venue time
NOW = datetime(2026, 11, 2, 8, 0)
MONDAY = date(2026, 11, 2)
TUESDAY = date(2026, 11, 3)
SUNDAY = date(2026, 11, 8)


def seed_repository() -> InMemoryRepository:
    repo = InMemoryRepository()
    repo.add_venue_policy(
        VenuePolicy(
            venue_id=VENUE_ID,
            booking_advance_days=30,
            booking_advance_hours=2,
            cancellation_hours=24,
        )
    )
    repo.add_service(
        Service(id=HAIRCUT_ID, venue_id=VENUE_ID, name="Haircut", duration_minutes=30, capacity=2)
    )
    repo.add_service(
        Service(id=COLORING_ID, venue_id=VENUE_ID, name="Coloring", duration_minutes=90)
    )
    repo.add_service(
        Service(
            id=RETIRED_SERVICE_ID,
            venue_id=VENUE_ID,
            name="Perm",
            duration_minutes=60,
            is_active=False,
        )
    )
    repo.add_staff_member(STAFF_ID, [HAIRCUT_ID])
    repo.add_staff_member(FORMER_STAFF_ID, [HAIRCUT_ID, COLORING_ID], is_active=False)
    for weekday in range(1, 7):
        repo.add_availability_rule(
            AvailabilityRule(
                venue_id=VENUE_ID,
                day_of_week=weekday,
                start_time=time(9, 0),
                end_time=time(18, 0),
            )
        )
    repo.add_availability_rule(
        AvailabilityRule(
            venue_id=VENUE_ID,
            staff_member_id=STAFF_ID,
            day_of_week=2,
            start_time=time(10, 0),
            end_time=time(14, 0),
        )
    )
    return repo


def make_request(**overrides) -> BookingCreate:
    data = dict(
        venue_id=VENUE_ID,
        service_id=HAIRCUT_ID,
        booking_date=TUESDAY,
        start_time=time(10, 0),
        customer_id=42,
        customer_name="Anna Schmidt",
        customer_email="anna@example.com",
        customer_phone="+49 30 1234567",
    )
    data.update(overrides)
    return BookingCreate(**data)


def make_booking(**overrides) -> Booking:
    """Booking as stored, for seeding the repository directly."""
    data = dict(
        booking_token=generate_booking_token(),
        venue_id=VENUE_ID,
        service_id=HAIRCUT_ID,
        booking_date=TUESDAY,
        start_time=time(10, 0),
        end_time=time(10, 30),
        customer_name="Anna Schmidt",
        customer_email="anna@example.com",
        status=BookingStatus.CONFIRMED,
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return Booking(**data)
