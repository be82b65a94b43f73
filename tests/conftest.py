"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import MagicMock

import pytest

from engine.service import BookingService
from models.actor import AdminActor, CustomerActor
from tests.helpers import NOW, seed_repository


@pytest.fixture
def now():
    """Fixed evaluation instant (Monday 08:00 venue time)."""
    return NOW


@pytest.fixture
def repository():
    return seed_repository()


@pytest.fixture
def booking_service(repository):
    """Booking service over the seeded in-memory repository, 30 minute grid."""
    return BookingService(repository, granularity_minutes=30, lock_timeout=0.5)


@pytest.fixture
def customer():
    return CustomerActor(customer_id=42, identifier="anna@example.com")


@pytest.fixture
def admin():
    return AdminActor(admin_id=1, name="Maria Keller")


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table
