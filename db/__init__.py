"""Persistence backends for the booking engine."""

from typing import Optional

from config import settings

from .base import BookingRepository
from .memory import InMemoryRepository

__all__ = ["BookingRepository", "InMemoryRepository", "get_repository"]

# Global repository instance
_repository: Optional[BookingRepository] = None


def get_repository() -> BookingRepository:
    """Get or create the repository selected by settings.repository_backend."""
    global _repository
    if _repository is None:
        settings.validate_backend()
        if settings.repository_backend == "supabase":
            from .supabase_client import SupabaseRepository

            _repository = SupabaseRepository()
        else:
            _repository = InMemoryRepository()
    return _repository
