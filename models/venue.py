"""Venue-side inputs of the engine: booking policy and service catalog entries."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VenuePolicy(BaseModel):
    """Time-based business rules configured per venue (read-only to the engine)."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "venue_id": 1,
                "booking_advance_days": 30,
                "booking_advance_hours": 48,
                "cancellation_hours": 24,
                "auto_confirm": False,
            }
        },
    )

    venue_id: int
    booking_advance_days: int = Field(default=30, ge=0, description="Maximum horizon in days")
    booking_advance_hours: int = Field(default=48, ge=0, description="Minimum lead time in hours")
    cancellation_hours: int = Field(default=24, ge=0, description="Cancellation cutoff in hours")
    auto_confirm: bool = False


class Service(BaseModel):
    """Bookable service offered by a venue."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 2,
                "venue_id": 1,
                "name": "Haircut & Styling",
                "duration_minutes": 30,
                "capacity": 1,
                "requires_staff": True,
            }
        }
    )

    id: int
    venue_id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(..., ge=5, le=720, description="Duration in minutes")
    capacity: int = Field(default=1, ge=1, description="Largest party one booking may bring")
    requires_staff: bool = False
    is_active: bool = True
