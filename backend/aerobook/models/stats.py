"""
Booking statistics models.

Per-flight and per-airline booking figures, as shown on the airline
operator and administrator report screens.
"""

from datetime import datetime
from decimal import Decimal
from typing import List
from pydantic import BaseModel, Field, ConfigDict


class FlightBookingStatsModel(BaseModel):
    """Booking figures for a single flight."""
    model_config = ConfigDict(from_attributes=True)

    flight_id: int
    flight_code: str
    departure_time: datetime
    capacity: int = Field(..., gt=0)
    confirmed_bookings: int = Field(default=0, ge=0)
    pending_bookings: int = Field(default=0, ge=0)
    cancelled_bookings: int = Field(default=0, ge=0)
    available_seats: int = Field(..., ge=0)
    occupancy_rate: float = Field(..., ge=0.0, le=100.0, description="Confirmed / capacity, percent")
    revenue: Decimal = Field(default=Decimal("0.00"), ge=0, description="Confirmed and paid amounts")


class OwnerBookingSummaryModel(BaseModel):
    """Booking figures across every flight of one airline."""
    model_config = ConfigDict(from_attributes=True)

    owner_id: int
    total_flights: int = Field(default=0, ge=0)
    total_bookings: int = Field(default=0, ge=0)
    confirmed_bookings: int = Field(default=0, ge=0)
    pending_bookings: int = Field(default=0, ge=0)
    cancelled_bookings: int = Field(default=0, ge=0)
    total_revenue: Decimal = Field(default=Decimal("0.00"), ge=0)
    flights: List[FlightBookingStatsModel] = Field(default_factory=list)
