"""
Booking models for the booking engine.

A booking freezes the flight's schedule, route and fare at creation time.
Only the two status fields ever change afterwards, and they change by the
store handing back a new model rather than by mutation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .enums import BookingStatus, PaymentStatus
from .flight import FlightModel, naive_local


class NewBookingModel(BaseModel):
    """
    Booking snapshot before persistence.

    Built by the booking engine from the flight as it is at the moment of
    booking; the store assigns the identity.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    pnr: str = Field(..., min_length=4, max_length=12, description="Record locator")
    user_id: int
    flight_id: int
    flight_code: str = Field(..., max_length=10)
    departure_airport_id: int
    destination_airport_id: int
    departure_time: datetime
    arrival_time: datetime
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Amount charged")
    booking_status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("departure_time", "arrival_time", "created_at")
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        return naive_local(v)

    @classmethod
    def from_flight(
        cls,
        pnr: str,
        user_id: int,
        flight: FlightModel,
        created_at: Optional[datetime] = None,
    ) -> "NewBookingModel":
        """Copy the flight's current schedule, route and price into a snapshot."""
        return cls(
            pnr=pnr,
            user_id=user_id,
            flight_id=flight.flight_id,
            flight_code=flight.flight_code,
            departure_airport_id=flight.departure_airport_id,
            destination_airport_id=flight.destination_airport_id,
            departure_time=flight.departure_time,
            arrival_time=flight.arrival_time,
            amount=flight.price,
            created_at=created_at or datetime.now(),
        )


class BookingModel(NewBookingModel):
    """Persisted booking with its identity."""

    booking_id: int

    @property
    def occupies_seat(self) -> bool:
        return self.booking_status == BookingStatus.CONFIRMED

    def is_cancellable(self, now: Optional[datetime] = None) -> bool:
        """Cancellable while not yet cancelled and before departure."""
        now = naive_local(now or datetime.now())
        return (
            self.booking_status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)
            and now < self.departure_time
        )
