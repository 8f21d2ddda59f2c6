"""
Flight and airline models for the booking engine.

This module contains the read-mostly reference data the booking engine
consumes: the airline operating a flight and the flight schedule itself.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator


def naive_local(value: datetime) -> datetime:
    """Timezone-aware values become naive local time, the engine clock's frame."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class FlightOwnerModel(BaseModel):
    """
    Airline (flight owner) model.

    The company code doubles as the prefix of every record locator
    issued for the airline's flights.
    """
    model_config = ConfigDict(from_attributes=True)

    owner_id: int
    company_name: str = Field(..., max_length=100, description="Airline name")
    company_code: str = Field(
        ..., pattern=r"^[A-Z0-9]{2,3}$", description="Airline code (e.g., 'AA')"
    )
    email: Optional[str] = Field(None, max_length=100)
    contact_info: Optional[str] = Field(None, max_length=100)
    password_hash: Optional[str] = Field(None, repr=False)
    flight_count: int = Field(default=0, ge=0, description="Number of flights operated")


class FlightModel(BaseModel):
    """
    Scheduled flight with route, timing, capacity and fare.

    Capacity and price are what the seat inventory and booking snapshot
    are computed from.
    """
    model_config = ConfigDict(from_attributes=True)

    flight_id: int
    flight_code: str = Field(..., max_length=10, description="Flight code (e.g., 'AA100')")
    flight_name: Optional[str] = Field(None, max_length=100)
    owner_id: int = Field(..., description="Operating airline ID")
    airline_code: str = Field(..., pattern=r"^[A-Z0-9]{2,3}$", description="Operating airline code")
    departure_airport_id: int = Field(..., description="Departure airport ID")
    destination_airport_id: int = Field(..., description="Destination airport ID")
    departure_time: datetime = Field(..., description="Scheduled departure time")
    arrival_time: datetime = Field(..., description="Scheduled arrival time")
    capacity: int = Field(..., gt=0, description="Total bookable seats")
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Fare")

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        return naive_local(v)

    @model_validator(mode="after")
    def check_schedule(self) -> "FlightModel":
        if self.arrival_time <= self.departure_time:
            raise ValueError("Arrival time must be after departure time")
        if self.departure_airport_id == self.destination_airport_id:
            raise ValueError("Departure and destination airports cannot be the same")
        return self


class FlightAvailabilityModel(BaseModel):
    """A search result: the flight and the seats still bookable on it."""
    model_config = ConfigDict(from_attributes=True)

    flight: FlightModel
    available_seats: int = Field(..., ge=0)

    @property
    def is_full(self) -> bool:
        return self.available_seats == 0
