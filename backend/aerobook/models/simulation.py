"""
Simulation models for concurrent booking runs.

These models capture the outcome of many callers racing to book the same
flight, which is how the no-oversell guarantee is demonstrated.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class ConcurrentBookingSimulationModel(BaseModel):
    """
    Results from a concurrent booking simulation.

    Tracks how many racing callers got a seat, how many were turned away
    because the flight filled up, and whether capacity was ever exceeded.
    """
    model_config = ConfigDict(from_attributes=True)

    simulation_id: str = Field(..., description="Unique simulation identifier")
    flight_id: int = Field(..., description="Target flight for simulation")
    capacity: int = Field(..., gt=0, description="Flight capacity")
    num_concurrent_users: int = Field(..., ge=1, description="Number of concurrent users simulated")
    successful_bookings: int = Field(default=0, ge=0, description="Bookings created")
    exhausted_attempts: int = Field(default=0, ge=0, description="Attempts refused for lack of seats")
    other_failures: int = Field(default=0, ge=0, description="Attempts failing for any other reason")
    confirmed_after: int = Field(default=0, ge=0, description="Confirmed bookings once the run ended")
    average_response_time_ms: float = Field(default=0.0, ge=0.0, description="Average response time in milliseconds")
    simulation_duration_ms: int = Field(default=0, ge=0, description="Total simulation duration in milliseconds")
    started_at: datetime = Field(default_factory=datetime.now, description="Simulation start time")
    completed_at: Optional[datetime] = Field(None, description="Simulation completion time")

    @property
    def oversold(self) -> bool:
        return self.confirmed_after > self.capacity


class UserSimulationModel(BaseModel):
    """
    Individual booking attempt within a concurrent simulation.
    """
    model_config = ConfigDict(from_attributes=True)

    user_id: int = Field(..., description="Simulated user identifier")
    attempt_start: datetime = Field(default_factory=datetime.now, description="Attempt start time")
    attempt_end: Optional[datetime] = Field(None, description="Attempt completion time")
    success: bool = Field(default=False, description="Whether the booking was created")
    pnr: Optional[str] = Field(None, description="Record locator if booked")
    error_kind: Optional[str] = Field(None, description="Exception class name if failed")
    error_message: Optional[str] = Field(None, description="Error message if failed")
    total_response_time_ms: int = Field(default=0, ge=0, description="Total response time")
