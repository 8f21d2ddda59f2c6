"""
Booking engine Pydantic models package.

This package contains all Pydantic v2 models used by the booking engine
for data validation, serialization, and type safety.
"""

# Enums
from .enums import (
    BookingStatus,
    PaymentStatus,
    UserRole,
)

# Reference data
from .airport import AirportModel
from .flight import (
    FlightOwnerModel,
    FlightModel,
    FlightAvailabilityModel,
)
from .user import (
    UserModel,
    AdminModel,
    SessionContext,
)

# Bookings
from .booking import (
    NewBookingModel,
    BookingModel,
)

# Reports and simulation
from .stats import (
    FlightBookingStatsModel,
    OwnerBookingSummaryModel,
)
from .simulation import (
    ConcurrentBookingSimulationModel,
    UserSimulationModel,
)

__all__ = [
    # Enums
    "BookingStatus",
    "PaymentStatus",
    "UserRole",

    # Reference data
    "AirportModel",
    "FlightOwnerModel",
    "FlightModel",
    "FlightAvailabilityModel",
    "UserModel",
    "AdminModel",
    "SessionContext",

    # Bookings
    "NewBookingModel",
    "BookingModel",

    # Reports and simulation
    "FlightBookingStatsModel",
    "OwnerBookingSummaryModel",
    "ConcurrentBookingSimulationModel",
    "UserSimulationModel",
]
