"""
Storage collaborator interfaces consumed by the booking engine.

The engine never talks to a database directly; it is handed objects that
satisfy these protocols. Implementations raise NotFoundError for missing
records, PnrConflictError when an insert would duplicate a PNR, and
StorageFailureError for anything the backend itself fails on.
"""

from datetime import date, datetime
from typing import List, Optional, Protocol, runtime_checkable

from ..models.booking import BookingModel, NewBookingModel
from ..models.enums import BookingStatus, PaymentStatus
from ..models.flight import FlightModel, FlightOwnerModel
from ..models.user import AdminModel, UserModel


@runtime_checkable
class FlightDirectory(Protocol):
    """Read access to the flight schedule."""

    def get_flight(self, flight_id: int) -> FlightModel:
        ...

    def list_flights(self, owner_id: Optional[int] = None) -> List[FlightModel]:
        ...

    def search_flights(
        self,
        departure_airport_id: int,
        destination_airport_id: int,
        on_date: Optional[date] = None,
        departing_after: Optional[datetime] = None,
    ) -> List[FlightModel]:
        """Flights on a route, optionally on one day, ordered by departure."""
        ...


@runtime_checkable
class UserDirectory(Protocol):
    """Read access to registered users."""

    def get_user(self, user_id: int) -> UserModel:
        ...


@runtime_checkable
class AccountDirectory(Protocol):
    """Credential lookups for the three kinds of account that can log in."""

    def find_user_by_email(self, email: str) -> Optional[UserModel]:
        ...

    def find_owner_by_code(self, company_code: str) -> Optional[FlightOwnerModel]:
        ...

    def find_admin_by_username(self, username: str) -> Optional[AdminModel]:
        ...


@runtime_checkable
class BookingStore(Protocol):
    """Persistence for bookings."""

    def insert(self, booking: NewBookingModel) -> BookingModel:
        ...

    def count_confirmed_by_flight(self, flight_id: int) -> int:
        ...

    def find_by_pnr(self, pnr: str) -> BookingModel:
        ...

    def get_booking(self, booking_id: int) -> BookingModel:
        ...

    def pnr_exists(self, pnr: str) -> bool:
        ...

    def update_status(
        self,
        booking_id: int,
        booking_status: Optional[BookingStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> BookingModel:
        ...

    def list_bookings(
        self, user_id: Optional[int] = None, flight_id: Optional[int] = None
    ) -> List[BookingModel]:
        ...
