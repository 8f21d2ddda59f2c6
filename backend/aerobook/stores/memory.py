"""
Thread-safe in-memory store.

Implements every storage protocol in one object. Used by the tests, the
booking simulator and anywhere a database is not wanted.
"""

import itertools
import logging
import threading
from datetime import date, datetime
from typing import Dict, List, Optional

from ..errors import FlightInUseError, NotFoundError, PnrConflictError
from ..models.airport import AirportModel
from ..models.booking import BookingModel, NewBookingModel
from ..models.enums import BookingStatus, PaymentStatus
from ..models.flight import FlightModel, FlightOwnerModel
from ..models.user import AdminModel, UserModel

logger = logging.getLogger(__name__)


class MemoryStore:
    """Flights, airlines, airports, users and bookings held in dictionaries."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = {
            "airport": itertools.count(1),
            "owner": itertools.count(1),
            "flight": itertools.count(1),
            "user": itertools.count(1),
            "booking": itertools.count(1),
            "admin": itertools.count(1),
        }
        self.airports: Dict[int, AirportModel] = {}
        self.owners: Dict[int, FlightOwnerModel] = {}
        self.flights: Dict[int, FlightModel] = {}
        self.users: Dict[int, UserModel] = {}
        self.admins: Dict[int, AdminModel] = {}
        self.bookings: Dict[int, BookingModel] = {}
        self._pnr_index: Dict[str, int] = {}

    # Reference data

    def add_airport(self, **fields) -> AirportModel:
        with self._lock:
            airport = AirportModel(airport_id=next(self._ids["airport"]), **fields)
            self.airports[airport.airport_id] = airport
            return airport

    def add_owner(self, **fields) -> FlightOwnerModel:
        with self._lock:
            owner = FlightOwnerModel(owner_id=next(self._ids["owner"]), **fields)
            self.owners[owner.owner_id] = owner
            return owner

    def get_owner(self, owner_id: int) -> FlightOwnerModel:
        owner = self.owners.get(owner_id)
        if owner is None:
            raise NotFoundError("FlightOwner", owner_id)
        return owner

    def add_flight(self, **fields) -> FlightModel:
        """Register a flight; the airline code is taken from its owner."""
        with self._lock:
            owner = self.get_owner(fields["owner_id"])
            code = fields["flight_code"].upper()
            if any(
                f.owner_id == owner.owner_id and f.flight_code == code
                for f in self.flights.values()
            ):
                raise ValueError(f"Flight code {code} already exists for {owner.company_code}")
            fields["flight_code"] = code
            flight = FlightModel(
                flight_id=next(self._ids["flight"]),
                airline_code=owner.company_code,
                **fields,
            )
            self.flights[flight.flight_id] = flight
            self.owners[owner.owner_id] = owner.model_copy(
                update={"flight_count": owner.flight_count + 1}
            )
            return flight

    def get_flight(self, flight_id: int) -> FlightModel:
        flight = self.flights.get(flight_id)
        if flight is None:
            raise NotFoundError("Flight", flight_id)
        return flight

    def list_flights(self, owner_id: Optional[int] = None) -> List[FlightModel]:
        with self._lock:
            flights = list(self.flights.values())
        if owner_id is not None:
            flights = [f for f in flights if f.owner_id == owner_id]
        return sorted(flights, key=lambda f: f.departure_time)

    def search_flights(
        self,
        departure_airport_id: int,
        destination_airport_id: int,
        on_date: Optional[date] = None,
        departing_after: Optional[datetime] = None,
    ) -> List[FlightModel]:
        return [
            f
            for f in self.list_flights()
            if f.departure_airport_id == departure_airport_id
            and f.destination_airport_id == destination_airport_id
            and (on_date is None or f.departure_time.date() == on_date)
            and (departing_after is None or f.departure_time > departing_after)
        ]

    def update_flight(self, flight_id: int, **changes) -> FlightModel:
        """Edit a flight. Capacity is frozen once bookings reference it."""
        with self._lock:
            current = self.get_flight(flight_id)
            if (
                "capacity" in changes
                and changes["capacity"] != current.capacity
                and self._has_bookings(flight_id)
            ):
                raise FlightInUseError(flight_id, "change capacity of")
            updated = FlightModel(**{**current.model_dump(), **changes})
            self.flights[flight_id] = updated
            return updated

    def delete_flight(self, flight_id: int) -> None:
        with self._lock:
            flight = self.get_flight(flight_id)
            if self._has_bookings(flight_id):
                raise FlightInUseError(flight_id, "delete")
            del self.flights[flight_id]
            owner = self.owners[flight.owner_id]
            self.owners[owner.owner_id] = owner.model_copy(
                update={"flight_count": max(0, owner.flight_count - 1)}
            )

    def add_user(self, **fields) -> UserModel:
        with self._lock:
            user = UserModel(user_id=next(self._ids["user"]), **fields)
            self.users[user.user_id] = user
            return user

    def get_user(self, user_id: int) -> UserModel:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def add_admin(self, **fields) -> AdminModel:
        with self._lock:
            admin = AdminModel(admin_id=next(self._ids["admin"]), **fields)
            self.admins[admin.admin_id] = admin
            return admin

    # Credential lookups

    def find_user_by_email(self, email: str) -> Optional[UserModel]:
        email = email.strip().lower()
        return next((u for u in list(self.users.values()) if u.email.lower() == email), None)

    def find_owner_by_code(self, company_code: str) -> Optional[FlightOwnerModel]:
        code = company_code.strip().upper()
        return next((o for o in list(self.owners.values()) if o.company_code == code), None)

    def find_admin_by_username(self, username: str) -> Optional[AdminModel]:
        return next((a for a in list(self.admins.values()) if a.username == username.strip()), None)

    # Bookings

    def insert(self, booking: NewBookingModel) -> BookingModel:
        with self._lock:
            if booking.pnr in self._pnr_index:
                raise PnrConflictError(booking.pnr)
            stored = BookingModel(
                booking_id=next(self._ids["booking"]),
                **booking.model_dump(),
            )
            self.bookings[stored.booking_id] = stored
            self._pnr_index[stored.pnr] = stored.booking_id
            return stored

    def count_confirmed_by_flight(self, flight_id: int) -> int:
        with self._lock:
            return sum(
                1
                for b in self.bookings.values()
                if b.flight_id == flight_id and b.occupies_seat
            )

    def pnr_exists(self, pnr: str) -> bool:
        with self._lock:
            return pnr in self._pnr_index

    def find_by_pnr(self, pnr: str) -> BookingModel:
        with self._lock:
            booking_id = self._pnr_index.get(pnr)
        if booking_id is None:
            raise NotFoundError("Booking", pnr)
        return self.bookings[booking_id]

    def get_booking(self, booking_id: int) -> BookingModel:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    def update_status(
        self,
        booking_id: int,
        booking_status: Optional[BookingStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> BookingModel:
        changes = {}
        if booking_status is not None:
            changes["booking_status"] = booking_status
        if payment_status is not None:
            changes["payment_status"] = payment_status
        with self._lock:
            current = self.get_booking(booking_id)
            updated = current.model_copy(update=changes)
            self.bookings[booking_id] = updated
            return updated

    def list_bookings(
        self, user_id: Optional[int] = None, flight_id: Optional[int] = None
    ) -> List[BookingModel]:
        with self._lock:
            bookings = list(self.bookings.values())
        if user_id is not None:
            bookings = [b for b in bookings if b.user_id == user_id]
        if flight_id is not None:
            bookings = [b for b in bookings if b.flight_id == flight_id]
        return sorted(bookings, key=lambda b: (b.created_at, b.booking_id), reverse=True)

    def _has_bookings(self, flight_id: int) -> bool:
        return any(b.flight_id == flight_id for b in self.bookings.values())
