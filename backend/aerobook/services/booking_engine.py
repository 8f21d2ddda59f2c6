"""
Booking state machine.

Owns the booking and payment status lifecycles and orchestrates booking
creation against the seat inventory and the locator generator:

    reserve seat -> generate PNR -> persist snapshot -> commit seat

If persistence fails after the seat was reserved, the reservation is
released before the error is surfaced, so seats never leak.

Booking status:  PENDING -> CONFIRMED -> CANCELLED
                 PENDING -> CANCELLED
Payment status:  PENDING -> COMPLETED | FAILED

Administrators may force any booking status; moving into CONFIRMED still
requires a free seat.
"""

import logging
from datetime import date, datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Union

from ..errors import (
    BookingEngineError,
    FlightDepartedError,
    InvalidTransitionError,
    LocatorSpaceExhaustedError,
    NotCancellableError,
    PermissionDeniedError,
    PnrConflictError,
    StorageFailureError,
)
from ..models.booking import BookingModel, NewBookingModel
from ..models.enums import BookingStatus, PaymentStatus, UserRole
from ..models.flight import FlightAvailabilityModel, FlightModel, naive_local
from ..models.user import SessionContext
from ..database.config import initialize_database
from ..stores.base import BookingStore, FlightDirectory, UserDirectory
from ..stores.sql import SqlStore
from ..utils.config import get_config
from .lock_manager import BaseLockManager, LocalLockManager, create_lock_manager
from .locator import LocatorGenerator
from .seat_inventory import SeatInventory

logger = logging.getLogger(__name__)


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
}


def can_transition_booking(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in PAYMENT_TRANSITIONS[current]


class BookingEngine:
    """
    Books seats, issues record locators and moves bookings through their
    status lifecycles.

    All seat-affecting transitions for a flight run under that flight's
    lock; operations on different flights never block each other.
    """

    def __init__(
        self,
        flights: FlightDirectory,
        bookings: BookingStore,
        users: Optional[UserDirectory] = None,
        lock_manager: Optional[BaseLockManager] = None,
        locator: Optional[LocatorGenerator] = None,
        inventory: Optional[SeatInventory] = None,
        insert_max_attempts: int = 5,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            flights: Flight lookup collaborator
            bookings: Booking store collaborator
            users: Optional user lookup; when given, unknown users are rejected
            lock_manager: Per-flight lock manager (defaults to in-process locks)
            locator: PNR generator (defaults to one checking the booking store)
            inventory: Seat inventory (defaults to one built from the above)
            insert_max_attempts: Inserts retried after a PNR conflict at write time
            clock: Source of "now", used for departure checks and timestamps
        """
        self.flights = flights
        self.bookings = bookings
        self.users = users
        self.locks = lock_manager or (inventory.locks if inventory else LocalLockManager())
        self.locator = locator or LocatorGenerator(bookings.pnr_exists)
        self.inventory = inventory or SeatInventory(flights, bookings, self.locks)
        self.insert_max_attempts = insert_max_attempts
        self.clock = clock

    def now(self) -> datetime:
        """The engine clock as naive local time, comparable with flight times."""
        return naive_local(self.clock())

    # Queries

    def available_seats(self, flight_id: int) -> int:
        return self.inventory.available_seats(flight_id)

    def get_booking(self, booking_id: int) -> BookingModel:
        return self.bookings.get_booking(booking_id)

    def find_by_pnr(self, pnr: str) -> BookingModel:
        return self.bookings.find_by_pnr(pnr.strip().upper())

    def booking_history(self, user_id: int) -> List[BookingModel]:
        return self.bookings.list_bookings(user_id=user_id)

    def search_flights(
        self,
        departure_airport_id: int,
        destination_airport_id: int,
        on_date: Optional[date] = None,
    ) -> List[FlightAvailabilityModel]:
        """
        Flights on a route that have not departed yet, with their free seats.

        Full flights are included with zero seats so a caller refused with
        SeatsExhaustedError can pick another departure from the same list.

        Raises:
            ValueError: departure and destination are the same airport
        """
        if departure_airport_id == destination_airport_id:
            raise ValueError("Departure and destination airports cannot be the same")

        flights = self.flights.search_flights(
            departure_airport_id,
            destination_airport_id,
            on_date=on_date,
            departing_after=self.now(),
        )
        results = [
            FlightAvailabilityModel(flight=f, available_seats=self.inventory.available_seats(f.flight_id))
            for f in flights
        ]
        logger.debug(
            f"Search {departure_airport_id} -> {destination_airport_id} on {on_date or 'any date'}: "
            f"{len(results)} flights"
        )
        return results

    # Creation

    def create_booking(
        self,
        user_id: int,
        flight_id: int,
        context: Optional[SessionContext] = None,
    ) -> BookingModel:
        """
        Book one seat on a flight for a user.

        Returns:
            The stored booking: CONFIRMED, payment PENDING, with a unique PNR
            and the flight's schedule and price frozen into it.

        Raises:
            NotFoundError: unknown flight or user
            FlightDepartedError: the flight has already left
            SeatsExhaustedError: no seat left; do not retry automatically
            LocatorSpaceExhaustedError: no unique PNR could be produced
            StorageFailureError: persistence failed (the seat was released)
            PermissionDeniedError: a user booking on someone else's behalf
        """
        if context is not None and context.role == UserRole.USER and context.principal_id != user_id:
            raise PermissionDeniedError(
                f"User {context.principal_id} cannot book on behalf of user {user_id}"
            )

        flight = self.flights.get_flight(flight_id)
        if self.users is not None:
            self.users.get_user(user_id)
        if self.now() >= flight.departure_time:
            raise FlightDepartedError(flight_id)

        hold = self.inventory.reserve(flight_id)
        try:
            booking = self._persist(user_id, hold.flight)
        except BookingEngineError:
            self.inventory.release(hold)
            raise
        except Exception as e:
            self.inventory.release(hold)
            logger.error(f"Booking on flight {flight_id} failed after seat reservation: {e}")
            raise StorageFailureError(f"Could not store booking: {e}") from e
        self.inventory.commit(hold)

        logger.info(
            f"Booking {booking.booking_id} created: PNR {booking.pnr}, "
            f"user {user_id}, flight {flight.flight_code}"
        )
        return booking

    def _persist(self, user_id: int, flight: FlightModel) -> BookingModel:
        for attempt in range(1, self.insert_max_attempts + 1):
            pnr = self.locator.generate(flight.airline_code)
            snapshot = NewBookingModel.from_flight(pnr, user_id, flight, created_at=self.now())
            try:
                return self.bookings.insert(snapshot)
            except PnrConflictError:
                logger.warning(
                    f"PNR {pnr} taken between check and insert (attempt {attempt}), regenerating"
                )
        raise LocatorSpaceExhaustedError(flight.airline_code, self.insert_max_attempts)

    # Booking status

    def cancel_booking(
        self, booking_id: int, context: Optional[SessionContext] = None
    ) -> BookingModel:
        """
        Cancel a PENDING or CONFIRMED booking before its departure.

        The seat returns to the flight's inventory because only CONFIRMED
        bookings are counted against capacity.

        Raises:
            NotFoundError: unknown booking
            NotCancellableError: already cancelled, or the flight has departed
            PermissionDeniedError: a user cancelling someone else's booking
        """
        booking = self.bookings.get_booking(booking_id)
        if context is not None and context.role == UserRole.USER and context.principal_id != booking.user_id:
            raise PermissionDeniedError(
                f"User {context.principal_id} cannot cancel booking {booking_id}"
            )

        with self.inventory.exclusive(booking.flight_id):
            booking = self.bookings.get_booking(booking_id)
            if not booking.is_cancellable(self.now()):
                reason = (
                    "booking is already cancelled"
                    if booking.booking_status == BookingStatus.CANCELLED
                    else "flight has already departed"
                )
                raise NotCancellableError(booking_id, booking.booking_status, reason)
            updated = self.bookings.update_status(booking_id, booking_status=BookingStatus.CANCELLED)

        logger.info(f"Booking {booking_id} ({booking.pnr}) cancelled, seat released on flight {booking.flight_id}")
        return updated

    def confirm_booking(self, booking_id: int) -> BookingModel:
        """
        Move a PENDING booking to CONFIRMED, taking a seat.

        Raises:
            InvalidTransitionError: the booking is not PENDING
            SeatsExhaustedError: the flight is full
        """
        booking = self.bookings.get_booking(booking_id)
        with self.inventory.exclusive(booking.flight_id):
            booking = self.bookings.get_booking(booking_id)
            if not can_transition_booking(booking.booking_status, BookingStatus.CONFIRMED):
                raise InvalidTransitionError(
                    "booking_status", booking.booking_status, BookingStatus.CONFIRMED
                )
            self.inventory.ensure_available(booking.flight_id)
            updated = self.bookings.update_status(booking_id, booking_status=BookingStatus.CONFIRMED)

        logger.info(f"Booking {booking_id} ({booking.pnr}) confirmed")
        return updated

    def set_booking_status(
        self,
        booking_id: int,
        new_status: Union[BookingStatus, str],
        context: SessionContext,
    ) -> BookingModel:
        """
        Administrative override: force a booking into any status.

        Leaving CONFIRMED gives the seat back; entering CONFIRMED from
        PENDING or CANCELLED needs a free seat, exactly as a new booking
        would.

        Raises:
            PermissionDeniedError: the context is not an administrator
            SeatsExhaustedError: entering CONFIRMED on a full flight
        """
        if context is None or not context.is_admin:
            raise PermissionDeniedError("Only administrators can override booking status")
        target = BookingStatus(new_status)

        booking = self.bookings.get_booking(booking_id)
        with self.inventory.exclusive(booking.flight_id):
            booking = self.bookings.get_booking(booking_id)
            current = booking.booking_status
            if current == target:
                logger.info(f"Booking {booking_id} already {target.value}, nothing to change")
                return booking
            if target == BookingStatus.CONFIRMED:
                self.inventory.ensure_available(booking.flight_id)
            updated = self.bookings.update_status(booking_id, booking_status=target)

        logger.info(
            f"Admin {context.principal_id} moved booking {booking_id} "
            f"from {current.value} to {target.value}"
        )
        return updated

    # Payment status

    def set_payment_status(
        self, booking_id: int, new_status: Union[PaymentStatus, str]
    ) -> BookingModel:
        """
        Settle a booking's payment: PENDING moves once to COMPLETED or FAILED.

        Raises:
            NotFoundError: unknown booking
            InvalidTransitionError: payment already settled, or target is PENDING
        """
        target = PaymentStatus(new_status)
        with self.locks.lock(f"booking:{booking_id}"):
            booking = self.bookings.get_booking(booking_id)
            if not can_transition_payment(booking.payment_status, target):
                raise InvalidTransitionError("payment_status", booking.payment_status, target)
            updated = self.bookings.update_status(booking_id, payment_status=target)

        logger.info(f"Booking {booking_id} ({booking.pnr}) payment {target.value}")
        return updated


def create_booking_engine(config=None, store=None) -> BookingEngine:
    """
    Build a booking engine from configuration.

    Args:
        config: EngineConfig; loaded from the environment when omitted
        store: Object implementing the storage protocols; a SqlStore on
            config.database_url when omitted

    Returns:
        BookingEngine: Configured engine
    """
    config = config or get_config()
    if store is None:
        db_config = initialize_database(config.database_url, echo=config.database_echo)
        store = SqlStore(db_config)

    lock_manager = create_lock_manager(config)
    locator = LocatorGenerator(
        store.pnr_exists,
        suffix_length=config.pnr_suffix_length,
        max_attempts=config.pnr_max_attempts,
    )
    return BookingEngine(
        flights=store,
        bookings=store,
        users=store,
        lock_manager=lock_manager,
        locator=locator,
        insert_max_attempts=config.booking_insert_max_attempts,
    )
