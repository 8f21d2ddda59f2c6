"""
Seat inventory: capacity versus confirmed bookings, per flight.

Available seats are never stored; they are recomputed from the flight's
capacity and the store's count of CONFIRMED bookings every time they are
needed. A reservation holds the flight's lock from the availability check
until the booking is persisted (commit) or abandoned (release), so the
check and the write form one atomic step relative to every other
reservation on the same flight.
"""

import logging
import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator

from ..errors import SeatsExhaustedError
from ..models.flight import FlightModel
from ..stores.base import BookingStore, FlightDirectory
from .lock_manager import BaseLockManager, LockInfo, flight_resource_key

logger = logging.getLogger(__name__)


@dataclass
class SeatHold:
    """One seat taken out of a flight's inventory, pending persistence."""
    flight_id: int
    hold_id: str
    lock_info: LockInfo = field(repr=False)
    flight: FlightModel = field(repr=False)
    created_at: datetime = field(default_factory=datetime.now)
    active: bool = True


class SeatInventory:
    """
    Seat availability and reservation for flights.

    Features:
    - Fresh availability reads (no caching across a booking decision)
    - Atomic check-and-reserve under a per-flight lock
    - Compensating release when the booking cannot be persisted
    """

    def __init__(
        self,
        flights: FlightDirectory,
        bookings: BookingStore,
        lock_manager: BaseLockManager,
    ):
        """
        Args:
            flights: Flight lookup collaborator
            bookings: Booking store collaborator
            lock_manager: Per-flight lock manager
        """
        self.flights = flights
        self.bookings = bookings
        self.locks = lock_manager
        self._holds: Dict[int, int] = defaultdict(int)
        self._holds_guard = threading.Lock()

    def available_seats(self, flight_id: int) -> int:
        """Capacity minus confirmed bookings minus seats currently being booked."""
        flight = self.flights.get_flight(flight_id)
        return self._available(flight)

    def _available(self, flight: FlightModel) -> int:
        confirmed = self.bookings.count_confirmed_by_flight(flight.flight_id)
        with self._holds_guard:
            held = self._holds.get(flight.flight_id, 0)
        return max(0, flight.capacity - confirmed - held)

    def reserve(self, flight_id: int) -> SeatHold:
        """
        Take one seat on the flight.

        The returned hold keeps the flight locked; finish it with commit()
        once the booking is stored, or release() if it could not be.

        Raises:
            NotFoundError: if the flight does not exist
            SeatsExhaustedError: if no seat is left
            LockTimeoutError: if the flight lock is not acquired in time
        """
        lock_info = self.locks.acquire(flight_resource_key(flight_id))
        try:
            flight = self.flights.get_flight(flight_id)
            available = self._available(flight)
            if available <= 0:
                logger.info(f"Flight {flight_id} is full ({flight.capacity} seats)")
                raise SeatsExhaustedError(flight_id)
            with self._holds_guard:
                self._holds[flight_id] += 1
        except BaseException:
            self.locks.release(lock_info)
            raise

        hold = SeatHold(
            flight_id=flight_id,
            hold_id=str(uuid.uuid4()),
            lock_info=lock_info,
            flight=flight,
        )
        logger.debug(f"Seat held on flight {flight_id} ({available - 1} left after hold)")
        return hold

    def commit(self, hold: SeatHold) -> bool:
        """The booking for this hold is persisted and now counts as confirmed."""
        return self._finish(hold, "committed")

    def release(self, hold: SeatHold) -> bool:
        """Give the held seat back without a booking."""
        return self._finish(hold, "released")

    def _finish(self, hold: SeatHold, outcome: str) -> bool:
        if not hold.active:
            logger.warning(f"Seat hold {hold.hold_id} on flight {hold.flight_id} already finished")
            return False
        hold.active = False
        with self._holds_guard:
            self._holds[hold.flight_id] -= 1
            if self._holds[hold.flight_id] <= 0:
                del self._holds[hold.flight_id]
        self.locks.release(hold.lock_info)
        logger.debug(f"Seat hold {outcome} on flight {hold.flight_id}")
        return True

    @contextmanager
    def exclusive(self, flight_id: int) -> Iterator[None]:
        """
        Serialize a status change with every reservation on the flight.

        Used for cancellations and administrative overrides, which change
        the confirmed count without taking a new hold.
        """
        with self.locks.lock_flight(flight_id):
            yield

    def ensure_available(self, flight_id: int) -> int:
        """
        Check that one more booking could be confirmed on the flight.

        Must be called inside exclusive(flight_id).

        Raises:
            SeatsExhaustedError: if the flight is full
        """
        available = self.available_seats(flight_id)
        if available <= 0:
            raise SeatsExhaustedError(flight_id)
        return available
