"""
Booking statistics for airline operators and administrators.

Revenue only counts bookings that are CONFIRMED and whose payment is
COMPLETED.
"""

import logging
from decimal import Decimal
from typing import Iterable, List

from ..models.booking import BookingModel
from ..models.enums import BookingStatus, PaymentStatus
from ..models.flight import FlightModel
from ..models.stats import FlightBookingStatsModel, OwnerBookingSummaryModel
from ..stores.base import BookingStore, FlightDirectory

logger = logging.getLogger(__name__)


def _revenue(bookings: Iterable[BookingModel]) -> Decimal:
    return sum(
        (
            b.amount
            for b in bookings
            if b.booking_status == BookingStatus.CONFIRMED
            and b.payment_status == PaymentStatus.COMPLETED
        ),
        Decimal("0.00"),
    )


def _count(bookings: Iterable[BookingModel], status: BookingStatus) -> int:
    return sum(1 for b in bookings if b.booking_status == status)


class BookingReportService:
    """Per-flight and per-airline booking figures."""

    def __init__(self, flights: FlightDirectory, bookings: BookingStore):
        self.flights = flights
        self.bookings = bookings

    def flight_stats(self, flight_id: int) -> FlightBookingStatsModel:
        flight = self.flights.get_flight(flight_id)
        return self._stats_for(flight, self.bookings.list_bookings(flight_id=flight_id))

    def _stats_for(self, flight: FlightModel, bookings: List[BookingModel]) -> FlightBookingStatsModel:
        confirmed = _count(bookings, BookingStatus.CONFIRMED)
        return FlightBookingStatsModel(
            flight_id=flight.flight_id,
            flight_code=flight.flight_code,
            departure_time=flight.departure_time,
            capacity=flight.capacity,
            confirmed_bookings=confirmed,
            pending_bookings=_count(bookings, BookingStatus.PENDING),
            cancelled_bookings=_count(bookings, BookingStatus.CANCELLED),
            available_seats=max(0, flight.capacity - confirmed),
            occupancy_rate=round(min(100.0, confirmed / flight.capacity * 100), 2),
            revenue=_revenue(bookings),
        )

    def owner_summary(self, owner_id: int) -> OwnerBookingSummaryModel:
        flights = self.flights.list_flights(owner_id=owner_id)
        summary = OwnerBookingSummaryModel(owner_id=owner_id, total_flights=len(flights))

        for flight in flights:
            bookings = self.bookings.list_bookings(flight_id=flight.flight_id)
            stats = self._stats_for(flight, bookings)
            summary.flights.append(stats)
            summary.total_bookings += len(bookings)
            summary.confirmed_bookings += stats.confirmed_bookings
            summary.pending_bookings += stats.pending_bookings
            summary.cancelled_bookings += stats.cancelled_bookings
            summary.total_revenue += stats.revenue

        logger.debug(
            f"Owner {owner_id}: {summary.total_flights} flights, "
            f"{summary.total_bookings} bookings, revenue {summary.total_revenue}"
        )
        return summary

    def user_history(self, user_id: int) -> List[BookingModel]:
        """A user's bookings, newest first."""
        return self.bookings.list_bookings(user_id=user_id)
