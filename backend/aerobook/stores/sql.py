"""
SQLAlchemy-backed store.

Implements the storage protocols on top of DatabaseConfig sessions. The
unique constraint on booking.pnr is the last line of defence against
duplicate record locators: a violation surfaces as PnrConflictError so the
booking engine can regenerate and retry.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..database.config import DatabaseConfig
from ..database.models import Admin, Airport, Booking, Flight, FlightOwner, User
from ..errors import (
    BookingEngineError,
    FlightInUseError,
    NotFoundError,
    PnrConflictError,
    StorageFailureError,
)
from ..models.airport import AirportModel
from ..models.booking import BookingModel, NewBookingModel
from ..models.enums import BookingStatus, PaymentStatus
from ..models.flight import FlightModel, FlightOwnerModel
from ..models.user import AdminModel, UserModel

logger = logging.getLogger(__name__)


def _is_pnr_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "pnr" in message


class SqlStore:
    """Flights, airlines, airports, users and bookings in a relational database."""

    def __init__(self, db_config: DatabaseConfig):
        self.db = db_config

    @contextmanager
    def _session(self, action: str):
        try:
            with self.db.get_session_context() as session:
                yield session
        except BookingEngineError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Storage failure during {action}: {e}")
            raise StorageFailureError(f"{action} failed: {e}") from e

    # Reference data

    def add_airport(self, **fields) -> AirportModel:
        with self._session("add airport") as session:
            row = Airport(**fields)
            session.add(row)
            session.flush()
            return AirportModel.model_validate(row)

    def add_owner(self, **fields) -> FlightOwnerModel:
        # Validate before touching the database
        FlightOwnerModel(owner_id=0, **fields)
        with self._session("add flight owner") as session:
            row = FlightOwner(**fields)
            session.add(row)
            session.flush()
            return FlightOwnerModel.model_validate(row)

    def get_owner(self, owner_id: int) -> FlightOwnerModel:
        with self._session("get flight owner") as session:
            row = session.get(FlightOwner, owner_id)
            if row is None:
                raise NotFoundError("FlightOwner", owner_id)
            return FlightOwnerModel.model_validate(row)

    def add_flight(self, **fields) -> FlightModel:
        """Register a flight; the airline code is taken from its owner."""
        with self._session("add flight") as session:
            owner = session.get(FlightOwner, fields["owner_id"])
            if owner is None:
                raise NotFoundError("FlightOwner", fields["owner_id"])
            fields["flight_code"] = fields["flight_code"].upper()
            # Validate schedule, capacity and price before the insert
            checked = FlightModel(flight_id=0, airline_code=owner.company_code, **fields)
            fields["departure_time"] = checked.departure_time
            fields["arrival_time"] = checked.arrival_time
            row = Flight(**fields)
            session.add(row)
            owner.flight_count = (owner.flight_count or 0) + 1
            session.flush()
            session.refresh(row)
            return FlightModel.model_validate(row)

    def get_flight(self, flight_id: int) -> FlightModel:
        with self._session("get flight") as session:
            row = session.get(Flight, flight_id)
            if row is None:
                raise NotFoundError("Flight", flight_id)
            return FlightModel.model_validate(row)

    def list_flights(self, owner_id: Optional[int] = None) -> List[FlightModel]:
        with self._session("list flights") as session:
            query = session.query(Flight)
            if owner_id is not None:
                query = query.filter(Flight.owner_id == owner_id)
            return [FlightModel.model_validate(row) for row in query.order_by(Flight.departure_time)]

    def search_flights(
        self,
        departure_airport_id: int,
        destination_airport_id: int,
        on_date: Optional[date] = None,
        departing_after: Optional[datetime] = None,
    ) -> List[FlightModel]:
        with self._session("search flights") as session:
            query = session.query(Flight).filter(
                Flight.departure_airport_id == departure_airport_id,
                Flight.destination_airport_id == destination_airport_id,
            )
            if on_date is not None:
                day_start = datetime.combine(on_date, time.min)
                query = query.filter(
                    Flight.departure_time >= day_start,
                    Flight.departure_time < day_start + timedelta(days=1),
                )
            if departing_after is not None:
                query = query.filter(Flight.departure_time > departing_after)
            return [FlightModel.model_validate(row) for row in query.order_by(Flight.departure_time)]

    def update_flight(self, flight_id: int, **changes) -> FlightModel:
        """Edit a flight. Capacity is frozen once bookings reference it."""
        with self._session("update flight") as session:
            row = session.get(Flight, flight_id)
            if row is None:
                raise NotFoundError("Flight", flight_id)
            if (
                "capacity" in changes
                and changes["capacity"] != row.capacity
                and self._has_bookings(session, flight_id)
            ):
                raise FlightInUseError(flight_id, "change capacity of")
            current = FlightModel.model_validate(row)
            updated = FlightModel(**{**current.model_dump(), **changes})
            for key in changes:
                setattr(row, key, getattr(updated, key))
            session.flush()
            return updated

    def delete_flight(self, flight_id: int) -> None:
        with self._session("delete flight") as session:
            row = session.get(Flight, flight_id)
            if row is None:
                raise NotFoundError("Flight", flight_id)
            if self._has_bookings(session, flight_id):
                raise FlightInUseError(flight_id, "delete")
            row.owner.flight_count = max(0, (row.owner.flight_count or 0) - 1)
            session.delete(row)

    def add_user(self, **fields) -> UserModel:
        with self._session("add user") as session:
            row = User(**fields)
            session.add(row)
            session.flush()
            return UserModel.model_validate(row)

    def get_user(self, user_id: int) -> UserModel:
        with self._session("get user") as session:
            row = session.get(User, user_id)
            if row is None:
                raise NotFoundError("User", user_id)
            return UserModel.model_validate(row)

    def add_admin(self, **fields) -> AdminModel:
        with self._session("add admin") as session:
            row = Admin(**fields)
            session.add(row)
            session.flush()
            return AdminModel.model_validate(row)

    # Credential lookups

    def find_user_by_email(self, email: str) -> Optional[UserModel]:
        with self._session("find user by email") as session:
            row = (
                session.query(User)
                .filter(func.lower(User.email) == email.strip().lower())
                .one_or_none()
            )
            return UserModel.model_validate(row) if row is not None else None

    def find_owner_by_code(self, company_code: str) -> Optional[FlightOwnerModel]:
        with self._session("find flight owner by code") as session:
            row = (
                session.query(FlightOwner)
                .filter(FlightOwner.company_code == company_code.strip().upper())
                .one_or_none()
            )
            return FlightOwnerModel.model_validate(row) if row is not None else None

    def find_admin_by_username(self, username: str) -> Optional[AdminModel]:
        with self._session("find admin by username") as session:
            row = session.query(Admin).filter(Admin.username == username.strip()).one_or_none()
            return AdminModel.model_validate(row) if row is not None else None

    # Bookings

    def insert(self, booking: NewBookingModel) -> BookingModel:
        try:
            with self.db.get_session_context() as session:
                row = Booking(**booking.model_dump())
                session.add(row)
                session.flush()
                return BookingModel.model_validate(row)
        except IntegrityError as e:
            if _is_pnr_violation(e):
                logger.warning(f"PNR {booking.pnr} rejected by unique constraint")
                raise PnrConflictError(booking.pnr) from e
            logger.error(f"Booking insert violated a constraint: {e}")
            raise StorageFailureError(f"insert booking failed: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Storage failure during insert booking: {e}")
            raise StorageFailureError(f"insert booking failed: {e}") from e

    def count_confirmed_by_flight(self, flight_id: int) -> int:
        with self._session("count confirmed bookings") as session:
            count = (
                session.query(func.count(Booking.booking_id))
                .filter(
                    Booking.flight_id == flight_id,
                    Booking.booking_status == BookingStatus.CONFIRMED,
                )
                .scalar()
            )
            return int(count or 0)

    def pnr_exists(self, pnr: str) -> bool:
        with self._session("check PNR") as session:
            return (
                session.query(Booking.booking_id).filter(Booking.pnr == pnr).first()
                is not None
            )

    def find_by_pnr(self, pnr: str) -> BookingModel:
        with self._session("find booking by PNR") as session:
            row = session.query(Booking).filter(Booking.pnr == pnr).one_or_none()
            if row is None:
                raise NotFoundError("Booking", pnr)
            return BookingModel.model_validate(row)

    def get_booking(self, booking_id: int) -> BookingModel:
        with self._session("get booking") as session:
            row = session.get(Booking, booking_id)
            if row is None:
                raise NotFoundError("Booking", booking_id)
            return BookingModel.model_validate(row)

    def update_status(
        self,
        booking_id: int,
        booking_status: Optional[BookingStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> BookingModel:
        with self._session("update booking status") as session:
            row = session.get(Booking, booking_id)
            if row is None:
                raise NotFoundError("Booking", booking_id)
            if booking_status is not None:
                row.booking_status = booking_status
            if payment_status is not None:
                row.payment_status = payment_status
            session.flush()
            return BookingModel.model_validate(row)

    def list_bookings(
        self, user_id: Optional[int] = None, flight_id: Optional[int] = None
    ) -> List[BookingModel]:
        with self._session("list bookings") as session:
            query = session.query(Booking)
            if user_id is not None:
                query = query.filter(Booking.user_id == user_id)
            if flight_id is not None:
                query = query.filter(Booking.flight_id == flight_id)
            query = query.order_by(Booking.created_at.desc(), Booking.booking_id.desc())
            return [BookingModel.model_validate(row) for row in query]

    @staticmethod
    def _has_bookings(session, flight_id: int) -> bool:
        return (
            session.query(Booking.booking_id).filter(Booking.flight_id == flight_id).first()
            is not None
        )
