"""
SQLAlchemy database models for the booking engine.

This module defines the tables backing the storage collaborators:
- Airport: Airport reference data with IATA codes
- FlightOwner: Airlines; the company code prefixes every PNR they issue
- Flight: Flight schedules with route, capacity and fare
- User: Passenger accounts
- Admin: Administrator accounts
- Booking: Bookings with a unique record locator and a frozen snapshot
  of the flight's schedule and fare
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Date,
    ForeignKey,
    Index,
    Numeric,
    UniqueConstraint,
    Enum as SAEnum,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime

from ..models.enums import BookingStatus, PaymentStatus

# Create the declarative base for all models
Base = declarative_base()


class Airport(Base):
    """Airport reference data used by flight routes."""
    __tablename__ = 'airport'

    airport_id = Column(Integer, primary_key=True, autoincrement=True)
    airport_code = Column(String(3), unique=True, nullable=False, index=True)  # IATA code (e.g., 'JFK')
    airport_name = Column(String(100), nullable=False)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<Airport(id={self.airport_id}, code='{self.airport_code}')>"


class FlightOwner(Base):
    """Airline operating flights."""
    __tablename__ = 'flight_owner'

    owner_id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(100), nullable=False)
    company_code = Column(String(3), unique=True, nullable=False, index=True)  # PNR prefix (e.g., 'AA')
    email = Column(String(100), nullable=True)
    contact_info = Column(String(100), nullable=True)
    password_hash = Column(String(128), nullable=True)
    flight_count = Column(Integer, nullable=False, default=0)

    flights = relationship("Flight", back_populates="owner", lazy="select")

    def __repr__(self):
        return f"<FlightOwner(id={self.owner_id}, code='{self.company_code}')>"


class Flight(Base):
    """
    Scheduled flight.

    Capacity is what the seat inventory counts confirmed bookings against.
    """
    __tablename__ = 'flight'

    flight_id = Column(Integer, primary_key=True, autoincrement=True)
    flight_code = Column(String(10), nullable=False, index=True)  # e.g., 'AA100'
    flight_name = Column(String(100), nullable=True)
    owner_id = Column(Integer, ForeignKey('flight_owner.owner_id'), nullable=False, index=True)
    departure_airport_id = Column(Integer, ForeignKey('airport.airport_id'), nullable=False, index=True)
    destination_airport_id = Column(Integer, ForeignKey('airport.airport_id'), nullable=False, index=True)
    departure_time = Column(DateTime, nullable=False, index=True)
    arrival_time = Column(DateTime, nullable=False)
    capacity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    owner = relationship("FlightOwner", back_populates="flights", lazy="joined")
    bookings = relationship("Booking", back_populates="flight", lazy="select")

    __table_args__ = (
        UniqueConstraint('owner_id', 'flight_code', name='uq_flight_owner_code'),
    )

    @property
    def airline_code(self) -> str:
        return self.owner.company_code

    def __repr__(self):
        return f"<Flight(id={self.flight_id}, code='{self.flight_code}', capacity={self.capacity})>"


class User(Base):
    """Passenger account."""
    __tablename__ = 'app_user'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String(128), nullable=True)
    date_of_birth = Column(Date, nullable=True)

    bookings = relationship("Booking", back_populates="user", lazy="select")

    def __repr__(self):
        return f"<User(id={self.user_id}, email='{self.email}')>"


class Admin(Base):
    """Administrator account."""
    __tablename__ = 'admin'

    admin_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<Admin(id={self.admin_id}, username='{self.username}')>"


class Booking(Base):
    """
    Flight booking.

    Schedule, route and amount are copied from the flight at creation and
    never change; only the two status columns are updated.
    """
    __tablename__ = 'booking'

    booking_id = Column(Integer, primary_key=True, autoincrement=True)
    pnr = Column(String(12), nullable=False)
    user_id = Column(Integer, ForeignKey('app_user.user_id'), nullable=False, index=True)
    flight_id = Column(Integer, ForeignKey('flight.flight_id'), nullable=False, index=True)

    # Snapshot of the flight at booking time
    flight_code = Column(String(10), nullable=False)
    departure_airport_id = Column(Integer, ForeignKey('airport.airport_id'), nullable=False)
    destination_airport_id = Column(Integer, ForeignKey('airport.airport_id'), nullable=False)
    departure_time = Column(DateTime, nullable=False)
    arrival_time = Column(DateTime, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)

    booking_status = Column(
        SAEnum(BookingStatus, name='booking_status', native_enum=False),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    payment_status = Column(
        SAEnum(PaymentStatus, name='payment_status', native_enum=False),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    flight = relationship("Flight", back_populates="bookings", lazy="select")
    user = relationship("User", back_populates="bookings", lazy="select")

    __table_args__ = (
        UniqueConstraint('pnr', name='uq_booking_pnr'),
    )

    def __repr__(self):
        return f"<Booking(id={self.booking_id}, pnr='{self.pnr}', status={self.booking_status})>"


# Seat usage is counted per flight and status on every booking attempt
Index('idx_booking_flight_status', Booking.flight_id, Booking.booking_status)


def create_all_tables(engine):
    """
    Create all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine instance
    """
    Base.metadata.create_all(bind=engine)


def drop_all_tables(engine):
    """
    Drop all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine instance
    """
    Base.metadata.drop_all(bind=engine)


__all__ = [
    'Base',
    'Airport',
    'FlightOwner',
    'Flight',
    'User',
    'Admin',
    'Booking',
    'create_all_tables',
    'drop_all_tables'
]
