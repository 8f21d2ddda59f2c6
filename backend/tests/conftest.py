"""
Shared fixtures for the booking engine tests.

Flights depart well after the fixed clock used by the engine, so
departure checks only fire where a test moves the clock on purpose.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from aerobook.services.booking_engine import BookingEngine
from aerobook.stores.memory import MemoryStore

NOW = datetime(2030, 1, 1, 12, 0, 0)
DEPARTURE = NOW + timedelta(days=9)


@pytest.fixture
def store():
    """In-memory store with two airports, one airline and one user."""
    store = MemoryStore()
    store.add_airport(airport_code="JFK", airport_name="John F. Kennedy International",
                      city="New York", country="USA")
    store.add_airport(airport_code="LAX", airport_name="Los Angeles International",
                      city="Los Angeles", country="USA")
    store.add_owner(company_name="American Airlines", company_code="AA")
    store.add_user(first_name="Ada", last_name="Lovelace", email="ada@example.com")
    return store


@pytest.fixture
def make_flight(store):
    """Factory for flights operated by airline 1 from JFK to LAX."""
    def _make(capacity=1, price="250.00", code="AA100", departure=DEPARTURE, owner_id=1):
        return store.add_flight(
            flight_code=code,
            flight_name="New York - Los Angeles",
            owner_id=owner_id,
            departure_airport_id=1,
            destination_airport_id=2,
            departure_time=departure,
            arrival_time=departure + timedelta(hours=6),
            capacity=capacity,
            price=Decimal(price),
        )
    return _make


@pytest.fixture
def make_users(store):
    """Factory registering n more users, returning their ids."""
    def _make(n):
        start = len(store.users)
        return [
            store.add_user(first_name="User", last_name=str(i), email=f"user{i}@example.com").user_id
            for i in range(start, start + n)
        ]
    return _make


@pytest.fixture
def clock():
    """Mutable clock: tests move time forward by assigning clock.now."""
    class Clock:
        now = NOW

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def engine(store, clock):
    """Booking engine over the in-memory store with in-process locks."""
    return BookingEngine(flights=store, bookings=store, users=store, clock=clock)
