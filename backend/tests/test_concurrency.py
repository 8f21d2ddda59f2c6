"""
Concurrency tests: racing bookings must never oversell a flight.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal

import pytest

from aerobook.errors import SeatsExhaustedError
from aerobook.models.enums import BookingStatus
from aerobook.services.booking_engine import BookingEngine
from aerobook.services.lock_manager import ValkeyLockManager
from aerobook.stores.memory import MemoryStore

from conftest import DEPARTURE
from test_lock_manager import MockValkeyClient


class SlowStore(MemoryStore):
    """Widens the window between the seat check and the insert."""

    def insert(self, booking):
        time.sleep(0.002)
        return super().insert(booking)


def _race(engine, flight_id, user_ids):
    barrier = threading.Barrier(len(user_ids))

    def attempt(user_id):
        barrier.wait(timeout=10)
        try:
            return engine.create_booking(user_id, flight_id)
        except SeatsExhaustedError as e:
            return e

    with ThreadPoolExecutor(max_workers=len(user_ids)) as pool:
        return list(pool.map(attempt, user_ids))


@pytest.mark.parametrize("capacity,callers", [(1, 10), (5, 30), (20, 20)])
def test_exactly_capacity_bookings_succeed(store, engine, make_flight, make_users, capacity, callers):
    flight = make_flight(capacity=capacity)
    outcomes = _race(engine, flight.flight_id, make_users(callers))

    booked = [o for o in outcomes if not isinstance(o, Exception)]
    refused = [o for o in outcomes if isinstance(o, SeatsExhaustedError)]

    assert len(booked) == capacity
    assert len(refused) == callers - capacity
    assert len({b.pnr for b in booked}) == capacity
    assert store.count_confirmed_by_flight(flight.flight_id) == capacity
    assert engine.available_seats(flight.flight_id) == 0


def test_slow_inserts_still_never_oversell(clock):
    store = SlowStore()
    store.add_airport(airport_code="JFK", airport_name="JFK", city="New York", country="USA")
    store.add_airport(airport_code="LAX", airport_name="LAX", city="Los Angeles", country="USA")
    store.add_owner(company_name="American Airlines", company_code="AA")
    user_ids = [
        store.add_user(first_name="User", last_name=str(i), email=f"u{i}@example.com").user_id
        for i in range(25)
    ]
    flight = store.add_flight(
        flight_code="AA100", flight_name="New York - Los Angeles", owner_id=1,
        departure_airport_id=1, destination_airport_id=2,
        departure_time=DEPARTURE, arrival_time=DEPARTURE + timedelta(hours=6),
        capacity=3, price=Decimal("99.00"),
    )
    engine = BookingEngine(store, store, users=store, clock=clock)

    outcomes = _race(engine, flight.flight_id, user_ids)

    assert sum(not isinstance(o, Exception) for o in outcomes) == 3
    assert store.count_confirmed_by_flight(flight.flight_id) == 3


def test_two_engines_sharing_valkey_locks(store, clock, make_flight, make_users):
    client = MockValkeyClient()
    engines = [
        BookingEngine(store, store, users=store, clock=clock,
                      lock_manager=ValkeyLockManager(client, retry_delay=0.001))
        for _ in range(2)
    ]
    flight = make_flight(capacity=4)
    user_ids = make_users(16)
    barrier = threading.Barrier(len(user_ids))

    def attempt(index):
        barrier.wait(timeout=10)
        try:
            engines[index % 2].create_booking(user_ids[index], flight.flight_id)
            return True
        except SeatsExhaustedError:
            return False

    with ThreadPoolExecutor(max_workers=len(user_ids)) as pool:
        results = list(pool.map(attempt, range(len(user_ids))))

    assert results.count(True) == 4
    assert store.count_confirmed_by_flight(flight.flight_id) == 4


def test_cancellations_racing_bookings(store, engine, make_flight, make_users):
    flight = make_flight(capacity=2)
    holders = make_users(2)
    first = engine.create_booking(holders[0], flight.flight_id)
    engine.create_booking(holders[1], flight.flight_id)

    contenders = make_users(8)
    barrier = threading.Barrier(len(contenders) + 1)

    def cancel():
        barrier.wait(timeout=10)
        return engine.cancel_booking(first.booking_id)

    def book(user_id):
        barrier.wait(timeout=10)
        try:
            return engine.create_booking(user_id, flight.flight_id)
        except SeatsExhaustedError:
            return None

    with ThreadPoolExecutor(max_workers=len(contenders) + 1) as pool:
        cancelled = pool.submit(cancel)
        booked = [pool.submit(book, uid) for uid in contenders]
        cancelled.result()
        new_bookings = [f.result() for f in booked if f.result() is not None]

    assert len(new_bookings) <= 1
    confirmed = [
        b for b in store.list_bookings(flight_id=flight.flight_id)
        if b.booking_status == BookingStatus.CONFIRMED
    ]
    assert len(confirmed) <= flight.capacity


def test_different_flights_do_not_block_each_other(store, engine, make_flight):
    busy = make_flight(code="AA100", capacity=1)
    free = make_flight(code="AA200", capacity=1)

    with engine.locks.lock_flight(busy.flight_id):
        booking = engine.create_booking(1, free.flight_id)

    assert booking.flight_id == free.flight_id
