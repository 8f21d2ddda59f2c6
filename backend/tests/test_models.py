"""
Pytest tests for Pydantic models.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pydantic import ValidationError

from aerobook.models import *
from aerobook.models.flight import naive_local

DEPARTURE = datetime(2030, 1, 10, 8, 0)


def make_flight_model(**overrides):
    fields = dict(
        flight_id=1,
        flight_code="AA100",
        owner_id=1,
        airline_code="AA",
        departure_airport_id=1,
        destination_airport_id=2,
        departure_time=DEPARTURE,
        arrival_time=DEPARTURE + timedelta(hours=6),
        capacity=150,
        price=Decimal("250.00"),
    )
    fields.update(overrides)
    return FlightModel(**fields)


class TestEnums:
    """Test status enumerations."""

    def test_booking_status_values(self):
        assert [s.value for s in BookingStatus] == ["PENDING", "CONFIRMED", "CANCELLED"]

    def test_payment_status_values(self):
        assert [s.value for s in PaymentStatus] == ["PENDING", "COMPLETED", "FAILED"]

    def test_status_from_string(self):
        assert BookingStatus("CANCELLED") is BookingStatus.CANCELLED
        with pytest.raises(ValueError):
            PaymentStatus("REFUNDED")


class TestFlightModels:
    """Test flight and airline models."""

    def test_flight_model(self):
        flight = make_flight_model()
        assert flight.flight_code == "AA100"
        assert flight.capacity == 150
        assert flight.price == Decimal("250.00")

    def test_arrival_must_follow_departure(self):
        with pytest.raises(ValidationError):
            make_flight_model(arrival_time=DEPARTURE)
        with pytest.raises(ValidationError):
            make_flight_model(arrival_time=DEPARTURE - timedelta(hours=1))

    def test_capacity_and_price_positive(self):
        with pytest.raises(ValidationError):
            make_flight_model(capacity=0)
        with pytest.raises(ValidationError):
            make_flight_model(price=Decimal("0"))

    def test_same_airport_rejected(self):
        with pytest.raises(ValidationError):
            make_flight_model(destination_airport_id=1)

    def test_owner_code_pattern(self):
        owner = FlightOwnerModel(owner_id=1, company_name="American Airlines", company_code="AA")
        assert owner.company_code == "AA"
        with pytest.raises(ValidationError):
            FlightOwnerModel(owner_id=2, company_name="Bad", company_code="a-a")

    def test_aware_times_become_naive_local(self):
        aware = datetime(2030, 1, 10, 8, 0, tzinfo=timezone.utc)
        flight = make_flight_model(departure_time=aware, arrival_time=aware + timedelta(hours=6))
        assert flight.departure_time.tzinfo is None
        assert flight.departure_time == aware.astimezone().replace(tzinfo=None)
        assert flight.arrival_time - flight.departure_time == timedelta(hours=6)
        assert naive_local(DEPARTURE) is DEPARTURE

    def test_availability_result(self):
        result = FlightAvailabilityModel(flight=make_flight_model(), available_seats=0)
        assert result.is_full
        with pytest.raises(ValidationError):
            FlightAvailabilityModel(flight=make_flight_model(), available_seats=-1)


class TestBookingModels:
    """Test booking snapshot models."""

    def test_snapshot_copies_flight(self):
        flight = make_flight_model()
        snapshot = NewBookingModel.from_flight("AA7K2P9X", 7, flight, created_at=datetime(2030, 1, 1))

        assert snapshot.pnr == "AA7K2P9X"
        assert snapshot.flight_id == flight.flight_id
        assert snapshot.departure_time == flight.departure_time
        assert snapshot.arrival_time == flight.arrival_time
        assert snapshot.amount == Decimal("250.00")
        assert snapshot.booking_status == BookingStatus.CONFIRMED
        assert snapshot.payment_status == PaymentStatus.PENDING

    def test_booking_is_frozen(self):
        flight = make_flight_model()
        booking = BookingModel(booking_id=1, **NewBookingModel.from_flight("AA7K2P9X", 7, flight).model_dump())
        with pytest.raises(ValidationError):
            booking.amount = Decimal("1.00")

    def test_is_cancellable(self):
        flight = make_flight_model()
        booking = BookingModel(booking_id=1, **NewBookingModel.from_flight("AA7K2P9X", 7, flight).model_dump())

        assert booking.is_cancellable(DEPARTURE - timedelta(minutes=1))
        assert not booking.is_cancellable(DEPARTURE)
        cancelled = booking.model_copy(update={"booking_status": BookingStatus.CANCELLED})
        assert not cancelled.is_cancellable(DEPARTURE - timedelta(days=1))

    def test_is_cancellable_with_aware_now(self):
        flight = make_flight_model()
        booking = BookingModel(booking_id=1, **NewBookingModel.from_flight("AA7K2P9X", 7, flight).model_dump())
        before = (DEPARTURE - timedelta(minutes=1)).astimezone(timezone.utc)
        assert booking.is_cancellable(before)
        assert not booking.is_cancellable(DEPARTURE.astimezone(timezone.utc))


class TestSessionContext:
    """Test explicit session context."""

    def test_roles(self):
        assert SessionContext(principal_id=1, role=UserRole.ADMIN).is_admin
        assert not SessionContext(principal_id=1).is_admin

    def test_user_full_name(self):
        user = UserModel(user_id=1, first_name="Ada", last_name="Lovelace", email="ada@example.com")
        assert user.full_name == "Ada Lovelace"

    def test_admin_hash_hidden_from_repr(self):
        admin = AdminModel(admin_id=1, username="root", password_hash="c2FsdA==:ZGlnZXN0")
        assert "c2FsdA" not in repr(admin)
        with pytest.raises(ValidationError):
            AdminModel(admin_id=2, username="")
