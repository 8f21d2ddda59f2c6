"""
Exception taxonomy for the booking engine.

Every failure an operation can surface is a subclass of BookingEngineError,
so callers can catch the whole family or a specific kind.
"""

from typing import Any, Optional


class BookingEngineError(Exception):
    """Base class for all booking engine failures."""
    pass


class NotFoundError(BookingEngineError):
    """A referenced flight, user or booking does not exist."""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class SeatsExhaustedError(BookingEngineError):
    """No seats left on the flight. A normal business outcome."""

    def __init__(self, flight_id: int):
        self.flight_id = flight_id
        super().__init__(f"No seats available on flight {flight_id}")


class InvalidTransitionError(BookingEngineError):
    """Illegal move in the booking or payment state machine."""

    def __init__(self, field: str, current: Any, attempted: Any, reason: Optional[str] = None):
        self.field = field
        self.current = current
        self.attempted = attempted
        message = f"Cannot move {field} from {_value(current)} to {_value(attempted)}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotCancellableError(InvalidTransitionError):
    """The booking is already cancelled or its flight has departed."""

    def __init__(self, booking_id: int, current: Any, reason: str):
        self.booking_id = booking_id
        super().__init__("booking_status", current, "CANCELLED", reason)


class PnrConflictError(BookingEngineError):
    """The record locator is already taken by another booking."""

    def __init__(self, pnr: str):
        self.pnr = pnr
        super().__init__(f"PNR already exists: {pnr}")


class LocatorSpaceExhaustedError(BookingEngineError):
    """No unused record locator was found within the attempt limit."""

    def __init__(self, airline_code: str, attempts: int):
        self.airline_code = airline_code
        self.attempts = attempts
        super().__init__(
            f"Could not generate a unique PNR for airline {airline_code} "
            f"after {attempts} attempts"
        )


class StorageFailureError(BookingEngineError):
    """The underlying persistence layer failed."""
    pass


class LockTimeoutError(StorageFailureError):
    """The per-flight lock could not be acquired in time."""

    def __init__(self, resource_key: str, waited_seconds: float):
        self.resource_key = resource_key
        self.waited_seconds = waited_seconds
        super().__init__(f"Timed out after {waited_seconds:.1f}s waiting for lock {resource_key}")


class PermissionDeniedError(BookingEngineError):
    """The session context is not allowed to perform the operation."""
    pass


class FlightDepartedError(BookingEngineError):
    """The flight has already departed and can no longer be booked."""

    def __init__(self, flight_id: int):
        self.flight_id = flight_id
        super().__init__(f"Flight {flight_id} has already departed")


class FlightInUseError(BookingEngineError):
    """Bookings still reference the flight."""

    def __init__(self, flight_id: int, action: str):
        self.flight_id = flight_id
        self.action = action
        super().__init__(f"Cannot {action} flight {flight_id}: bookings reference it")


class AuthenticationError(BookingEngineError):
    """Unknown account or wrong password. The message never says which."""

    def __init__(self, role: Any):
        self.role = role
        super().__init__(f"Invalid credentials for {_value(role).lower()} login")


def _value(status: Any) -> str:
    return getattr(status, "value", str(status))
