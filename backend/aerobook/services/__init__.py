"""
Business logic services for the booking engine.

This module contains the seat inventory, record locator generation, the
booking state machine, reporting and the concurrent booking simulator.
"""

from .lock_manager import (
    BaseLockManager,
    LocalLockManager,
    ValkeyLockManager,
    LockInfo,
    create_lock_manager,
)
from .seat_inventory import SeatInventory, SeatHold
from .locator import LocatorGenerator, is_valid_pnr
from .booking_engine import (
    BookingEngine,
    BOOKING_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    can_transition_booking,
    can_transition_payment,
    create_booking_engine,
)
from .reports import BookingReportService
from .authentication import AuthenticationService
from .booking_simulator import BookingSimulator

__all__ = [
    'BaseLockManager',
    'LocalLockManager',
    'ValkeyLockManager',
    'LockInfo',
    'create_lock_manager',
    'SeatInventory',
    'SeatHold',
    'LocatorGenerator',
    'is_valid_pnr',
    'BookingEngine',
    'BOOKING_TRANSITIONS',
    'PAYMENT_TRANSITIONS',
    'can_transition_booking',
    'can_transition_payment',
    'create_booking_engine',
    'BookingReportService',
    'AuthenticationService',
    'BookingSimulator',
]
