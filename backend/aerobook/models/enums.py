"""
Enums for the booking engine.

This module contains the enumerated status values of the booking and
payment lifecycles, plus the roles a session can act under.
"""

from enum import Enum


class BookingStatus(str, Enum):
    """Booking lifecycle status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"    # Occupies a seat against flight capacity
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Payment lifecycle status, independent of the booking status."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UserRole(str, Enum):
    """Role of the principal behind a session."""
    USER = "USER"
    OWNER = "OWNER"      # Airline operator
    ADMIN = "ADMIN"
