"""
Storage collaborators for the booking engine.
"""

from .base import FlightDirectory, UserDirectory, AccountDirectory, BookingStore
from .memory import MemoryStore
from .sql import SqlStore

__all__ = [
    'FlightDirectory',
    'UserDirectory',
    'AccountDirectory',
    'BookingStore',
    'MemoryStore',
    'SqlStore',
]
