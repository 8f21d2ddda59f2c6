"""
Database package for the booking engine.

This package provides SQLAlchemy models and database configuration
backing the SQL storage collaborator.
"""

from .models import (
    Base,
    Airport,
    FlightOwner,
    Flight,
    User,
    Admin,
    Booking,
    create_all_tables,
    drop_all_tables
)

from .config import (
    DatabaseConfig,
    initialize_database,
)

__all__ = [
    # Models
    'Base',
    'Airport',
    'FlightOwner',
    'Flight',
    'User',
    'Admin',
    'Booking',
    'create_all_tables',
    'drop_all_tables',

    # Configuration
    'DatabaseConfig',
    'initialize_database',
]
