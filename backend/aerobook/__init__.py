"""
AeroBook booking engine.

The core of a flight-booking application:
1. Seat inventory with a no-oversell guarantee under concurrent booking
2. Unique, airline-prefixed record locators (PNRs)
3. Booking and payment status lifecycles
4. Salted password hashing for the surrounding account system

Storage, reference data and UI surfaces are pluggable collaborators.
"""

__version__ = "0.1.0"
