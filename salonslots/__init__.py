"""
salonslots - Appointment slot availability for salon bookings.
"""

__version__ = "0.1.0"
