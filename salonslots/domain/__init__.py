"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    DataStoreError,
    InvalidInputError,
    NotFoundError,
    SalonSlotsError,
    SlotUnavailableError,
)
from .models import (
    Booking,
    BookingStatus,
    BusinessHours,
    OpeningWindow,
    Service,
    SpecialDate,
    TimeRange,
    TimeSlot,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "Booking",
    "BookingStatus",
    "BusinessHours",
    "DataStoreError",
    "InvalidInputError",
    "NotFoundError",
    "OpeningWindow",
    "SalonSlotsError",
    "Service",
    "SlotCalculator",
    "SlotUnavailableError",
    "SpecialDate",
    "TimeRange",
    "TimeSlot",
]
