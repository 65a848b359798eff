"""
Domain-specific exception hierarchy for the salon booking application.
"""


class SalonSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(SalonSlotsError, ValueError):
    """Raised when a date, time, record or parameter is malformed or missing."""


class NotFoundError(SalonSlotsError, LookupError):
    """Raised when a service or booking cannot be found."""


class SlotUnavailableError(SalonSlotsError):
    """Raised when a requested appointment time is not bookable."""


class DataStoreError(SalonSlotsError):
    """Raised when salon data cannot be fetched, parsed or stored."""
