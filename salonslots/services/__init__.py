"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, SalonDataSource

__all__ = ["AvailabilityService", "SalonDataSource"]
