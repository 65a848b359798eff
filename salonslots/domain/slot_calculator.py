"""
Core business logic for calculating bookable appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from datetime import time
from typing import Iterable, List, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInputError
from .models import (
    Booking,
    BusinessHours,
    OpeningWindow,
    Service,
    SpecialDate,
    TimeRange,
    TimeSlot,
    day_of_week,
    parse_iso_date,
)


class SlotCalculator:
    """
    Calculates appointment slots for one date and one service.

    Algorithm:
    1. Resolve the effective hours (special date first, then the weekday default)
    2. Enumerate fixed-width slot starts that fit before closing and miss the break
    3. Mark each slot unavailable when it overlaps an active booking
    """

    def __init__(
        self,
        slot_interval_minutes: int = 60,
        default_open_time: time = time(9, 0),
        default_close_time: time = time(17, 0),
        timezone: str = "UTC",
    ):
        if slot_interval_minutes <= 0:
            raise InvalidInputError("slot_interval_minutes must be greater than zero")
        self.slot_interval_minutes = slot_interval_minutes
        self.default_open_time = default_open_time
        self.default_close_time = default_close_time
        self.timezone = timezone

    def calculate(
        self,
        date: str | DateTime,
        service: Service,
        business_hours: Sequence[BusinessHours],
        special_dates: Sequence[SpecialDate],
        bookings: Iterable[Booking],
    ) -> List[TimeSlot]:
        """
        Compute the slots for a service on a date.

        Args:
            date: ISO date string (YYYY-MM-DD) or a pendulum DateTime
            service: The requested service; its duration sizes every slot
            business_hours: Weekly default hours
            special_dates: Date overrides; only an exact date match applies
            bookings: Existing bookings; cancelled ones are ignored

        Returns:
            Ordered TimeSlot list, empty when the salon is closed or the
            window is too short for the service

        Raises:
            InvalidInputError: If the date is malformed
        """
        day = self._to_day(date)

        window = self.resolve_hours(day, business_hours, special_dates)
        if window is None:
            return []

        candidates = self.enumerate_slots(day, window, service.duration_minutes)

        return self.mark_conflicts(
            day,
            candidates,
            bookings,
            default_booking_minutes=service.duration_minutes,
        )

    def resolve_hours(
        self,
        date: str | DateTime,
        business_hours: Sequence[BusinessHours],
        special_dates: Sequence[SpecialDate],
    ) -> OpeningWindow | None:
        """
        Get the effective opening window for a date.
        Returns None if the salon is closed that day.
        """
        day = self._to_day(date)

        special = _special_for(day, special_dates)
        if special is not None:
            if not special.is_open:
                return None
            # Special dates without explicit times use the default window
            return OpeningWindow(
                open_time=special.open_time or self.default_open_time,
                close_time=special.close_time or self.default_close_time,
            )

        weekday = day_of_week(day)
        hours = next((h for h in business_hours if h.day_of_week == weekday), None)
        if hours is None:
            return None

        return hours.window()

    def enumerate_slots(
        self,
        day: DateTime,
        window: OpeningWindow,
        duration_minutes: int,
    ) -> List[TimeRange]:
        """
        Generate candidate slot ranges for an opening window.

        Slots start at the opening time and step by the slot interval. A slot
        must end at or before closing, and slots overlapping the break are
        dropped entirely.
        """
        if duration_minutes <= 0:
            raise InvalidInputError("Service duration must be greater than zero")

        closing = _at(day, window.close_time)

        break_range: TimeRange | None = None
        if window.has_break:
            break_range = TimeRange(
                start=_at(day, window.break_start),
                end=_at(day, window.break_end),
            )

        slots: List[TimeRange] = []
        current = TimeRange.on_day(day, window.open_time, duration_minutes)

        while current.end <= closing:
            if break_range is None or not current.overlaps(break_range):
                slots.append(current)

            start = current.start.add(minutes=self.slot_interval_minutes)
            current = TimeRange(start=start, end=start.add(minutes=duration_minutes))

        return slots

    def mark_conflicts(
        self,
        day: DateTime,
        candidates: Sequence[TimeRange],
        bookings: Iterable[Booking],
        default_booking_minutes: int,
    ) -> List[TimeSlot]:
        """
        Flag each candidate slot available or not.

        A booking without its own duration is assumed to last
        ``default_booking_minutes``.
        """
        iso_date = day.to_date_string()

        busy_ranges = [
            TimeRange.on_day(day, booking.time, booking.duration_minutes or default_booking_minutes)
            for booking in bookings
            if booking.is_active and booking.date == iso_date
        ]

        return [
            TimeSlot(
                time=candidate.start.format("HH:mm"),
                available=not any(candidate.overlaps(busy) for busy in busy_ranges),
            )
            for candidate in candidates
        ]

    def is_open(
        self,
        date: str | DateTime,
        business_hours: Sequence[BusinessHours],
        special_dates: Sequence[SpecialDate],
    ) -> bool:
        """
        Check whether the salon opens at all on a date.

        A special date answers from its own flag, so an override with
        unusable times still shows as open instead of failing the lookup.
        """
        special = _special_for(self._to_day(date), special_dates)
        if special is not None:
            return special.is_open
        return self.resolve_hours(date, business_hours, special_dates) is not None

    def _to_day(self, date: str | DateTime) -> DateTime:
        if isinstance(date, DateTime):
            return pendulum.datetime(date.year, date.month, date.day, tz=self.timezone)
        return parse_iso_date(date, tz=self.timezone)


def _at(day: DateTime, clock: time) -> DateTime:
    """Place a clock time on a given day."""
    return day.set(hour=clock.hour, minute=clock.minute, second=0, microsecond=0)


def _special_for(day: DateTime, special_dates: Sequence[SpecialDate]) -> SpecialDate | None:
    iso_date = day.to_date_string()
    return next((s for s in special_dates if s.date == iso_date), None)
