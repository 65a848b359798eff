"""
Application services for salon appointment availability and bookings.

The service fetches schedule and booking data through a data-source adapter
and delegates the slot computation to the domain-level ``SlotCalculator``.
This keeps the CLI thin and lets tests plug in a stub data source.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, List, Protocol, Sequence

import pendulum

from ..domain.exceptions import InvalidInputError, NotFoundError, SlotUnavailableError
from ..domain.models import (
    Booking,
    BookingStatus,
    BusinessHours,
    Service,
    SpecialDate,
    TimeSlot,
    format_clock_time,
    parse_clock_time,
    parse_iso_date,
)
from ..domain.slot_calculator import SlotCalculator

# local part, "@", and a domain with at least one dot
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SalonDataSource(Protocol):
    """Protocol describing the data access needed by the service."""

    def list_business_hours(self) -> List[BusinessHours]:
        """Return the weekly default hours."""

    def find_special_date(self, date: str) -> SpecialDate | None:
        """Return the override for an exact date, if any."""

    def list_bookings(
        self,
        date: str,
        exclude_statuses: Sequence[BookingStatus] = (BookingStatus.CANCELLED,),
    ) -> List[Booking]:
        """Return bookings on a date, without the excluded statuses."""

    def search_bookings(
        self,
        *,
        date: str | None = None,
        email: str | None = None,
        status: BookingStatus | None = None,
    ) -> List[Booking]:
        """Return bookings matching every given filter, ordered by date and time."""

    def list_services(self) -> List[Service]:
        """Return the service catalogue."""

    def get_service(self, service_id: int | str) -> Service | None:
        """Return one service or None."""

    def get_booking(self, booking_id: int | str) -> Booking | None:
        """Return one booking or None."""

    def create_booking(self, booking: Booking) -> Booking:
        """Persist a booking and return it with its id."""

    def update_booking(self, booking_id: int | str, **changes: Any) -> Booking | None:
        """Apply changes to a booking, returning None if it doesn't exist."""


class AvailabilityService:
    """
    Orchestrates data retrieval, slot calculation and booking bookkeeping.
    """

    def __init__(
        self,
        data_source: SalonDataSource,
        slot_calculator: SlotCalculator,
    ) -> None:
        self._data_source = data_source
        self._slot_calculator = slot_calculator

    def get_available_slots(self, *, date: str, service_id: int | str) -> List[TimeSlot]:
        """
        Compute the slots for a service on a date.

        Raises:
            InvalidInputError: If the date is malformed or the service id missing
            NotFoundError: If the service doesn't exist
        """
        day = parse_iso_date(date, tz=self._slot_calculator.timezone)
        service = self.get_service(service_id)
        iso_date = day.to_date_string()

        business_hours = self._data_source.list_business_hours()
        special_date = self._data_source.find_special_date(iso_date)
        bookings = self._data_source.list_bookings(iso_date)

        return self._slot_calculator.calculate(
            date=day,
            service=service,
            business_hours=business_hours,
            special_dates=[special_date] if special_date else [],
            bookings=self._with_durations(bookings),
        )

    def get_service(self, service_id: int | str) -> Service:
        """Look up a service, raising NotFoundError if it is unknown."""
        if service_id is None or str(service_id).strip() == "":
            raise InvalidInputError("A service id is required")

        service = self._data_source.get_service(service_id)
        if service is None:
            raise NotFoundError(f"Unknown service: {service_id}")
        return service

    def list_services(self) -> List[Service]:
        return self._data_source.list_services()

    def list_business_hours(self) -> List[BusinessHours]:
        """Weekly hours ordered Monday through Sunday."""
        hours = self._data_source.list_business_hours()
        return sorted(hours, key=lambda h: (h.day_of_week - 1) % 7)

    def find_open_dates(self, *, start: str, days: int) -> List[str]:
        """
        List the dates in ``[start, start + days)`` on which the salon opens.
        """
        if days <= 0:
            raise InvalidInputError("days must be greater than zero")

        first_day = parse_iso_date(start, tz=self._slot_calculator.timezone)
        business_hours = self._data_source.list_business_hours()

        open_dates: List[str] = []
        for offset in range(days):
            iso_date = first_day.add(days=offset).to_date_string()
            special_date = self._data_source.find_special_date(iso_date)
            if self._slot_calculator.is_open(
                iso_date,
                business_hours,
                [special_date] if special_date else [],
            ):
                open_dates.append(iso_date)

        return open_dates

    def book_appointment(
        self,
        *,
        date: str,
        time: str,
        service_id: int | str,
        name: str,
        email: str,
        phone: str,
        notes: str | None = None,
    ) -> Booking:
        """
        Create a pending booking after re-checking that the slot is free.

        Raises:
            InvalidInputError: If contact details or date/time are malformed
            NotFoundError: If the service doesn't exist
            SlotUnavailableError: If the time isn't an available slot
        """
        self._validate_contact(name=name, email=email, phone=phone)
        start = parse_clock_time(time)
        service = self.get_service(service_id)
        iso_date = parse_iso_date(date, tz=self._slot_calculator.timezone).to_date_string()

        slots = self.get_available_slots(date=iso_date, service_id=service.id)
        label = format_clock_time(start)
        slot = next((s for s in slots if s.time == label), None)
        if slot is None or not slot.available:
            raise SlotUnavailableError(f"{service.name} cannot be booked on {iso_date} at {label}")

        booking = Booking(
            date=iso_date,
            time=start,
            service_type=service.name,
            status=BookingStatus.PENDING,
            name=name.strip(),
            email=email.strip(),
            phone=phone.strip(),
            notes=notes,
            duration_minutes=service.duration_minutes,
        )
        return self._data_source.create_booking(booking)

    def update_booking_status(self, booking_id: int | str, status: str | BookingStatus) -> Booking:
        """Change a booking's status (pending, confirmed, cancelled)."""
        new_status = BookingStatus.parse(status)
        updated = self._data_source.update_booking(booking_id, status=new_status)
        if updated is None:
            raise NotFoundError(f"Unknown booking: {booking_id}")
        return updated

    def mark_deposit_paid(self, booking_id: int | str, paid: bool = True) -> Booking:
        """Record whether the booking's deposit has been paid."""
        updated = self._data_source.update_booking(booking_id, deposit_paid=paid)
        if updated is None:
            raise NotFoundError(f"Unknown booking: {booking_id}")
        return updated

    def list_bookings(self, email: str | None = None) -> List[Booking]:
        """
        List bookings ordered by date and time.

        Args:
            email: Only return this client's bookings

        Raises:
            InvalidInputError: If ``email`` is given but blank
        """
        if email is not None:
            email = email.strip()
            if not email:
                raise InvalidInputError("A client email is required")

        return self._data_source.search_bookings(email=email)

    def upcoming_confirmed(self, day: str | None = None) -> List[Booking]:
        """
        Confirmed bookings on ``day`` (tomorrow by default), i.e. the clients
        due a reminder.
        """
        if day is None:
            target = pendulum.now(self._slot_calculator.timezone).add(days=1)
        else:
            target = parse_iso_date(day, tz=self._slot_calculator.timezone)

        return self._data_source.search_bookings(
            date=target.to_date_string(),
            status=BookingStatus.CONFIRMED,
        )

    def _with_durations(self, bookings: List[Booking]) -> List[Booking]:
        """
        Fill in booking durations from the service catalogue.

        Bookings whose service can't be matched keep no duration, so the
        calculator falls back to the requested service's duration.
        """
        if all(booking.duration_minutes for booking in bookings):
            return bookings

        catalogue = self._data_source.list_services()
        resolved: List[Booking] = []

        for booking in bookings:
            if not booking.duration_minutes:
                match = next((s for s in catalogue if s.matches(booking.service_type)), None)
                if match is not None:
                    booking = replace(booking, duration_minutes=match.duration_minutes)
            resolved.append(booking)

        return resolved

    @staticmethod
    def _validate_contact(*, name: str, email: str, phone: str) -> None:
        if not name or len(name.strip()) < 2:
            raise InvalidInputError("Name must be at least 2 characters")
        if not email or not _EMAIL_PATTERN.match(email.strip()):
            raise InvalidInputError("Please enter a valid email address")
        if not phone or len(phone.strip()) < 10:
            raise InvalidInputError("Phone number must be at least 10 digits")
