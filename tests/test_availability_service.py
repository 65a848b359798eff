"""
Tests for the AvailabilityService orchestration layer.
"""

from dataclasses import replace
from datetime import time
from typing import Dict, List

import pendulum
import pytest

from salonslots.domain.exceptions import InvalidInputError, NotFoundError, SlotUnavailableError
from salonslots.domain.models import (
    Booking,
    BookingStatus,
    BusinessHours,
    Service,
    SpecialDate,
)
from salonslots.domain.slot_calculator import SlotCalculator
from salonslots.services.availability import AvailabilityService

MONDAY = "2024-11-25"


class StubDataSource:
    """Minimal in-memory stub matching SalonDataSource."""

    def __init__(self, hours, services, bookings=None, special_dates=None):
        self.hours = hours
        self.services = services
        self.bookings: List[Booking] = list(bookings or [])
        self.special_dates: Dict[str, SpecialDate] = {s.date: s for s in special_dates or []}
        self.calls: List[str] = []

    def list_business_hours(self):
        self.calls.append("list_business_hours")
        return list(self.hours)

    def find_special_date(self, date):
        self.calls.append(f"find_special_date:{date}")
        return self.special_dates.get(date)

    def list_bookings(self, date, exclude_statuses=(BookingStatus.CANCELLED,)):
        self.calls.append(f"list_bookings:{date}")
        return [b for b in self.bookings if b.date == date and b.status not in exclude_statuses]

    def search_bookings(self, *, date=None, email=None, status=None):
        matches = [
            b for b in self.bookings
            if (date is None or b.date == date)
            and (email is None or b.email == email)
            and (status is None or b.status is status)
        ]
        return sorted(matches, key=lambda b: (b.date, b.time))

    def list_services(self):
        return list(self.services)

    def get_service(self, service_id):
        return next((s for s in self.services if str(s.id) == str(service_id)), None)

    def get_booking(self, booking_id):
        return next((b for b in self.bookings if str(b.id) == str(booking_id)), None)

    def create_booking(self, booking):
        stored = replace(booking, id=len(self.bookings) + 1)
        self.bookings.append(stored)
        return stored

    def update_booking(self, booking_id, **changes):
        for index, booking in enumerate(self.bookings):
            if str(booking.id) == str(booking_id):
                self.bookings[index] = replace(booking, **changes)
                return self.bookings[index]
        return None


HOURS = [
    BusinessHours(day_of_week=0, is_open=False),
    BusinessHours(day_of_week=1, is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
    BusinessHours(day_of_week=2, is_open=True, open_time=time(9, 0), close_time=time(17, 0)),
    BusinessHours(day_of_week=6, is_open=True, open_time=time(10, 0), close_time=time(16, 0)),
]

SERVICES = [
    Service(id=1, name="Braid Takedown", duration_minutes=60),
    Service(id=2, name="Knotless Box Braids", duration_minutes=300, duration_label="5-6 hours"),
]


def _build_service(bookings=None, special_dates=None) -> AvailabilityService:
    data_source = StubDataSource(HOURS, SERVICES, bookings=bookings, special_dates=special_dates)
    calculator = SlotCalculator(timezone="America/New_York")
    return AvailabilityService(data_source=data_source, slot_calculator=calculator)


class TestGetAvailableSlots:
    """Tests for slot lookup through the data source."""

    def test_fetches_inputs_for_the_date(self):
        service = _build_service()

        slots = service.get_available_slots(date=MONDAY, service_id=1)

        assert len(slots) == 8
        assert service._data_source.calls == [
            "list_business_hours",
            f"find_special_date:{MONDAY}",
            f"list_bookings:{MONDAY}",
        ]

    def test_booking_duration_comes_from_catalogue(self):
        """A knotless booking at 09:00 lasts five hours and blocks 09:00-13:00."""
        booking = Booking(date=MONDAY, time=time(9, 0), service_type="Knotless Box Braids",
                          status=BookingStatus.CONFIRMED)
        service = _build_service(bookings=[booking])

        slots = service.get_available_slots(date=MONDAY, service_id="1")

        assert [s.time for s in slots if not s.available] == ["09:00", "10:00", "11:00", "12:00", "13:00"]

    def test_booking_service_referenced_by_id(self):
        booking = Booking(date=MONDAY, time=time(9, 0), service_type="2", status=BookingStatus.PENDING)
        service = _build_service(bookings=[booking])

        slots = service.get_available_slots(date=MONDAY, service_id=1)

        assert sum(not s.available for s in slots) == 5

    def test_cancelled_bookings_are_not_fetched(self):
        booking = Booking(date=MONDAY, time=time(10, 0), service_type="Braid Takedown",
                          status=BookingStatus.CANCELLED)
        service = _build_service(bookings=[booking])

        slots = service.get_available_slots(date=MONDAY, service_id=1)

        assert all(slot.available for slot in slots)

    def test_special_date_is_applied(self):
        closed = SpecialDate(date=MONDAY, is_open=False, name="Staff Training")
        service = _build_service(special_dates=[closed])

        assert service.get_available_slots(date=MONDAY, service_id=1) == []

    def test_unknown_service(self):
        service = _build_service()

        with pytest.raises(NotFoundError, match="Unknown service: 99"):
            service.get_available_slots(date=MONDAY, service_id=99)

    def test_missing_service_id(self):
        service = _build_service()

        with pytest.raises(InvalidInputError):
            service.get_available_slots(date=MONDAY, service_id="")

    def test_invalid_date(self):
        service = _build_service()

        with pytest.raises(InvalidInputError):
            service.get_available_slots(date="tomorrow", service_id=1)


class TestOpenDates:
    """Tests for open date lookup."""

    def test_week_with_closed_days_and_override(self):
        """Sunday and days without hours are closed; special dates apply."""
        holiday = SpecialDate(date="2024-11-26", is_open=False, name="Thanksgiving prep")
        service = _build_service(special_dates=[holiday])

        dates = service.find_open_dates(start="2024-11-23", days=7)

        # Sat 23 open, Sun 24 closed, Mon 25 open, Tue 26 holiday, Wed-Fri no hours
        assert dates == ["2024-11-23", "2024-11-25"]

    def test_days_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            _build_service().find_open_dates(start=MONDAY, days=0)

    def test_override_with_unusable_times_stays_local(self):
        """An override opening after the default close only affects its own date."""
        late_start = SpecialDate(date="2024-11-27", is_open=True, name="Late opening", open_time=time(18, 0))
        service = _build_service(special_dates=[late_start])

        dates = service.find_open_dates(start=MONDAY, days=7)

        assert dates == ["2024-11-25", "2024-11-26", "2024-11-27", "2024-11-30"]
        with pytest.raises(InvalidInputError):
            service.get_available_slots(date="2024-11-27", service_id=1)


class TestBookAppointment:
    """Tests for booking creation."""

    def _book(self, service, **overrides):
        params = dict(
            date=MONDAY,
            time="10:00",
            service_id=1,
            name="Ama Mensah",
            email="ama@example.com",
            phone="5551234567",
        )
        params.update(overrides)
        return service.book_appointment(**params)

    def test_creates_pending_booking(self):
        service = _build_service()

        booking = self._book(service, notes="First visit")

        assert booking.id == 1
        assert booking.status is BookingStatus.PENDING
        assert booking.service_type == "Braid Takedown"
        assert booking.duration_minutes == 60
        assert booking.time_label == "10:00"
        assert booking.notes == "First visit"

    def test_booked_slot_is_then_unavailable(self):
        service = _build_service()
        self._book(service)

        slots = service.get_available_slots(date=MONDAY, service_id=1)

        assert {s.time: s.available for s in slots}["10:00"] is False

    def test_double_booking_is_rejected(self):
        service = _build_service()
        self._book(service)

        with pytest.raises(SlotUnavailableError):
            self._book(service, name="Jo Park", email="jo@example.com")

    def test_time_outside_grid_is_rejected(self):
        service = _build_service()

        with pytest.raises(SlotUnavailableError):
            self._book(service, time="10:30")

    def test_time_overrunning_close_is_rejected(self):
        service = _build_service()

        with pytest.raises(SlotUnavailableError):
            self._book(service, time="14:00", service_id=2)

    @pytest.mark.parametrize("field, value", [
        ("name", "A"),
        ("email", "not-an-email"),
        ("email", "ama@localhost"),
        ("phone", "12345"),
        ("time", "25:00"),
    ])
    def test_invalid_contact_details(self, field, value):
        service = _build_service()

        with pytest.raises(InvalidInputError):
            self._book(service, **{field: value})


class TestBookingUpdates:
    """Tests for status and deposit changes."""

    def _existing(self):
        booking = Booking(id=1, date=MONDAY, time=time(10, 0), service_type="Braid Takedown")
        return _build_service(bookings=[booking])

    def test_confirm_booking(self):
        updated = self._existing().update_booking_status(1, "confirmed")

        assert updated.status is BookingStatus.CONFIRMED

    def test_cancelling_frees_the_slot(self):
        service = self._existing()
        service.update_booking_status("1", BookingStatus.CANCELLED)

        slots = service.get_available_slots(date=MONDAY, service_id=1)

        assert all(slot.available for slot in slots)

    def test_unknown_status(self):
        with pytest.raises(InvalidInputError):
            self._existing().update_booking_status(1, "done")

    def test_unknown_booking(self):
        with pytest.raises(NotFoundError):
            self._existing().update_booking_status(42, "confirmed")

    def test_mark_deposit_paid(self):
        service = self._existing()

        assert service.mark_deposit_paid(1).deposit_paid is True
        assert service.mark_deposit_paid(1, paid=False).deposit_paid is False

    def test_mark_deposit_unknown_booking(self):
        with pytest.raises(NotFoundError):
            self._existing().mark_deposit_paid(42)


def test_business_hours_listed_monday_first():
    hours = _build_service().list_business_hours()

    assert [h.day_of_week for h in hours] == [1, 2, 6, 0]


class TestBookingListings:
    """Tests for booking listings and the reminder batch."""

    def _service(self):
        bookings = [
            Booking(id=1, date="2024-11-26", time=time(9, 0), service_type="Braid Takedown",
                    status=BookingStatus.CONFIRMED, name="Ama", email="ama@example.com"),
            Booking(id=2, date=MONDAY, time=time(14, 0), service_type="Braid Takedown",
                    status=BookingStatus.PENDING, name="Jo", email="jo@example.com"),
            Booking(id=3, date=MONDAY, time=time(10, 0), service_type="Braid Takedown",
                    status=BookingStatus.CONFIRMED, name="Ama", email="ama@example.com"),
            Booking(id=4, date="2024-11-26", time=time(11, 0), service_type="Braid Takedown",
                    status=BookingStatus.CANCELLED, name="Jo", email="jo@example.com"),
        ]
        return _build_service(bookings=bookings)

    def test_list_all_bookings_in_date_order(self):
        listed = self._service().list_bookings()

        assert [b.id for b in listed] == [3, 2, 1, 4]

    def test_list_bookings_for_one_client(self):
        listed = self._service().list_bookings(email=" ama@example.com ")

        assert [b.id for b in listed] == [3, 1]

    def test_blank_email_is_rejected(self):
        with pytest.raises(InvalidInputError):
            self._service().list_bookings(email="  ")

    def test_upcoming_confirmed_on_given_day(self):
        due = self._service().upcoming_confirmed("2024-11-26")

        assert [b.id for b in due] == [1]

    def test_upcoming_confirmed_defaults_to_tomorrow(self):
        tomorrow = pendulum.now("America/New_York").add(days=1).to_date_string()
        booking = Booking(id=1, date=tomorrow, time=time(9, 0), service_type="Braid Takedown",
                          status=BookingStatus.CONFIRMED)
        service = _build_service(bookings=[booking])

        assert [b.id for b in service.upcoming_confirmed()] == [1]

    def test_upcoming_confirmed_invalid_date(self):
        with pytest.raises(InvalidInputError):
            self._service().upcoming_confirmed("26/11/2024")
