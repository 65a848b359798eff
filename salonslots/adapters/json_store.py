"""
File-backed salon data store for offline use and testing.
"""

import json
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..domain.exceptions import DataStoreError, SlotUnavailableError
from ..domain.models import (
    Booking,
    BookingStatus,
    BusinessHours,
    Service,
    SpecialDate,
)
from .records import parse_records

SECTIONS = ("business_hours", "special_dates", "services", "bookings")


class JsonDataStore:
    """
    Data store that keeps salon hours, services and bookings in one JSON file.

    File layout::

        {
            "business_hours": [{"day_of_week": 1, "is_open": true, ...}],
            "special_dates": [{"date": "2024-12-25", "is_open": false, ...}],
            "services": [{"id": 1, "name": "...", "duration_minutes": 240}],
            "bookings": [{"id": 1, "date": "...", "time": "10:00", ...}]
        }

    Writes are serialised with a lock, and a second active booking on the
    same date and time is rejected.
    """

    def __init__(self, data_file: Path):
        """
        Initialize the store.

        Args:
            data_file: Path to the JSON file. A missing file starts empty and
                is created on the first write.
        """
        self.data_file = Path(data_file)
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        """Load salon data from the JSON file."""
        if not self.data_file.exists():
            return {section: [] for section in SECTIONS}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataStoreError(f"Could not read salon data from {self.data_file}: {e}") from e

        if not isinstance(raw, dict):
            raise DataStoreError(f"Salon data file {self.data_file} must contain a JSON object")

        data: Dict[str, List[Dict[str, Any]]] = {}
        for section in SECTIONS:
            rows = raw.get(section) or []
            if not isinstance(rows, list):
                raise DataStoreError(f"Section '{section}' in {self.data_file} must be a list")
            data[section] = rows

        return data

    def _save(self) -> None:
        """Write salon data back to disk, replacing the file atomically."""
        tmp_file = self.data_file.with_suffix(self.data_file.suffix + ".tmp")
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            tmp_file.replace(self.data_file)
        except OSError as e:
            raise DataStoreError(f"Could not write salon data to {self.data_file}: {e}") from e

    def list_business_hours(self) -> List[BusinessHours]:
        return parse_records(self._data["business_hours"], BusinessHours.from_record, "business_hours")

    def find_special_date(self, date: str) -> SpecialDate | None:
        special_dates = parse_records(self._data["special_dates"], SpecialDate.from_record, "special_dates")
        return next((s for s in special_dates if s.date == date), None)

    def _bookings(self) -> List[Booking]:
        return parse_records(self._data["bookings"], Booking.from_record, "bookings", strict=True)

    def list_bookings(
        self,
        date: str,
        exclude_statuses: Sequence[BookingStatus] = (BookingStatus.CANCELLED,),
    ) -> List[Booking]:
        return [
            booking for booking in self._bookings()
            if booking.date == date and booking.status not in exclude_statuses
        ]

    def search_bookings(
        self,
        *,
        date: str | None = None,
        email: str | None = None,
        status: BookingStatus | None = None,
    ) -> List[Booking]:
        """Return bookings matching every given filter, ordered by date and time."""
        matches = [
            booking for booking in self._bookings()
            if (date is None or booking.date == date)
            and (email is None or booking.email == email)
            and (status is None or booking.status is status)
        ]
        return sorted(matches, key=lambda b: (b.date, b.time))

    def list_services(self) -> List[Service]:
        return parse_records(self._data["services"], Service.from_record, "services")

    def get_service(self, service_id: int | str) -> Service | None:
        return next(
            (s for s in self.list_services() if str(s.id) == str(service_id)),
            None,
        )

    def get_booking(self, booking_id: int | str) -> Booking | None:
        return next((b for b in self._bookings() if str(b.id) == str(booking_id)), None)

    def create_booking(self, booking: Booking) -> Booking:
        """
        Persist a new booking and return it with its assigned id.

        Raises:
            SlotUnavailableError: If an active booking already holds that date and time
        """
        with self._lock:
            for existing in self.list_bookings(booking.date):
                if existing.time == booking.time:
                    raise SlotUnavailableError(
                        f"{booking.date} {booking.time_label} is already booked"
                    )

            existing_ids = [
                row["id"] for row in self._data["bookings"]
                if isinstance(row, dict) and isinstance(row.get("id"), int)
            ]
            stored = replace(booking, id=max(existing_ids, default=0) + 1)

            previous = self._data["bookings"]
            self._data["bookings"] = previous + [stored.to_record()]
            try:
                self._save()
            except DataStoreError:
                self._data["bookings"] = previous
                raise

        return stored

    def update_booking(self, booking_id: int | str, **changes: Any) -> Booking | None:
        """Apply field changes to a booking. Returns None if it doesn't exist."""
        with self._lock:
            previous = self._data["bookings"]
            for index, row in enumerate(previous):
                if isinstance(row, dict) and str(row.get("id")) == str(booking_id):
                    updated = dict(row)
                    updated.update({
                        key: value.value if isinstance(value, BookingStatus) else value
                        for key, value in changes.items()
                    })

                    self._data["bookings"] = previous[:index] + [updated] + previous[index + 1:]
                    try:
                        self._save()
                    except DataStoreError:
                        self._data["bookings"] = previous
                        raise
                    return Booking.from_record(updated)

        return None
