"""
REST client for the salon's hosted database (PostgREST conventions).
"""

from typing import Any, Dict, List, Sequence

import requests

from ..domain.exceptions import DataStoreError
from ..domain.models import (
    Booking,
    BookingStatus,
    BusinessHours,
    Service,
    SpecialDate,
)
from .records import parse_records


class RestDataStore:
    """
    Client for the hosted backend's auto-generated REST API.

    Tables are queried with PostgREST filters, e.g.
    ``GET /rest/v1/bookings?date=eq.2024-11-25&status=not.in.(cancelled)``.
    """

    API_PATH = "/rest/v1"

    def __init__(self, base_url: str, api_key: str, timeout: int = 30):
        """
        Initialize the REST client.

        Args:
            base_url: Project URL of the hosted backend
            api_key: Service or anon key sent as ``apikey`` and bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/") + self.API_PATH
        self.timeout = timeout
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        table: str,
        params: Dict[str, str],
        payload: Dict[str, Any] | None = None,
    ) -> List[Dict[str, Any]]:
        """
        Send a request for one table and return the decoded rows.

        Raises:
            DataStoreError: If the request fails or returns something other than a list
        """
        url = f"{self.base_url}/{table}"
        headers = dict(self.headers)
        if method != "GET":
            headers["Prefer"] = "return=representation"

        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise DataStoreError(f"Request to {table} failed: {e}") from e
        except ValueError as e:
            raise DataStoreError(f"Invalid JSON returned for {table}: {e}") from e

        if not isinstance(data, list):
            raise DataStoreError(f"Unexpected response for {table}: expected a list of rows")

        return data

    def list_business_hours(self) -> List[BusinessHours]:
        rows = self._request("GET", "business_hours", {"select": "*", "order": "day_of_week"})
        return parse_records(rows, BusinessHours.from_record, "business_hours")

    def find_special_date(self, date: str) -> SpecialDate | None:
        rows = self._request("GET", "special_dates", {"select": "*", "date": f"eq.{date}"})
        special_dates = parse_records(rows, SpecialDate.from_record, "special_dates")
        return special_dates[0] if special_dates else None

    def list_bookings(
        self,
        date: str,
        exclude_statuses: Sequence[BookingStatus] = (BookingStatus.CANCELLED,),
    ) -> List[Booking]:
        params = {"select": "*", "date": f"eq.{date}", "order": "time"}
        if exclude_statuses:
            excluded = ",".join(BookingStatus.parse(status).value for status in exclude_statuses)
            params["status"] = f"not.in.({excluded})"

        rows = self._request("GET", "bookings", params)
        return parse_records(rows, Booking.from_record, "bookings", strict=True)

    def search_bookings(
        self,
        *,
        date: str | None = None,
        email: str | None = None,
        status: BookingStatus | None = None,
    ) -> List[Booking]:
        """Return bookings matching every given filter, ordered by date and time."""
        params = {"select": "*", "order": "date,time"}
        if date is not None:
            params["date"] = f"eq.{date}"
        if email is not None:
            params["email"] = f"eq.{email}"
        if status is not None:
            params["status"] = f"eq.{BookingStatus.parse(status).value}"

        rows = self._request("GET", "bookings", params)
        return parse_records(rows, Booking.from_record, "bookings", strict=True)

    def list_services(self) -> List[Service]:
        rows = self._request("GET", "services", {"select": "*", "order": "id"})
        return parse_records(rows, Service.from_record, "services")

    def get_service(self, service_id: int | str) -> Service | None:
        row_id = _row_id(service_id)
        if row_id is None:
            return None

        rows = self._request("GET", "services", {"select": "*", "id": f"eq.{row_id}"})
        services = parse_records(rows, Service.from_record, "services")
        return services[0] if services else None

    def get_booking(self, booking_id: int | str) -> Booking | None:
        row_id = _row_id(booking_id)
        if row_id is None:
            return None

        rows = self._request("GET", "bookings", {"select": "*", "id": f"eq.{row_id}"})
        bookings = parse_records(rows, Booking.from_record, "bookings", strict=True)
        return bookings[0] if bookings else None

    def create_booking(self, booking: Booking) -> Booking:
        """Insert a booking and return the stored row."""
        rows = self._request("POST", "bookings", {}, payload=booking.to_record())
        if not rows:
            raise DataStoreError("Backend did not return the created booking")
        return Booking.from_record(rows[0])

    def update_booking(self, booking_id: int | str, **changes: Any) -> Booking | None:
        """Patch a booking. Returns None if no row matched."""
        row_id = _row_id(booking_id)
        if row_id is None:
            return None

        payload = {
            key: value.value if isinstance(value, BookingStatus) else value
            for key, value in changes.items()
        }
        rows = self._request("PATCH", "bookings", {"id": f"eq.{row_id}"}, payload=payload)
        return Booking.from_record(rows[0]) if rows else None


def _row_id(value: int | str) -> int | None:
    """Primary keys are serial integers; anything else can't match a row."""
    if isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None
