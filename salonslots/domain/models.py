"""
Domain models for salon hours, bookings, services and time slots.
"""

import re
from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Any, Dict, Mapping

import pendulum
from pendulum import DateTime

from .duration import format_duration, parse_duration_minutes
from .exceptions import InvalidInputError

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_clock_time(value: Any) -> time:
    """
    Parse an "HH:MM" (or "HH:MM:SS") string into a time.

    The booking form stores 12-hour labels such as "2:00 PM", so an
    AM/PM suffix is accepted too.

    Raises:
        InvalidInputError: If the value is not a valid clock time
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    match = _CLOCK_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidInputError(f"Invalid time {value!r}, expected HH:MM")

    hour, minute = int(match.group(1)), int(match.group(2))
    meridiem = match.group(4)
    if meridiem is not None:
        if not 1 <= hour <= 12:
            raise InvalidInputError(f"Invalid time {value!r}, hour must be 1-12 with AM/PM")
        hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)

    if hour > 23 or minute > 59:
        raise InvalidInputError(f"Invalid time {value!r}, expected HH:MM")

    return time(hour=hour, minute=minute)


def format_clock_time(value: time) -> str:
    """Format a time as "HH:MM"."""
    return f"{value.hour:02d}:{value.minute:02d}"


def parse_iso_date(value: Any, tz: str = "UTC") -> DateTime:
    """
    Parse a "YYYY-MM-DD" string into the start of that day in ``tz``.

    Raises:
        InvalidInputError: If the value is missing or malformed
    """
    if not isinstance(value, str) or not _DATE_PATTERN.match(value.strip()):
        raise InvalidInputError(f"Invalid date {value!r}, expected YYYY-MM-DD")

    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD", tz=tz).start_of("day")
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date {value!r}: {exc}") from exc


def day_of_week(date: DateTime) -> int:
    """Weekday number as stored in the salon schedule (0=Sunday, 6=Saturday)."""
    return date.isoweekday() % 7


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first non-null value among snake_case/camelCase aliases."""
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return default


def _require(record: Mapping[str, Any], *keys: str) -> Any:
    value = _pick(record, *keys)
    if value is None:
        raise InvalidInputError(f"Missing field '{keys[0]}' in record {dict(record)!r}")
    return value


def _optional_time(value: Any) -> time | None:
    return None if value in (None, "") else parse_clock_time(value)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInputError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ends do not overlap."""
        return self.start < other.end and other.start < self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeRange(start=max(self.start, other.start), end=min(self.end, other.end))

    @classmethod
    def on_day(cls, day: DateTime, start: time, minutes: int) -> "TimeRange":
        """Build a range starting at ``start`` on ``day`` lasting ``minutes``."""
        begin = day.set(hour=start.hour, minute=start.minute, second=0, microsecond=0)
        return cls(start=begin, end=begin.add(minutes=minutes))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: "str | BookingStatus") -> "BookingStatus":
        """Parse a status string, raising InvalidInputError on unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(status.value for status in cls)
            raise InvalidInputError(f"Unknown booking status {value!r}, expected one of: {allowed}") from exc


@dataclass(frozen=True)
class OpeningWindow:
    """Effective open/close (and optional break) times for one date."""
    open_time: time
    close_time: time
    break_start: time | None = None
    break_end: time | None = None

    def __post_init__(self):
        if self.open_time >= self.close_time:
            raise InvalidInputError(
                f"Opening time {format_clock_time(self.open_time)} must be before "
                f"closing time {format_clock_time(self.close_time)}"
            )
        if (self.break_start is None) != (self.break_end is None):
            raise InvalidInputError("A break needs both a start and an end time")
        if self.break_start is not None and not (
            self.open_time <= self.break_start < self.break_end <= self.close_time
        ):
            raise InvalidInputError(
                f"Break {format_clock_time(self.break_start)}-{format_clock_time(self.break_end)} "
                f"must lie within opening hours"
            )

    @property
    def has_break(self) -> bool:
        return self.break_start is not None


@dataclass(frozen=True)
class BusinessHours:
    """
    Default opening hours for one weekday.

    When ``is_open`` is false the times are ignored.
    """
    day_of_week: int  # 0=Sunday, 6=Saturday
    is_open: bool
    open_time: time | None = None
    close_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise InvalidInputError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        if self.is_open:
            if self.open_time is None or self.close_time is None:
                raise InvalidInputError(f"Open day {self.day_of_week} needs opening and closing times")
            # Validates ordering and break placement
            self.window()

    def window(self) -> OpeningWindow | None:
        """Return the opening window, or None when closed."""
        if not self.is_open:
            return None
        return OpeningWindow(
            open_time=self.open_time,
            close_time=self.close_time,
            break_start=self.break_start,
            break_end=self.break_end,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "BusinessHours":
        """Build from a database row or API payload (snake_case or camelCase)."""
        is_open = bool(_pick(record, "is_open", "isOpen", default=False))
        day = _require(record, "day_of_week", "dayOfWeek")
        try:
            day = int(day)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Invalid day_of_week {day!r}") from exc

        if not is_open:
            return cls(day_of_week=day, is_open=False)

        return cls(
            day_of_week=day,
            is_open=True,
            open_time=parse_clock_time(_require(record, "open_time", "openTime")),
            close_time=parse_clock_time(_require(record, "close_time", "closeTime")),
            break_start=_optional_time(_pick(record, "break_start", "breakStart")),
            break_end=_optional_time(_pick(record, "break_end", "breakEnd")),
        )


@dataclass(frozen=True)
class SpecialDate:
    """A named exception (holiday, custom hours) overriding one calendar date."""
    date: str  # YYYY-MM-DD
    is_open: bool
    name: str = ""
    open_time: time | None = None
    close_time: time | None = None

    def __post_init__(self):
        parse_iso_date(self.date)
        if self.open_time is not None and self.close_time is not None and self.open_time >= self.close_time:
            raise InvalidInputError(
                f"Special date {self.date}: opening time {format_clock_time(self.open_time)} "
                f"must be before closing time {format_clock_time(self.close_time)}"
            )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SpecialDate":
        """Build from a database row or API payload (snake_case or camelCase)."""
        return cls(
            date=str(_require(record, "date")).strip(),
            is_open=bool(_pick(record, "is_open", "isOpen", default=False)),
            name=str(_pick(record, "name", default="")),
            open_time=_optional_time(_pick(record, "open_time", "openTime")),
            close_time=_optional_time(_pick(record, "close_time", "closeTime")),
        )


@dataclass(frozen=True)
class Service:
    """A bookable salon service."""
    id: int | str
    name: str
    duration_minutes: int
    duration_label: str | None = None
    price: int | None = None  # in cents
    description: str = ""

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidInputError(f"Service {self.name!r} needs a positive duration")

    @property
    def display_duration(self) -> str:
        """Human readable duration, preferring the free-text label."""
        return self.duration_label or format_duration(self.duration_minutes)

    def matches(self, reference: Any) -> bool:
        """Check whether a booking's service reference points at this service."""
        text = str(reference).strip().lower()
        return text == str(self.id).lower() or text == self.name.lower()

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Service":
        """
        Build from a database row or API payload.

        The numeric ``duration_minutes`` field wins; a ``duration`` value is
        accepted as minutes or as a label like "4-6 hours".
        """
        raw_duration = _pick(record, "duration")
        label = _pick(record, "duration_label", "durationLabel")
        if label is None and isinstance(raw_duration, str) and not raw_duration.strip().isdigit():
            label = raw_duration

        minutes = _pick(record, "duration_minutes", "durationMinutes", default=raw_duration)
        if minutes is None:
            raise InvalidInputError(f"Missing duration in service record {dict(record)!r}")

        price = _pick(record, "price")
        return cls(
            id=_require(record, "id"),
            name=str(_require(record, "name")),
            duration_minutes=parse_duration_minutes(minutes),
            duration_label=label,
            price=int(price) if price is not None else None,
            description=str(_pick(record, "description", default="")),
        )


@dataclass(frozen=True)
class Booking:
    """An appointment occupying time on a date."""
    date: str  # YYYY-MM-DD
    time: time
    service_type: str
    status: BookingStatus = BookingStatus.PENDING
    id: int | str | None = None
    name: str = ""
    email: str = ""
    phone: str = ""
    notes: str | None = None
    deposit_paid: bool = False
    duration_minutes: int | None = None

    def __post_init__(self):
        parse_iso_date(self.date)

    @property
    def is_active(self) -> bool:
        """Only non-cancelled bookings occupy time."""
        return self.status is not BookingStatus.CANCELLED

    @property
    def time_label(self) -> str:
        return format_clock_time(self.time)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Booking":
        """Build from a database row or API payload (snake_case or camelCase)."""
        duration = _pick(record, "duration_minutes", "durationMinutes")
        return cls(
            id=_pick(record, "id"),
            date=str(_require(record, "date")).strip(),
            time=parse_clock_time(_require(record, "time")),
            service_type=str(_require(record, "service_type", "serviceType")),
            status=BookingStatus.parse(_pick(record, "status", default=BookingStatus.PENDING)),
            name=str(_pick(record, "name", default="")),
            email=str(_pick(record, "email", default="")),
            phone=str(_pick(record, "phone", default="")),
            notes=_pick(record, "notes"),
            deposit_paid=bool(_pick(record, "deposit_paid", "depositPaid", default=False)),
            duration_minutes=parse_duration_minutes(duration) if duration is not None else None,
        )

    def to_record(self) -> Dict[str, Any]:
        """Serialise to the snake_case row layout used by the data stores."""
        record: Dict[str, Any] = {
            "date": self.date,
            "time": self.time_label,
            "service_type": self.service_type,
            "status": self.status.value,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "notes": self.notes,
            "deposit_paid": self.deposit_paid,
        }
        if self.id is not None:
            record["id"] = self.id
        if self.duration_minutes is not None:
            record["duration_minutes"] = self.duration_minutes
        return record


@dataclass(frozen=True)
class TimeSlot:
    """
    A candidate appointment start time and whether it can be booked.
    """
    time: str  # HH:MM
    available: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "available": self.available}
