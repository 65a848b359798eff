"""
Service duration parsing and formatting.

Services carry an explicit ``duration_minutes`` field. Free-text labels such
as "4-6 hours" or "45 min" are only parsed when a record has no numeric
duration. Ranges resolve to their upper bound so a booked slot always fits
the longest case.
"""

import re

from .exceptions import InvalidInputError

_DURATION_PATTERN = re.compile(
    r"^(?P<low>\d+(?:\.\d+)?)"
    r"(?:\s*(?:-|–|to)\s*(?P<high>\d+(?:\.\d+)?))?"
    r"\s*(?P<unit>m|min|mins|minute|minutes|h|hr|hrs|hour|hours)$"
)

_MINUTES_PER_UNIT = {
    "m": 1,
    "min": 1,
    "mins": 1,
    "minute": 1,
    "minutes": 1,
    "h": 60,
    "hr": 60,
    "hrs": 60,
    "hour": 60,
    "hours": 60,
}


def parse_duration_minutes(value: int | str) -> int:
    """
    Convert a duration descriptor into whole minutes.

    Args:
        value: Minute count (int or digit string) or a label like
            "45 min", "30-60 min", "4-6 hours", "1.5 hours"

    Returns:
        Positive number of minutes

    Raises:
        InvalidInputError: If the value cannot be interpreted
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid duration: {value!r}")

    if isinstance(value, int):
        minutes = value
    elif isinstance(value, str):
        text = value.strip().lower()
        if text.isdigit():
            minutes = int(text)
        else:
            match = _DURATION_PATTERN.match(text)
            if not match:
                raise InvalidInputError(f"Invalid duration: {value!r}")

            amount = float(match.group("high") or match.group("low"))
            minutes = int(round(amount * _MINUTES_PER_UNIT[match.group("unit")]))
    else:
        raise InvalidInputError(f"Invalid duration: {value!r}")

    if minutes <= 0:
        raise InvalidInputError(f"Duration must be greater than zero, got {value!r}")

    return minutes


def format_duration(minutes: int) -> str:
    """Render minutes as a short label, e.g. "4h", "45 min", "2h 30 min"."""
    hours, rest = divmod(minutes, 60)
    if not hours:
        return f"{rest} min"
    if not rest:
        return f"{hours}h"
    return f"{hours}h {rest} min"
