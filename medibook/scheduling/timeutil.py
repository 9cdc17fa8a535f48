"""Time-of-day, calendar date and appointment timestamp contracts.

Every place that parses or formats a schedule time, a time-off date, a birth
date or an appointment timestamp goes through this module, so the validator,
the store and the HTTP schemas agree on one representation:

* time of day: ``HH:MM:SS`` (``HH:MM`` accepted on input)
* calendar date: ``YYYY-MM-DD``
* birth date: ``DD-MM-YYYY``
* appointment timestamp: naive wall-clock ``datetime``
"""

from __future__ import annotations

from datetime import date, datetime, time

TIME_OF_DAY_FORMAT = "%H:%M:%S"
_SHORT_TIME_OF_DAY_FORMAT = "%H:%M"
DATE_FORMAT = "%Y-%m-%d"
BIRTH_DATE_FORMAT = "%d-%m-%Y"


def parse_time_of_day(value: str | time) -> time:
    """Parse ``HH:MM:SS`` or ``HH:MM`` into a ``time``.

    Raises:
        ValueError: if the text matches neither layout.
    """
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)
    text = value.strip()
    for fmt in (TIME_OF_DAY_FORMAT, _SHORT_TIME_OF_DAY_FORMAT):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Time of day must be HH:MM:SS, got {value!r}")


def format_time_of_day(value: time) -> str:
    return value.strftime(TIME_OF_DAY_FORMAT)


def parse_date(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"Date must be YYYY-MM-DD, got {value!r}") from None


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_birth_date(value: str | date) -> date:
    """Parse a ``DD-MM-YYYY`` birth date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), BIRTH_DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"Date of birth must be DD-MM-YYYY, got {value!r}") from None


def format_birth_date(value: date) -> str:
    return value.strftime(BIRTH_DATE_FORMAT)


def normalize_timestamp(value: datetime) -> datetime:
    """Return the wall-clock part of *value*.

    An offset on the input is dropped, not converted: the booked instant is
    the local date and time the caller wrote.
    """
    if value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def slot_timestamp(value: datetime) -> datetime:
    """Wall-clock timestamp of a requested slot.

    Slots start on a whole second; a fractional-second value is refused
    rather than rounded onto a neighbouring slot.

    Raises:
        ValueError: if *value* carries microseconds.
    """
    value = normalize_timestamp(value)
    if value.microsecond:
        raise ValueError(f"Appointment time must be whole seconds, got {value.isoformat()}")
    return value


def slot_date(value: datetime) -> date:
    """Calendar date used for the time-off lookup."""
    return normalize_timestamp(value).date()


def iso_weekday(value: datetime | date) -> int:
    """ISO day of week, Monday=1 .. Sunday=7."""
    return value.isoweekday()


def slot_time_of_day(value: datetime) -> time:
    """Time of day compared against working windows, sub-second part included."""
    return normalize_timestamp(value).time()


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO 8601 date+time into a naive wall-clock timestamp."""
    if isinstance(value, datetime):
        return slot_timestamp(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Timestamp must be ISO 8601 (YYYY-MM-DDTHH:MM:SS), got {value!r}") from None
    return slot_timestamp(parsed)
