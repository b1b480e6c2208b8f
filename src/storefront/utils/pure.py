from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

Number = Union[int, float, Decimal]


def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer with halves going up (37.5 -> 38).

    Python's built-in round() uses banker's rounding, which would price a
    750 cart at 37 shipping instead of 38.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_decimal(value) -> Optional[Decimal]:
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def as_number(value: Decimal) -> Number:
    """Render a Decimal as a JSON-friendly int when whole, else float."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(dt: datetime) -> datetime:
    """Attach a timezone to naive datetimes (read as local time) and move to UTC."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp as written by browsers (``...123Z``) or Python.

    Returns:
        datetime: timezone-aware, in UTC.
    """
    if isinstance(value, datetime):
        return as_aware(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_aware(datetime.fromisoformat(text))


def format_timestamp(dt: datetime) -> str:
    """Inverse of parse_timestamp, millisecond precision with a ``Z`` suffix."""
    dt = as_aware(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return local_date(value)
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def local_date(dt: datetime) -> date:
    """Calendar date of ``dt`` in the machine's local timezone."""
    return as_aware(dt).astimezone().date()


def local_datetime(dt: datetime) -> datetime:
    return as_aware(dt).astimezone()


MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


def month_label(day: date) -> str:
    """e.g. ``Oct 2026``."""
    return f"{MONTH_ABBR[day.month - 1]} {day.year}"


def day_label(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.day}"
