"""Lenient date parsing for request payloads.

Job forms send dates as ISO strings, empty strings, or not at all.
Anything that does not parse becomes None; these helpers never raise.
"""

from datetime import date, datetime, timezone


def parse_date_or_none(value) -> datetime | None:
    """Return a naive datetime for ``value`` or None when it is absent/unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        # Stored naive (UTC) like every other timestamp column
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _to_naive_utc(parsed)


def two_digit_year(value: datetime | None = None) -> str:
    """Two-digit year segment used in job and BL numbers ("25" for 2025)."""
    return (value or datetime.utcnow()).strftime("%y")


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
