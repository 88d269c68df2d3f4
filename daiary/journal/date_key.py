"""Local calendar-day keys in ``YYYY-MM-DD`` form.

Keys are plain strings so they compare and hash the same way the stored
``date`` column does. Arithmetic goes through ``datetime.date`` so day
boundaries follow the local calendar rather than elapsed time.
"""
from datetime import date, datetime, timedelta, timezone

from daiary.core.errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"


def from_date(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def today() -> str:
    # date.today() reads the local wall clock, not UTC
    return from_date(date.today())


def resolve_today(client_today: str | None = None) -> str:
    """The caller's local day, or the server's when the caller sends none.

    Every UTC offset (-12..+14) lands within one day of the UTC date, so a
    client day outside that window is rejected.
    """
    if client_today is None:
        return today()
    key = parse(client_today)
    utc_day = from_date(datetime.now(timezone.utc))
    if not add_days(utc_day, -1) <= key <= add_days(utc_day, 1):
        raise ValidationError(f"today {key!r} is more than a day away from {utc_day} UTC")
    return key


def to_date(key: str) -> date:
    return datetime.strptime(key, DATE_FORMAT).date()


def is_valid(key: str) -> bool:
    if not isinstance(key, str) or len(key) != 10:
        return False
    try:
        to_date(key)
    except ValueError:
        return False
    return True


def parse(key: str) -> str:
    """Validate ``key`` and return it unchanged."""
    if not is_valid(key):
        raise ValidationError(f"invalid date key: {key!r} (expected YYYY-MM-DD)")
    return key


def add_days(key: str, n: int) -> str:
    return from_date(to_date(key) + timedelta(days=n))


def compare(a: str, b: str) -> int:
    # zero-padded keys sort lexically in calendar order
    if a == b:
        return 0
    return -1 if a < b else 1


def date_of(entry) -> str:
    """Date key of an entry given as a model, dataclass or plain dict."""
    if isinstance(entry, dict):
        return entry["date"]
    return entry.date
