from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from daiary.journal import date_key

GRID_CELLS = 42  # 6 weeks x 7 days


@dataclass
class CalendarDay:
    date: str
    day: int
    is_current_month: bool
    is_today: bool
    entry_count: int = 0

    @property
    def has_entries(self) -> bool:
        return self.entry_count > 0


def month_grid(year: int, month: int, entries: Iterable = (), today: str | None = None) -> list[CalendarDay]:
    """Build the Sunday-first 6x7 grid for a month, padded with adjacent days."""
    today = today or date_key.today()
    counts = Counter(date_key.date_of(e) for e in entries)

    first = date(year, month, 1)
    # date.weekday(): Monday == 0, grid starts on Sunday
    lead = (first.weekday() + 1) % 7
    start = first - timedelta(days=lead)

    days = []
    for i in range(GRID_CELLS):
        d = start + timedelta(days=i)
        key = date_key.from_date(d)
        days.append(CalendarDay(
            date=key,
            day=d.day,
            is_current_month=(d.month == month and d.year == year),
            is_today=(key == today),
            entry_count=counts.get(key, 0),
        ))
    return days


def entries_for_date(entries: Iterable, key: str) -> list:
    return [e for e in entries if date_key.date_of(e) == key]


def entries_for_month(entries: Iterable, year: int, month: int) -> list:
    prefix = f"{year:04d}-{month:02d}-"
    return [e for e in entries if date_key.date_of(e).startswith(prefix)]


def week_range(key: str | None = None) -> tuple[str, str]:
    """Sunday..Saturday range containing ``key`` (default today)."""
    d = date_key.to_date(key or date_key.today())
    start = d - timedelta(days=(d.weekday() + 1) % 7)
    return date_key.from_date(start), date_key.from_date(start + timedelta(days=6))


def entries_in_range(entries: Iterable, start: str, end: str) -> list:
    return [e for e in entries if start <= date_key.date_of(e) <= end]
