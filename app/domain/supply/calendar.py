"""Store-local calendar helpers for the supply ledger.

All arithmetic is on calendar dates, never on elapsed 24-hour spans, so a
daylight-saving shift cannot skip or repeat a day.

NO DATA ACCESS - pure functions only.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytz

ONE_DAY = timedelta(days=1)


def as_date(value: date | str) -> date:
    """Coerce an ISO ``YYYY-MM-DD`` string (or a date) to a date.

    Examples:
        >>> as_date("2026-02-25")
        datetime.date(2026, 2, 25)

    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def local_today(tz_name: str, now: datetime | None = None) -> date:
    """Calendar date "today" in the store's timezone.

    Args:
        tz_name: IANA timezone name, e.g. "Asia/Taipei"
        now: Aware instant to evaluate at (default: current UTC time)

    Raises:
        pytz.UnknownTimeZoneError: If tz_name is not a known zone.

    """
    tz = pytz.timezone(tz_name)
    instant = now if now is not None else datetime.now(pytz.utc)
    if instant.tzinfo is None:
        instant = pytz.utc.localize(instant)
    return instant.astimezone(tz).date()


def previous_day(d: date) -> date:
    return d - ONE_DAY


def next_day(d: date) -> date:
    return d + ONE_DAY


def local_yesterday(tz_name: str, now: datetime | None = None) -> date:
    """Calendar date "yesterday" in the store's timezone."""
    return previous_day(local_today(tz_name, now))


def date_range(start: date | str, end: date | str) -> list[date]:
    """Inclusive ascending list of dates from start to end.

    Returns an empty list when start is after end.

    Examples:
        >>> date_range("2026-02-27", "2026-03-01")
        [datetime.date(2026, 2, 27), datetime.date(2026, 2, 28), datetime.date(2026, 3, 1)]
        >>> date_range("2026-03-02", "2026-03-01")
        []

    """
    cur, stop = as_date(start), as_date(end)
    days: list[date] = []
    while cur <= stop:
        days.append(cur)
        cur = next_day(cur)
    return days


def chain_dates(base_date: date, target: date) -> list[date]:
    """Dates strictly after base_date up to and including target."""
    return date_range(next_day(base_date), target)
