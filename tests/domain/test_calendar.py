"""Tests for store-local calendar helpers."""

from __future__ import annotations

from datetime import date, datetime

import pytest
import pytz

from app.domain.supply.calendar import (
    as_date,
    chain_dates,
    date_range,
    local_today,
    local_yesterday,
)


def test_date_range_inclusive_across_month_end():
    assert date_range("2026-02-27", "2026-03-02") == [
        date(2026, 2, 27),
        date(2026, 2, 28),
        date(2026, 3, 1),
        date(2026, 3, 2),
    ]


def test_date_range_single_day():
    assert date_range(date(2026, 3, 1), date(2026, 3, 1)) == [date(2026, 3, 1)]


def test_date_range_empty_when_start_after_end():
    assert date_range("2026-03-02", "2026-03-01") == []


def test_date_range_leap_year():
    days = date_range("2028-02-28", "2028-03-01")
    assert date(2028, 2, 29) in days
    assert len(days) == 3


def test_date_range_across_dst_switch_has_no_gaps():
    """Calendar stepping never skips or repeats a day around a DST change."""
    days = date_range("2026-03-28", "2026-03-30")  # Europe switches on 03-29
    assert days == [date(2026, 3, 28), date(2026, 3, 29), date(2026, 3, 30)]


def test_chain_dates_excludes_base_date():
    assert chain_dates(date(2026, 2, 25), date(2026, 2, 27)) == [
        date(2026, 2, 26),
        date(2026, 2, 27),
    ]
    assert chain_dates(date(2026, 2, 25), date(2026, 2, 25)) == []


def test_as_date_accepts_strings_and_datetimes():
    assert as_date("2026-02-25") == date(2026, 2, 25)
    assert as_date(datetime(2026, 2, 25, 23, 59)) == date(2026, 2, 25)


def test_local_today_uses_store_timezone():
    # 17:30 UTC is already the next calendar day in Taipei (UTC+8)
    now = pytz.utc.localize(datetime(2026, 2, 25, 17, 30))
    assert local_today("Asia/Taipei", now) == date(2026, 2, 26)
    assert local_today("UTC", now) == date(2026, 2, 25)


def test_local_today_treats_naive_now_as_utc():
    assert local_today("Asia/Taipei", datetime(2026, 2, 25, 16, 0)) == date(2026, 2, 26)


def test_local_yesterday():
    now = pytz.utc.localize(datetime(2026, 3, 1, 1, 0))
    assert local_yesterday("Asia/Taipei", now) == date(2026, 2, 28)


def test_local_today_unknown_timezone():
    with pytest.raises(pytz.UnknownTimeZoneError):
        local_today("Mars/Olympus_Mons")
