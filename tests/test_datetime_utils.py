from datetime import date, datetime, time, timedelta, timezone

from utils.datetime_utils import (
    end_of_month,
    ensure_utc,
    parse_iso_datetime,
    start_of_day,
    to_iso,
    to_local_naive,
    utc_now_naive,
)


def test_parse_iso_datetime_variants():
    assert parse_iso_datetime("2024-06-15") == datetime(2024, 6, 15)
    assert parse_iso_datetime(" 2024-06-15T08:30:00 ") == datetime(2024, 6, 15, 8, 30)
    parsed = parse_iso_datetime("2024-06-15T08:30:00Z")
    assert parsed == datetime(2024, 6, 15, 8, 30, tzinfo=timezone.utc)


def test_parse_iso_datetime_rejects_garbage():
    assert parse_iso_datetime(None) is None
    assert parse_iso_datetime("   ") is None
    assert parse_iso_datetime("15.06.2024") is None
    assert parse_iso_datetime("tomorrow") is None


def test_to_iso_and_ensure_utc():
    assert to_iso(None) is None
    assert to_iso(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
    naive = datetime(2024, 1, 1, 12)
    assert ensure_utc(naive).tzinfo is timezone.utc
    plus_three = datetime(2024, 1, 1, 15, tzinfo=timezone(timedelta(hours=3)))
    assert ensure_utc(plus_three) == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def test_to_local_naive():
    naive = datetime(2024, 6, 15, 12)
    assert to_local_naive(naive) is naive
    assert to_local_naive(date(2024, 6, 15)) == datetime(2024, 6, 15)
    aware = datetime(2024, 6, 15, 12, tzinfo=timezone.utc)
    local = to_local_naive(aware)
    assert local.tzinfo is None
    assert local == aware.astimezone().replace(tzinfo=None)


def test_start_of_day():
    assert start_of_day(datetime(2024, 6, 15, 23, 59, 1, 5)) == datetime(2024, 6, 15)


def test_end_of_month_handles_short_and_leap_months():
    assert end_of_month(datetime(2024, 6, 15)) == datetime.combine(date(2024, 6, 30), time.max)
    assert end_of_month(datetime(2023, 2, 1)).day == 28
    assert end_of_month(datetime(2024, 2, 1)).day == 29
    assert end_of_month(datetime(2024, 12, 31, 23)).month == 12


def test_utc_now_naive_has_no_tzinfo():
    value = utc_now_naive()
    assert value.tzinfo is None
    assert abs(ensure_utc(value) - datetime.now(timezone.utc)) < timedelta(minutes=1)
