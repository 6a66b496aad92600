"""Unit tests for reporting window resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.periods import (
    ONE_MS,
    IncompleteRange,
    InvalidDateFormat,
    InvalidRange,
    month_period,
    parse_date,
    previous_period,
    resolve_periods,
    resolve_window,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestExplicitRange:
    def test_current_covers_whole_days(self):
        periods = resolve_periods("2024-03-10", "2024-03-20")
        assert periods.current.start == utc(2024, 3, 10)
        assert periods.current.end == utc(2024, 3, 20, 23, 59, 59, 999000)

    def test_previous_has_equal_duration(self):
        periods = resolve_periods("2024-03-10", "2024-03-20")
        assert periods.previous.duration == periods.current.duration
        assert periods.current.duration == timedelta(
            days=10, hours=23, minutes=59, seconds=59, milliseconds=999
        )

    def test_previous_ends_one_ms_before_current(self):
        periods = resolve_periods("2024-03-10", "2024-03-20")
        assert periods.previous.end == periods.current.start - ONE_MS
        assert periods.previous.end == utc(2024, 3, 9, 23, 59, 59, 999000)
        assert periods.previous.start == utc(2024, 2, 28)

    def test_windows_do_not_overlap(self):
        periods = resolve_periods("2024-01-01", "2024-12-31")
        assert periods.previous.end < periods.current.start

    def test_from_must_precede_to(self):
        with pytest.raises(InvalidRange):
            resolve_periods("2024-03-20", "2024-03-10")

    def test_equal_dates_rejected(self):
        with pytest.raises(InvalidRange):
            resolve_periods("2024-03-10", "2024-03-10")

    def test_end_past_year_9999_rejected(self):
        with pytest.raises(InvalidRange, match="outside the supported date range"):
            resolve_periods("2024-01-01", "9999-12-31")

    def test_previous_before_year_1_rejected(self):
        with pytest.raises(InvalidRange, match="outside the supported date range"):
            resolve_periods("0001-01-02", "0001-01-05")

    def test_latest_supported_range(self):
        periods = resolve_periods("9999-12-01", "9999-12-30")
        assert periods.current.end == utc(9999, 12, 30, 23, 59, 59, 999000)

    def test_partial_range_rejected(self):
        with pytest.raises(IncompleteRange):
            resolve_periods("2024-03-10", None)
        with pytest.raises(IncompleteRange):
            resolve_periods(None, "2024-03-10")


class TestDateParsing:
    @pytest.mark.parametrize(
        "value", ["2024/03/10", "10-03-2024", "2024-3-10", "yesterday", "2024-03-10T00:00:00"]
    )
    def test_rejects_other_formats(self, value):
        with pytest.raises(InvalidDateFormat, match="YYYY-MM-DD"):
            parse_date(value, "from")

    def test_rejects_impossible_date(self):
        with pytest.raises(InvalidDateFormat, match="not a real date"):
            parse_date("2024-02-30", "to")

    def test_error_names_the_field(self):
        with pytest.raises(InvalidDateFormat, match="'to'"):
            resolve_periods("2024-03-01", "March")


class TestDefaultMonths:
    def test_current_and_prior_month(self):
        periods = resolve_periods(now=utc(2024, 3, 17, 12, 30))
        assert periods.current.start == utc(2024, 3, 1)
        assert periods.current.end == utc(2024, 3, 31, 23, 59, 59, 999000)
        assert periods.previous.start == utc(2024, 2, 1)
        assert periods.previous.end == utc(2024, 2, 29, 23, 59, 59, 999000)

    def test_january_wraps_to_december(self):
        periods = resolve_periods(now=utc(2025, 1, 5))
        assert periods.previous.start == utc(2024, 12, 1)
        assert periods.previous.end == utc(2024, 12, 31, 23, 59, 59, 999000)

    def test_prior_month_length_differs(self):
        """Calendar months are used as-is, whatever their lengths."""
        periods = resolve_periods(now=utc(2023, 3, 2))
        assert periods.previous.duration != periods.current.duration
        assert periods.previous.end == periods.current.start - ONE_MS

    def test_month_period(self):
        period = month_period(2023, 2)
        assert period.start == utc(2023, 2, 1)
        assert period.end == utc(2023, 2, 28, 23, 59, 59, 999000)


class TestSingleWindow:
    def test_no_range_means_all_time(self):
        assert resolve_window() is None

    def test_explicit_range(self):
        window = resolve_window("2024-03-01", "2024-03-02")
        assert window.start == utc(2024, 3, 1)
        assert window.end == utc(2024, 3, 2, 23, 59, 59, 999000)

    def test_validates_like_periods(self):
        with pytest.raises(InvalidRange):
            resolve_window("2024-03-02", "2024-03-01")

    def test_end_past_year_9999_rejected(self):
        with pytest.raises(InvalidRange):
            resolve_window("2024-01-01", "9999-12-31")


def test_previous_period_of_one_day():
    period = resolve_window("2024-03-01", "2024-03-02")
    prev = previous_period(period)
    assert prev.end == utc(2024, 2, 29, 23, 59, 59, 999000)
    assert prev.start == utc(2024, 2, 28)
