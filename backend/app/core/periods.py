"""Reporting window resolution.

Every analytics query is evaluated over a ``current`` window and compared with
a ``previous`` window of the same length that ends 1ms before ``current``
begins. Without an explicit range the windows are the current and prior UTC
calendar months.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ONE_MS = timedelta(milliseconds=1)


class PeriodError(ValueError):
    """Base class for rejected date ranges."""


class InvalidDateFormat(PeriodError):
    pass


class InvalidRange(PeriodError):
    pass


class IncompleteRange(PeriodError):
    pass


@dataclass(frozen=True)
class Period:
    """Closed interval ``[start, end]`` of UTC datetimes."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class PeriodPair:
    current: Period
    previous: Period


def parse_date(value: str, field: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, rejecting anything else."""
    if not DATE_PATTERN.match(value):
        raise InvalidDateFormat(f"Invalid '{field}' date: expected YYYY-MM-DD, got '{value}'")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDateFormat(f"Invalid '{field}' date: '{value}' is not a real date") from None


def start_of_day(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def end_of_day(d: date) -> datetime:
    return start_of_day(d) + timedelta(days=1) - ONE_MS


def month_period(year: int, month: int) -> Period:
    """Return the full UTC calendar month as a period."""
    last_day = calendar.monthrange(year, month)[1]
    return Period(
        start=start_of_day(date(year, month, 1)),
        end=end_of_day(date(year, month, last_day)),
    )


def previous_period(current: Period) -> Period:
    """Period of equal duration ending the instant before ``current`` starts."""
    end = current.start - ONE_MS
    return Period(start=end - current.duration, end=end)


def _out_of_range(from_: str | None, to: str | None) -> InvalidRange:
    return InvalidRange(f"Range {from_}..{to} is outside the supported date range")


def _parse_range(from_: str | None, to: str | None) -> Period | None:
    if from_ is None and to is None:
        return None
    if from_ is None or to is None:
        raise IncompleteRange("Both 'from' and 'to' must be provided together")

    from_date = parse_date(from_, "from")
    to_date = parse_date(to, "to")
    if from_date >= to_date:
        raise InvalidRange(f"'from' ({from_}) must be earlier than 'to' ({to})")
    try:
        return Period(start=start_of_day(from_date), end=end_of_day(to_date))
    except OverflowError:
        raise _out_of_range(from_, to) from None


def resolve_periods(
    from_: str | None = None,
    to: str | None = None,
    *,
    now: datetime | None = None,
) -> PeriodPair:
    """Resolve the current and previous reporting windows.

    Raises:
        InvalidDateFormat: a supplied date is not ``YYYY-MM-DD``.
        InvalidRange: ``from`` is not strictly before ``to``, or the
            windows fall outside the years 1..9999.
        IncompleteRange: only one of ``from``/``to`` was supplied.
    """
    current = _parse_range(from_, to)
    if current is not None:
        try:
            previous = previous_period(current)
        except OverflowError:
            raise _out_of_range(from_, to) from None
        return PeriodPair(current=current, previous=previous)

    now = now or datetime.now(timezone.utc)
    if now.month == 1:
        prev_year, prev_month = now.year - 1, 12
    else:
        prev_year, prev_month = now.year, now.month - 1
    return PeriodPair(
        current=month_period(now.year, now.month),
        previous=month_period(prev_year, prev_month),
    )


def resolve_window(from_: str | None = None, to: str | None = None) -> Period | None:
    """Resolve an optional single window; ``None`` means all time."""
    return _parse_range(from_, to)
