"""
Booking interval model.

A booking occupies the half-open range ``[start, end)``: ``start`` is the
first occupied day and ``end`` is the day after the last one. Date pickers
show the last occupied day instead (the inclusive end), so every path
between a picker and storage goes through ``to_exclusive_end`` or
``to_inclusive_end`` exactly once.
"""

from dataclasses import dataclass
from datetime import date

from .dates import add_days, as_date, days_between
from .exceptions import InvalidRangeError


@dataclass(frozen=True)
class BookingInterval:
    """Half-open range of calendar dates."""

    start: date
    end: date

    @property
    def days(self):
        return days_between(self.start, self.end)

    @property
    def inclusive_end(self):
        return to_inclusive_end(self.end)


def make_interval(start, end):
    """
    Build a validated interval.

    Args:
        start: First occupied day (``date`` or ``YYYY-MM-DD``)
        end: Exclusive end (``date`` or ``YYYY-MM-DD``)

    Returns:
        BookingInterval

    Raises:
        InvalidRangeError: If ``end <= start``
    """
    start = as_date(start)
    end = as_date(end)
    if end <= start:
        raise InvalidRangeError(start, end)
    return BookingInterval(start=start, end=end)


def to_inclusive_end(end):
    """Exclusive (stored) end -> last occupied day."""
    return add_days(end, -1)


def to_exclusive_end(inclusive_end):
    """Last occupied day (picker value) -> exclusive (stored) end."""
    return add_days(inclusive_end, 1)


def contains_day(interval, day):
    """
    True iff ``interval.start <= day < interval.end``.

    ``interval`` may be a BookingInterval or any booking-like object with
    ``start`` and ``end`` attributes. A booking ending on day X does not
    occupy day X.
    """
    day = as_date(day)
    return as_date(interval.start) <= day < as_date(interval.end)


def overlaps(interval, other):
    """True if two half-open intervals share at least one day."""
    return (
        as_date(interval.start) < as_date(other.end)
        and as_date(other.start) < as_date(interval.end)
    )
