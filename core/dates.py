"""
Calendar date helpers.

Dates are stored and exchanged as zero-padded ``YYYY-MM-DD`` strings, which
sort the same way lexicographically as chronologically. Internally the
helpers work on ``datetime.date`` values.
"""

import re
from datetime import date, timedelta

from django.utils import timezone

YMD_PATTERN = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')


def parse_ymd(value):
    """
    Parse a zero-padded ``YYYY-MM-DD`` string into a ``date``.

    Raises:
        ValueError: If the string is not in that exact format or is not a
            real calendar date.
    """
    match = YMD_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f'Invalid date: {value!r}. Use YYYY-MM-DD format.')
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


def format_ymd(value):
    """Format a ``date`` as ``YYYY-MM-DD``."""
    return f'{value.year:04d}-{value.month:02d}-{value.day:02d}'


def as_date(value):
    """Accept either a ``date`` or a ``YYYY-MM-DD`` string."""
    if isinstance(value, date):
        return value
    return parse_ymd(value)


def add_days(value, days):
    """
    Shift a calendar date by a whole number of days.

    Returns the same kind of value it was given: a string for a string,
    a ``date`` for a ``date``.
    """
    shifted = as_date(value) + timedelta(days=days)
    if isinstance(value, str):
        return format_ymd(shifted)
    return shifted


def days_between(start, end):
    """Number of days from ``start`` up to (not including) ``end``."""
    return (as_date(end) - as_date(start)).days


def today():
    return timezone.localdate()


def today_ymd():
    return format_ymd(today())


def format_display_date(value):
    """Format a date as ``MM/DD/YYYY`` for people reading the calendar."""
    d = as_date(value)
    return f'{d.month:02d}/{d.day:02d}/{d.year:04d}'
