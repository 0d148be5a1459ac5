"""
Per-day projections of bookings for the calendar grid.

A multi-day booking is drawn as one marker per day it covers. Occurrences
are derived on every query from the current bookings and never stored.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from .dates import as_date
from .intervals import contains_day


@dataclass(frozen=True)
class DayOccurrence:
    day: date
    booking_id: object
    label: str
    is_blocked: bool


class OccurrenceSequence:
    """
    Lazy, restartable sequence of DayOccurrence for one booking.

    Each iteration starts from the booking again, so the sequence can be
    walked any number of times. Only the days inside ``window`` (when given)
    are produced.
    """

    def __init__(self, booking, window=None):
        self.booking = booking
        start = as_date(booking.start)
        end = as_date(booking.end)
        if window is not None:
            start = max(start, as_date(window.start))
            end = min(end, as_date(window.end))
        self._first = start
        self._stop = end

    def __len__(self):
        return max((self._stop - self._first).days, 0)

    def __iter__(self):
        booking = self.booking
        booking_id = getattr(booking, 'pk', None) or getattr(booking, 'id', None)
        label = booking.label or ''
        is_blocked = bool(getattr(booking, 'is_blocked', False))

        day = self._first
        while day < self._stop:
            yield DayOccurrence(
                day=day,
                booking_id=booking_id,
                label=label,
                is_blocked=is_blocked,
            )
            day += timedelta(days=1)

    def days(self):
        return [occurrence.day for occurrence in self]


def expand(booking, window=None):
    """Expand a booking into one occurrence per day in ``[start, end)``."""
    return OccurrenceSequence(booking, window=window)


def label_sort_key(item):
    """Case-insensitive label ordering used for every per-day listing."""
    return (item.label or '').casefold()


def bookings_for_day(bookings, day):
    """
    Bookings covering ``day``, ordered by label.

    The sort is stable, so bookings with equal labels keep their input
    order. An empty list means nobody is booked that day.
    """
    day = as_date(day)
    covering = [booking for booking in bookings if contains_day(booking, day)]
    return sorted(covering, key=label_sort_key)
