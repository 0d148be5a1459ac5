"""
Tests for expanding bookings into per-day occurrences and for the
per-day membership query.
"""

from dataclasses import dataclass
from datetime import date

import pytest

from core.intervals import make_interval
from core.occurrences import DayOccurrence, bookings_for_day, expand


@dataclass
class Stay:
    id: int
    label: str
    start: str
    end: str
    is_blocked: bool = False


@pytest.fixture
def sample_stays():
    return [
        Stay(1, 'Zack', '2026-01-16', '2026-01-19'),
        Stay(2, 'Family', '2026-02-06', '2026-02-09'),
        Stay(3, 'Cousins', '2026-02-08', '2026-02-13'),
        Stay(4, 'Blocked: Maintenance', '2026-02-20', '2026-02-24', is_blocked=True),
    ]


class TestExpand:

    def test_one_occurrence_per_night(self, sample_stays):
        occurrences = list(expand(sample_stays[0]))
        assert [o.day for o in occurrences] == [
            date(2026, 1, 16),
            date(2026, 1, 17),
            date(2026, 1, 18),
        ]
        assert all(o.booking_id == 1 and o.label == 'Zack' for o in occurrences)

    def test_length_matches_interval(self, sample_stays):
        for stay in sample_stays:
            assert len(expand(stay)) == make_interval(stay.start, stay.end).days

    def test_sequence_is_restartable(self, sample_stays):
        sequence = expand(sample_stays[1])
        assert list(sequence) == list(sequence)
        assert sequence.days() == [date(2026, 2, 6), date(2026, 2, 7), date(2026, 2, 8)]

    def test_blocked_flag_is_carried(self, sample_stays):
        assert all(o.is_blocked for o in expand(sample_stays[3]))

    def test_occurrences_are_values(self):
        a = DayOccurrence(date(2026, 1, 16), 1, 'Zack', False)
        b = DayOccurrence(date(2026, 1, 16), 1, 'Zack', False)
        assert a == b

    def test_window_clips_days(self, sample_stays):
        window = make_interval('2026-02-10', '2026-02-12')
        sequence = expand(sample_stays[2], window=window)
        assert sequence.days() == [date(2026, 2, 10), date(2026, 2, 11)]
        assert len(sequence) == 2

    def test_window_outside_booking_is_empty(self, sample_stays):
        window = make_interval('2026-03-01', '2026-04-01')
        sequence = expand(sample_stays[0], window=window)
        assert len(sequence) == 0
        assert list(sequence) == []


class TestBookingsForDay:

    def test_overlapping_stays_sorted_by_label(self, sample_stays):
        result = bookings_for_day(sample_stays, '2026-02-08')
        assert [s.label for s in result] == ['Cousins', 'Family']

    def test_checkout_day_is_free(self, sample_stays):
        assert [s.label for s in bookings_for_day(sample_stays, '2026-01-19')] == []

    def test_empty_day(self, sample_stays):
        assert bookings_for_day(sample_stays, date(2026, 5, 1)) == []

    def test_sort_ignores_case(self):
        stays = [
            Stay(1, 'zeke', '2026-06-01', '2026-06-03'),
            Stay(2, 'Adam', '2026-06-01', '2026-06-03'),
            Stay(3, 'beth', '2026-06-01', '2026-06-03'),
        ]
        assert [s.label for s in bookings_for_day(stays, '2026-06-02')] == ['Adam', 'beth', 'zeke']

    def test_equal_labels_keep_input_order(self):
        stays = [
            Stay(7, 'Family', '2026-06-01', '2026-06-03'),
            Stay(3, 'family', '2026-06-01', '2026-06-03'),
            Stay(5, 'Family', '2026-06-01', '2026-06-03'),
        ]
        assert [s.id for s in bookings_for_day(stays, '2026-06-01')] == [7, 3, 5]

    def test_day_membership_agrees_with_expansion(self, sample_stays):
        day = date(2026, 2, 8)
        expanded = {
            o.booking_id
            for stay in sample_stays
            for o in expand(stay)
            if o.day == day
        }
        assert {s.id for s in bookings_for_day(sample_stays, day)} == expanded

    def test_family_and_zack_on_shared_night(self):
        stays = [
            Stay(1, 'Zack', '2026-02-07', '2026-02-10'),
            Stay(2, 'Family', '2026-02-06', '2026-02-09'),
        ]
        assert [s.label for s in bookings_for_day(stays, '2026-02-08')] == ['Family', 'Zack']
        assert [s.label for s in bookings_for_day(stays, '2026-02-09')] == ['Zack']
