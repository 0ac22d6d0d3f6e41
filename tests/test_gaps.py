from itertools import permutations

import pytest

from gaps import compute_gaps, expand_hours, slot_contains


def covered_hours(slots):
    return [hour for start, end in slots for hour in range(start, end)]


def test_empty_day_is_one_gap():
    assert compute_gaps([], 9, 21) == [(9, 21)]


def test_fully_booked_day_has_no_gap():
    assert compute_gaps([(9, 21)], 9, 21) == []


def test_single_booking_splits_day():
    assert compute_gaps([(12, 14)], 9, 21) == [(9, 12), (14, 21)]


def test_adjacent_bookings_leave_no_zero_length_gap():
    assert compute_gaps([(9, 12), (12, 15)], 9, 21) == [(15, 21)]


def test_booking_at_closing_leaves_no_trailing_gap():
    assert compute_gaps([(10, 11), (19, 21)]) == [(9, 10), (11, 19)]


def test_defaults_are_operating_hours():
    assert compute_gaps([]) == [(9, 21)]


@pytest.mark.parametrize(
    "booked",
    [
        [(9, 10), (12, 14), (18, 20)],
        [(10, 11), (11, 12), (15, 21)],
        [(9, 21)],
        [(13, 14)],
    ],
)
def test_unsorted_input_gives_same_gaps(booked):
    expected = compute_gaps(booked, 9, 21)
    for order in permutations(booked):
        assert compute_gaps(list(order), 9, 21) == expected


@pytest.mark.parametrize(
    "booked",
    [
        [],
        [(9, 10), (12, 14), (18, 20)],
        [(10, 11), (11, 12), (15, 21)],
        [(9, 21)],
        [(20, 21), (9, 10)],
    ],
)
def test_gaps_and_bookings_cover_day_exactly_once(booked):
    gaps = compute_gaps(booked, 9, 21)
    hours = covered_hours(gaps) + covered_hours(booked)
    assert sorted(hours) == list(range(9, 21))


def test_gaps_are_ordered_and_non_empty():
    gaps = compute_gaps([(15, 16), (10, 12)], 9, 21)
    assert gaps == [(9, 10), (12, 15), (16, 21)]
    assert all(start < end for start, end in gaps)


def test_overlapping_input_does_not_move_cursor_backwards():
    # Not produced by committed bookings, but the sweep keeps the furthest end.
    assert compute_gaps([(9, 15), (10, 12)], 9, 21) == [(15, 21)]


def test_slot_contains():
    gaps = [(9, 12), (14, 21)]
    assert slot_contains(gaps, 9, 12)
    assert slot_contains(gaps, 15, 17)
    assert not slot_contains(gaps, 11, 15)
    assert not slot_contains([], 9, 10)


def test_expand_hours():
    assert expand_hours([(9, 11), (14, 15)]) == [9, 10, 14]
