from __future__ import annotations

from typing import Iterable, List

from models import CLOSING_HOUR, OPENING_HOUR, Slot


def compute_gaps(
    booked: Iterable[Slot],
    opening: int = OPENING_HOUR,
    closing: int = CLOSING_HOUR,
) -> List[Slot]:
    """
    Free [start, end) hour ranges between opening and closing that no booked slot touches.

    Booked slots may arrive in any order; they are sorted by start hour first.
    Slots sharing a boundary hour leave no zero-length gap between them.
    """
    ordered = sorted(booked, key=lambda slot: slot[0])
    if not ordered:
        return [(opening, closing)]

    gaps: List[Slot] = []
    cursor = opening
    for start, end in ordered:
        if start > cursor:
            gaps.append((cursor, start))
        cursor = max(cursor, end)

    if cursor < closing:
        gaps.append((cursor, closing))
    return gaps


def slot_contains(gaps: Iterable[Slot], start: int, end: int) -> bool:
    return any(gap_start <= start and end <= gap_end for gap_start, gap_end in gaps)


def expand_hours(gaps: Iterable[Slot]) -> List[int]:
    # [9, 11), [14, 15) -> 9, 10, 14
    return [hour for start, end in gaps for hour in range(start, end)]
