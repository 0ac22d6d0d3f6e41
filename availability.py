"""
Free-slot queries for single resources and for pools of interchangeable equipment.

Everything here is read-only: engines look at the repositories, hand slot lists
to the gap calculator and return plain data. Validation and mutation live in
the services.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Set, TypeVar

from gaps import compute_gaps, expand_hours, slot_contains
from models import (
    BookingRecord,
    Equipment,
    EquipmentBookingRecord,
    EquipmentType,
    FacilityBookingRecord,
    Slot,
    SportFacility,
)
from repository import EquipmentBookingRepository, EquipmentRegistry, FacilityBookingRepository

T = TypeVar("T")


def active_slots(records: Iterable[BookingRecord], exclude: Optional[BookingRecord] = None) -> List[Slot]:
    """Slots still reserved by PENDING or CONFIRMED records; ENDED ones no longer block."""
    return [r.timeslot for r in records if r.is_active and r is not exclude]


def merge_pool_hours(free_by_hour: Dict[int, Set[T]], quantity: int) -> List[Slot]:
    """
    Merge per-hour free unit sets of one pool into [start, end) ranges with
    at least `quantity` units free throughout.

    A qualifying hour extends the current range only when it directly follows it
    and its free set contains, or is contained in, the free set of the range's
    first hour. Neighbouring hours that both have enough units but crossing sets
    open a new range, so a range never hides a swap of the physical units behind it.
    """
    merged: List[List[int]] = []
    for hour in sorted(free_by_hour):
        free = free_by_hour[hour]
        if len(free) < quantity:
            continue

        if merged and hour == merged[-1][1]:
            anchor = free_by_hour[merged[-1][0]]
            if free >= anchor or free <= anchor:
                merged[-1][1] = hour + 1
                continue

        merged.append([hour, hour + 1])

    return [(start, end) for start, end in merged]


class AvailabilityEngine:
    def __init__(
        self,
        facility_bookings: FacilityBookingRepository,
        equipment_bookings: EquipmentBookingRepository,
        equipment: EquipmentRegistry,
    ) -> None:
        self._facility_bookings = facility_bookings
        self._equipment_bookings = equipment_bookings
        self._equipment = equipment

    # -----------------------------
    # Single resource
    # -----------------------------
    def facility_slots(
        self,
        facility: SportFacility,
        day: date,
        exclude: Optional[FacilityBookingRecord] = None,
    ) -> List[Slot]:
        records = self._facility_bookings.for_facility_on(facility, day)
        return compute_gaps(active_slots(records, exclude))

    def unit_slots(
        self,
        unit: Equipment,
        day: date,
        exclude: Optional[EquipmentBookingRecord] = None,
    ) -> List[Slot]:
        records = self._equipment_bookings.for_unit_on(unit, day)
        return compute_gaps(active_slots(records, exclude))

    # -----------------------------
    # Fungible pool
    # -----------------------------
    def free_units_by_hour(
        self,
        equipment_type: EquipmentType,
        day: date,
        exclude: Optional[EquipmentBookingRecord] = None,
    ) -> Dict[int, Set[Equipment]]:
        free_by_hour: Dict[int, Set[Equipment]] = {}
        for unit in self._equipment.units_of_type(equipment_type):
            for hour in expand_hours(self.unit_slots(unit, day, exclude)):
                free_by_hour.setdefault(hour, set()).add(unit)
        return free_by_hour

    def pool_gap_slots(
        self,
        units: List[Equipment],
        day: date,
        exclude: Optional[EquipmentBookingRecord] = None,
    ) -> List[Slot]:
        """
        Ranges on `day` in which len(units) units of their type are free together.

        Only the type and the count of `units` matter; the whole pool of that
        type is considered, not just the units passed in.
        """
        if not units:
            raise ValueError("units must not be empty")
        free_by_hour = self.free_units_by_hour(units[0].equipment_type, day, exclude)
        return merge_pool_hours(free_by_hour, len(units))

    def type_gap_slots(self, equipment_type: EquipmentType, day: date, quantity: int) -> List[Slot]:
        return merge_pool_hours(self.free_units_by_hour(equipment_type, day), quantity)

    def free_units(
        self,
        equipment_type: EquipmentType,
        day: date,
        start: int,
        end: int,
        exclude: Optional[EquipmentBookingRecord] = None,
    ) -> List[Equipment]:
        """Units of the type free for the whole [start, end) window, in pool order."""
        return [
            unit
            for unit in self._equipment.units_of_type(equipment_type)
            if slot_contains(self.unit_slots(unit, day, exclude), start, end)
        ]

    def available_quantity_by_type(
        self,
        types: Iterable[EquipmentType],
        day: date,
        start: int,
        end: int,
    ) -> Dict[str, int]:
        return {t.type_id: len(self.free_units(t, day, start, end)) for t in types}
