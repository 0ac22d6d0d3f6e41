import pytest

from availability import AvailabilityEngine, merge_pool_hours
from conftest import TOMORROW
from models import (
    BookingStatus,
    EquipmentBookingRecord,
    EquipmentCategory,
    EquipmentType,
    FacilityBookingRecord,
    FacilityType,
    SportFacility,
)
from repository import (
    EquipmentBookingRepository,
    EquipmentRegistry,
    FacilityBookingRepository,
)

BALL = EquipmentType("ET-001", "Basketball Brand A", "BBA", "Basketball", 10, EquipmentCategory.BORROWABLE)
COURT = SportFacility("SF-001", FacilityType("SFT-001", "Basketball", 30))


@pytest.fixture
def repos():
    return FacilityBookingRepository(), EquipmentBookingRepository(), EquipmentRegistry()


@pytest.fixture
def engine(repos):
    return AvailabilityEngine(*repos)


@pytest.fixture
def pool(repos):
    """Scenario pool: unit 1 booked 9-11, unit 2 booked 11-13, unit 3 free all day."""
    _, equipment_bookings, registry = repos
    units = registry.add_units(BALL, 3)
    equipment_bookings.add(EquipmentBookingRecord("u1", TOMORROW, 9, 11, equipment=[units[0]]))
    equipment_bookings.add(EquipmentBookingRecord("u2", TOMORROW, 11, 13, equipment=[units[1]]))
    return units


def hours_of(slots):
    return {hour for start, end in slots for hour in range(start, end)}


def test_facility_slots_around_one_booking(repos, engine):
    facility_bookings, _, _ = repos
    facility_bookings.add(FacilityBookingRecord("u1", TOMORROW, 12, 14, facility=COURT))

    assert engine.facility_slots(COURT, TOMORROW) == [(9, 12), (14, 21)]


def test_facility_slots_ignore_other_days_and_facilities(repos, engine):
    facility_bookings, _, _ = repos
    other = SportFacility("SF-009", COURT.facility_type)
    facility_bookings.add(FacilityBookingRecord("u1", TOMORROW, 12, 14, facility=other))

    assert engine.facility_slots(COURT, TOMORROW) == [(9, 21)]


def test_ended_bookings_do_not_block(repos, engine):
    facility_bookings, _, _ = repos
    facility_bookings.add(
        FacilityBookingRecord("u1", TOMORROW, 12, 14, status=BookingStatus.ENDED, facility=COURT)
    )

    assert engine.facility_slots(COURT, TOMORROW) == [(9, 21)]


def test_excluded_record_does_not_block_itself(repos, engine):
    facility_bookings, _, _ = repos
    record = FacilityBookingRecord("u1", TOMORROW, 12, 14, facility=COURT)
    facility_bookings.add(record)

    assert engine.facility_slots(COURT, TOMORROW, exclude=record) == [(9, 21)]


def test_unit_slots(engine, pool):
    assert engine.unit_slots(pool[0], TOMORROW) == [(11, 21)]
    assert engine.unit_slots(pool[1], TOMORROW) == [(9, 11), (13, 21)]
    assert engine.unit_slots(pool[2], TOMORROW) == [(9, 21)]


def test_pool_single_unit_covers_whole_day(engine, pool):
    slots = engine.pool_gap_slots([pool[0]], TOMORROW)

    assert hours_of(slots) == set(range(9, 21))
    # Hours 10 -> 11 switch from {2, 3} to {1, 3}; neither contains the other.
    assert slots == [(9, 11), (11, 21)]


def test_pool_all_units_only_when_all_free(engine, pool):
    assert engine.pool_gap_slots(pool, TOMORROW) == [(13, 21)]


def test_pool_uses_whole_pool_not_just_requested_units(engine, pool):
    # Asking with unit 1 only still sees units 2 and 3 as substitutes.
    assert engine.pool_gap_slots([pool[0], pool[0]], TOMORROW) == engine.pool_gap_slots(pool[:2], TOMORROW)


def test_pool_gaps_shrink_as_quantity_grows(engine, pool):
    coverage = [hours_of(engine.type_gap_slots(BALL, TOMORROW, q)) for q in (1, 2, 3, 4)]

    assert coverage[0] >= coverage[1] >= coverage[2] >= coverage[3]
    assert coverage[3] == set()


def test_pool_slots_empty_units_rejected(engine):
    with pytest.raises(ValueError):
        engine.pool_gap_slots([], TOMORROW)


def test_free_units_in_pool_order(engine, pool):
    assert engine.free_units(BALL, TOMORROW, 9, 11) == [pool[1], pool[2]]
    assert engine.free_units(BALL, TOMORROW, 10, 12) == [pool[2]]
    assert engine.free_units(BALL, TOMORROW, 13, 15) == pool


def test_available_quantity_by_type(engine, pool):
    assert engine.available_quantity_by_type([BALL], TOMORROW, 9, 10) == {"ET-001": 2}
    assert engine.available_quantity_by_type([BALL], TOMORROW, 14, 16) == {"ET-001": 3}


def test_merge_pool_hours_extends_on_subset_and_superset():
    free = {9: {"a", "b"}, 10: {"a", "b", "c"}, 11: {"a"}, 12: {"a", "b"}}

    assert merge_pool_hours(free, 1) == [(9, 13)]


def test_merge_pool_hours_compares_with_first_hour_of_range():
    # 10 ⊇ 9 extends, 11 is compared with hour 9 again and is disjoint from it.
    free = {9: {"a"}, 10: {"a", "b"}, 11: {"b"}}

    assert merge_pool_hours(free, 1) == [(9, 11), (11, 12)]


def test_merge_pool_hours_breaks_on_non_contiguous_hours():
    free = {9: {"a"}, 10: set(), 11: {"a"}}

    assert merge_pool_hours(free, 1) == [(9, 10), (11, 12)]


def test_merge_pool_hours_skips_short_hours():
    free = {9: {"a", "b"}, 10: {"a"}, 11: {"a", "b"}}

    assert merge_pool_hours(free, 2) == [(9, 10), (11, 12)]
    assert merge_pool_hours({}, 1) == []
