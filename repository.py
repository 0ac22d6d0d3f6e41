from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from threading import Lock, RLock
from typing import Dict, Generic, Iterator, List, Optional, TypeVar

from models import (
    BookingRecord,
    Equipment,
    EquipmentBookingRecord,
    EquipmentCategory,
    EquipmentType,
    FacilityBookingRecord,
    FacilityStatus,
    SportFacility,
)

R = TypeVar("R", bound=BookingRecord)


class InMemoryBookingRepository(Generic[R]):
    """
    Owns the booking records of one kind, kept sorted by (date, start_hour).

    Reads hand out new lists; records change only through the services.
    The lock is re-entrant so a service can hold it across a check-then-mutate
    sequence while calling back into the repository.
    """

    def __init__(self) -> None:
        self._items: List[R] = []
        self._lock = RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def list(self) -> List[R]:
        with self._lock:
            return list(self._items)

    def get(self, booking_id: str) -> Optional[R]:
        with self._lock:
            for record in self._items:
                if record.booking_id == booking_id:
                    return record
            return None

    def by_user(self, user_id: str) -> List[R]:
        with self._lock:
            return [r for r in self._items if r.user_id == user_id]

    def add(self, record: R) -> None:
        with self._lock:
            self._items.append(record)
            self.sort()

    def remove(self, record: R) -> bool:
        with self._lock:
            for index, item in enumerate(self._items):
                if item is record:
                    del self._items[index]
                    return True
            return False

    def sort(self) -> None:
        with self._lock:
            self._items.sort(key=lambda r: r.sort_key)

    def reset(self) -> None:
        """Clear all bookings. For testing only."""
        with self._lock:
            self._items.clear()


class FacilityBookingRepository(InMemoryBookingRepository[FacilityBookingRecord]):
    def for_facility_on(self, facility: SportFacility, day: date) -> List[FacilityBookingRecord]:
        with self._lock:
            return [r for r in self._items if r.date == day and r.facility is facility]


class EquipmentBookingRepository(InMemoryBookingRepository[EquipmentBookingRecord]):
    def for_unit_on(self, unit: Equipment, day: date) -> List[EquipmentBookingRecord]:
        with self._lock:
            return [r for r in self._items if r.date == day and r.holds(unit)]


class FacilityRegistry:
    def __init__(self) -> None:
        self._items: Dict[str, SportFacility] = {}
        self._lock = Lock()

    def add(self, facility: SportFacility) -> None:
        with self._lock:
            self._items[facility.name] = facility

    def get(self, name: str) -> Optional[SportFacility]:
        with self._lock:
            return self._items.get(name)

    def exists(self, facility: SportFacility) -> bool:
        with self._lock:
            return self._items.get(facility.name) is facility

    def list(self) -> List[SportFacility]:
        with self._lock:
            return list(self._items.values())

    def list_available(self) -> List[SportFacility]:
        with self._lock:
            return [f for f in self._items.values() if f.status == FacilityStatus.AVAILABLE]

    def set_status(self, name: str, status: FacilityStatus) -> bool:
        with self._lock:
            facility = self._items.get(name)
            if facility is None:
                return False
            facility.status = status
            return True


class EquipmentRegistry:
    """Equipment types and the physical units created from them, in insertion order."""

    def __init__(self) -> None:
        self._types: Dict[str, EquipmentType] = {}
        self._units: List[Equipment] = []
        self._lock = Lock()

    def get_type(self, type_id: str) -> Optional[EquipmentType]:
        with self._lock:
            return self._types.get(type_id)

    def types_for_sport(self, sport_type: str, category: Optional[EquipmentCategory] = None) -> List[EquipmentType]:
        with self._lock:
            types = [t for t in self._types.values() if t.sport_type == sport_type]
        if category is not None:
            types = [t for t in types if t.category == category]
        return sorted(types, key=lambda t: t.type_id)

    def add_units(self, equipment_type: EquipmentType, count: int) -> List[Equipment]:
        with self._lock:
            self._types.setdefault(equipment_type.type_id, equipment_type)
            serial = sum(1 for u in self._units if u.equipment_type == equipment_type)
            created = [Equipment(serial + i + 1, equipment_type) for i in range(count)]
            self._units.extend(created)
            return created

    def units_of_type(self, equipment_type: EquipmentType) -> List[Equipment]:
        with self._lock:
            return [u for u in self._units if u.equipment_type == equipment_type]
