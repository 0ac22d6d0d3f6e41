from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

OPENING_HOUR = 9
CLOSING_HOUR = 21
MAX_SELL_QUANTITY = 50

Slot = Tuple[int, int]


# -----------------------------
# Shared time helpers
# -----------------------------
def parse_booking_date(value: str) -> date:
    """
    Parse an ISO calendar date (YYYY-MM-DD).
    The console client accepted dd/MM/yyyy too, so both are understood.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date must be a non-empty string")

    s = value.strip()
    if "/" in s:
        day, month, year = s.split("/")
        return date(int(year), int(month), int(day))
    return date.fromisoformat(s)


def new_booking_id() -> str:
    return f"bkg_{uuid4().hex}"


def slot_started(day: date, start_hour: int, today: date, current_hour: int) -> bool:
    return day < today or (day == today and start_hour <= current_hour)


# -----------------------------
# Domain model
# -----------------------------
class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    ENDED = "ENDED"


class FacilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"


class EquipmentCategory(str, Enum):
    BORROWABLE = "BORROWABLE"
    SELLABLE = "SELLABLE"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


@dataclass(frozen=True)
class FacilityType:
    type_id: str
    sport_type: str
    price_per_hour: float


@dataclass(eq=False)
class SportFacility:
    name: str
    facility_type: FacilityType
    status: FacilityStatus = FacilityStatus.AVAILABLE

    @property
    def sport_type(self) -> str:
        return self.facility_type.sport_type

    @property
    def is_available(self) -> bool:
        return self.status == FacilityStatus.AVAILABLE


@dataclass(frozen=True)
class EquipmentType:
    type_id: str
    name: str
    short_name: str
    sport_type: str
    price: float
    category: EquipmentCategory


@dataclass(frozen=True)
class Equipment:
    serial: int
    equipment_type: EquipmentType

    @property
    def equipment_id(self) -> str:
        return f"{self.equipment_type.short_name}-{self.serial:03d}"

    @property
    def price(self) -> float:
        return self.equipment_type.price

    @property
    def is_sellable(self) -> bool:
        return self.equipment_type.category == EquipmentCategory.SELLABLE


@dataclass(eq=False)
class BookingRecord(ABC):
    """
    A booked [start_hour, end_hour) slot on one day.
    Records compare by identity; the owning repository holds them for their whole life.
    """

    user_id: str
    date: datetime.date
    start_hour: int
    end_hour: int
    status: BookingStatus = BookingStatus.PENDING
    booking_id: str = field(default_factory=new_booking_id)

    @property
    def timeslot(self) -> Slot:
        return (self.start_hour, self.end_hour)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def sort_key(self) -> Tuple[date, int]:
        return (self.date, self.start_hour)

    def has_started(self, today: date, current_hour: int) -> bool:
        return slot_started(self.date, self.start_hour, today, current_hour)

    def has_ended(self, today: date, current_hour: int) -> bool:
        return self.date < today or (self.date == today and self.end_hour <= current_hour)

    def move_to(self, new_date: date, start_hour: int, end_hour: int) -> None:
        self.date = new_date
        self.start_hour = start_hour
        self.end_hour = end_hour

    @abstractmethod
    def total_price(self) -> float: ...


@dataclass(eq=False)
class FacilityBookingRecord(BookingRecord):
    facility: SportFacility = field(kw_only=True)

    def reassign_facility(self, facility: SportFacility) -> None:
        self.facility = facility

    def total_price(self) -> float:
        return self.facility.facility_type.price_per_hour * (self.end_hour - self.start_hour)


@dataclass(eq=False)
class EquipmentBookingRecord(BookingRecord):
    equipment: List[Equipment] = field(default_factory=list)
    quantity: int = 0
    facility_booking_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.quantity:
            self.quantity = len(self.equipment)

    @property
    def equipment_type(self) -> EquipmentType:
        return self.equipment[0].equipment_type

    @property
    def is_sellable(self) -> bool:
        return self.equipment[0].is_sellable

    def holds(self, unit: Equipment) -> bool:
        return unit in self.equipment

    def assign_units(self, units: List[Equipment]) -> None:
        self.equipment = list(units)
        self.quantity = len(self.equipment)

    def total_price(self) -> float:
        if self.is_sellable:
            return self.equipment[0].price * self.quantity
        return sum(unit.price for unit in self.equipment[: self.quantity])


# -----------------------------
# API models (transport layer)
# -----------------------------
class _HourWindowIn(BaseModel):
    date: str
    start_hour: int = Field(..., ge=0, le=24)
    end_hour: int = Field(..., ge=0, le=24)

    @field_validator("date")
    @classmethod
    def must_be_calendar_date(cls, v: str) -> str:
        # Window bounds are checked by the service so callers get the domain error.
        parse_booking_date(v)
        return v

    @property
    def booking_date(self) -> datetime.date:
        return parse_booking_date(self.date)


class CreateFacilityBookingIn(_HourWindowIn):
    user_id: str = Field(..., min_length=1)
    facility: str = Field(..., min_length=1)


class RescheduleIn(_HourWindowIn):
    pass


class ReassignFacilityIn(BaseModel):
    facility: str = Field(..., min_length=1)


class CreateEquipmentBookingIn(BaseModel):
    user_id: str = Field(..., min_length=1)
    facility_booking_id: str = Field(..., min_length=1)
    equipment_type_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)

    @field_validator("equipment_type_id")
    @classmethod
    def normalise_type_id(cls, v: str) -> str:
        return v.strip().upper()


class SlotOut(BaseModel):
    start_hour: int
    end_hour: int


class FacilityOut(BaseModel):
    name: str
    type_id: str
    sport_type: str
    price_per_hour: float
    status: FacilityStatus


class FacilityBookingOut(BaseModel):
    booking_id: str
    user_id: str
    facility: str
    date: datetime.date
    start_hour: int
    end_hour: int
    status: BookingStatus
    total_price: float


class EquipmentBookingOut(BaseModel):
    booking_id: str
    user_id: str
    facility_booking_id: Optional[str]
    equipment_type_id: str
    category: EquipmentCategory
    equipment: List[str]
    quantity: int
    date: datetime.date
    start_hour: int
    end_hour: int
    status: BookingStatus
    total_price: float


class UserBookingsOut(BaseModel):
    facility_bookings: List[FacilityBookingOut]
    equipment_bookings: List[EquipmentBookingOut]


class PaymentOut(BaseModel):
    user_id: str
    facility_bookings: int
    equipment_bookings: int
    total_price: float
