from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Generic, List, Optional

from availability import AvailabilityEngine
from clock import Clock
from gaps import slot_contains
from models import (
    CLOSING_HOUR,
    MAX_SELL_QUANTITY,
    OPENING_HOUR,
    BookingRecord,
    BookingStatus,
    EquipmentBookingRecord,
    EquipmentCategory,
    EquipmentType,
    FacilityBookingRecord,
    PaymentOut,
    Slot,
    SportFacility,
    slot_started,
)
from repository import (
    EquipmentBookingRepository,
    EquipmentRegistry,
    FacilityBookingRepository,
    FacilityRegistry,
    InMemoryBookingRepository,
    R,
)

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for domain/service errors."""

    default_message = "Booking request rejected."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidTimeWindowError(BookingError):
    default_message = (
        f"Invalid time slot. Please select a time between {OPENING_HOUR:02d}:00 and {CLOSING_HOUR:02d}:00."
    )


class SlotUnavailableError(BookingError):
    default_message = "The selected time slot is not available on that day."


class InsufficientUnitsError(BookingError):
    default_message = "Not enough available equipments in selected time slot."


class ResourceNotFoundError(BookingError):
    default_message = "The requested resource does not exist."


class ResourceUnavailableError(BookingError):
    default_message = "The requested resource is not available."


class RecordNotFoundError(BookingError):
    default_message = "The booking record does not exist."


class BookingAlreadyStartedError(BookingError):
    default_message = "You can not change a booking that has already started."


class StartInPastError(BookingError):
    default_message = "Booking start cannot be in the past."


class NotUpdatableError(BookingError):
    default_message = "Sellable equipment bookings cannot be rescheduled."


class InvalidQuantityError(BookingError):
    default_message = "Invalid equipment quantity."


class NothingToPayError(BookingError):
    default_message = "No pending bookings to pay for."


def validate_time_window(start_hour: int, end_hour: int) -> None:
    if start_hour < OPENING_HOUR or end_hour > CLOSING_HOUR or start_hour >= end_hour:
        raise InvalidTimeWindowError()


def sweep_ended(repo: InMemoryBookingRepository, clock: Clock) -> int:
    """
    Mark active records whose slot is over as ENDED.

    A record ends once the clock reaches its end hour on its own day
    (end_hour <= current hour), or on any later day.
    """
    today = clock.today()
    hour = clock.current_hour()
    ended = 0
    with repo.locked():
        for record in repo.list():
            if record.is_active and record.has_ended(today, hour):
                record.status = BookingStatus.ENDED
                ended += 1
    return ended


class _BookingService(Generic[R]):
    """Lookups, cancellation, confirmation and the status sweep shared by both booking kinds."""

    kind = "booking"

    def __init__(self, repo: InMemoryBookingRepository[R], clock: Clock) -> None:
        self._repo = repo
        self._clock = clock

    def get(self, booking_id: str) -> R:
        record = self._repo.get(booking_id)
        if record is None:
            raise RecordNotFoundError()
        return record

    def bookings_for_user(self, user_id: str) -> List[R]:
        return self._repo.by_user(user_id)

    def pending_for_user(self, user_id: str) -> List[R]:
        return [r for r in self._repo.by_user(user_id) if r.status == BookingStatus.PENDING]

    def cancel(self, booking_id: str) -> None:
        with self._repo.locked():
            record = self.get(booking_id)
            self._require_not_started(record, "You can not cancel started booking.")
            self._repo.remove(record)

        logger.info("%s %s cancelled", self.kind.capitalize(), booking_id)

    def confirm_pending(self, user_id: str) -> List[R]:
        with self._repo.locked():
            confirmed = self.pending_for_user(user_id)
            for record in confirmed:
                record.status = BookingStatus.CONFIRMED
        return confirmed

    def update_status_sweep(self) -> int:
        return sweep_ended(self._repo, self._clock)

    def _require_not_started(self, record: BookingRecord, message: Optional[str] = None) -> None:
        if record.has_started(self._clock.today(), self._clock.current_hour()):
            raise BookingAlreadyStartedError(message)

    def _require_future_start(self, day: date, start_hour: int) -> None:
        if slot_started(day, start_hour, self._clock.today(), self._clock.current_hour()):
            raise StartInPastError()


class FacilityBookingService(_BookingService[FacilityBookingRecord]):
    kind = "facility booking"

    def __init__(
        self,
        repo: FacilityBookingRepository,
        facilities: FacilityRegistry,
        engine: AvailabilityEngine,
        clock: Clock,
    ) -> None:
        super().__init__(repo, clock)
        self._facilities = facilities
        self._engine = engine

    def available_facilities(self) -> List[SportFacility]:
        return self._facilities.list_available()

    def all_facilities(self) -> List[SportFacility]:
        return self._facilities.list()

    def available_slots(self, facility_name: str, day: date) -> List[Slot]:
        facility = self._require_facility(facility_name)
        return self._engine.facility_slots(facility, day)

    def is_valid_time_slot(self, facility_name: str, day: date, start_hour: int, end_hour: int) -> bool:
        try:
            validate_time_window(start_hour, end_hour)
        except InvalidTimeWindowError:
            return False
        return slot_contains(self.available_slots(facility_name, day), start_hour, end_hour)

    def book(self, user_id: str, facility_name: str, day: date, start_hour: int, end_hour: int) -> FacilityBookingRecord:
        validate_time_window(start_hour, end_hour)
        facility = self._require_available_facility(facility_name)
        self._require_future_start(day, start_hour)

        with self._repo.locked():
            slots = self._engine.facility_slots(facility, day)
            if not slot_contains(slots, start_hour, end_hour):
                logger.debug("Booking of %s on %s rejected, free slots: %s", facility.name, day, slots)
                raise SlotUnavailableError()

            record = FacilityBookingRecord(
                user_id=user_id,
                date=day,
                start_hour=start_hour,
                end_hour=end_hour,
                facility=facility,
            )
            self._repo.add(record)

        logger.info(
            "Facility %s booked by %s on %s %02d:00-%02d:00 (%s)",
            facility.name, user_id, day, start_hour, end_hour, record.booking_id,
        )
        return record

    def reschedule(self, booking_id: str, new_date: date, start_hour: int, end_hour: int) -> FacilityBookingRecord:
        with self._repo.locked():
            record = self.get(booking_id)
            validate_time_window(start_hour, end_hour)
            self._require_not_started(record)
            self._require_future_start(new_date, start_hour)

            facility = record.facility
            if not self._facilities.exists(facility) or not facility.is_available:
                raise ResourceUnavailableError(f"Facility {facility.name} is not available.")

            slots = self._engine.facility_slots(facility, new_date, exclude=record)
            if not slot_contains(slots, start_hour, end_hour):
                logger.debug("Reschedule of %s rejected, free slots: %s", booking_id, slots)
                raise SlotUnavailableError()

            record.move_to(new_date, start_hour, end_hour)
            self._repo.sort()

        logger.info("Facility booking %s moved to %s %02d:00-%02d:00", booking_id, new_date, start_hour, end_hour)
        return record

    def reassign_facility(self, booking_id: str, new_facility_name: str) -> FacilityBookingRecord:
        with self._repo.locked():
            record = self.get(booking_id)
            self._require_not_started(record)
            new_facility = self._require_available_facility(new_facility_name)
            # Borrowed equipment is matched to the sport, so the sport stays fixed.
            if new_facility.sport_type != record.facility.sport_type:
                raise ResourceUnavailableError(
                    f"Facility {new_facility.name} is not a {record.facility.sport_type} facility."
                )

            # The record keeps its slot, so the new facility must be free for it.
            slots = self._engine.facility_slots(new_facility, record.date, exclude=record)
            if not slot_contains(slots, record.start_hour, record.end_hour):
                raise SlotUnavailableError(f"Facility {new_facility.name} is not free for the booked time slot.")

            record.reassign_facility(new_facility)

        logger.info("Facility booking %s reassigned to %s", booking_id, new_facility.name)
        return record

    def _require_facility(self, name: str) -> SportFacility:
        facility = self._facilities.get(name)
        if facility is None:
            raise ResourceNotFoundError(f"Facility {name} does not exist.")
        return facility

    def _require_available_facility(self, name: str) -> SportFacility:
        facility = self._require_facility(name)
        if not facility.is_available:
            raise ResourceUnavailableError(f"Facility {name} is under maintenance.")
        return facility


class EquipmentBookingService(_BookingService[EquipmentBookingRecord]):
    kind = "equipment booking"

    def __init__(
        self,
        repo: EquipmentBookingRepository,
        facility_bookings: FacilityBookingRepository,
        equipment: EquipmentRegistry,
        engine: AvailabilityEngine,
        clock: Clock,
    ) -> None:
        super().__init__(repo, clock)
        self._facility_bookings = facility_bookings
        self._equipment = equipment
        self._engine = engine

    def pool_slots(self, type_id: str, day: date, quantity: int) -> List[Slot]:
        if quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1.")
        equipment_type = self._require_type(type_id, EquipmentCategory.BORROWABLE)
        return self._engine.type_gap_slots(equipment_type, day, quantity)

    def available_quantities(self, sport_type: str, day: date, start_hour: int, end_hour: int) -> Dict[str, int]:
        validate_time_window(start_hour, end_hour)
        types = self._equipment.types_for_sport(sport_type, EquipmentCategory.BORROWABLE)
        return self._engine.available_quantity_by_type(types, day, start_hour, end_hour)

    def borrow(self, user_id: str, facility_booking_id: str, type_id: str, quantity: int) -> EquipmentBookingRecord:
        if quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1.")
        facility_record = self._users_facility_booking(user_id, facility_booking_id)
        equipment_type = self._require_type(type_id, EquipmentCategory.BORROWABLE, facility_record.facility.sport_type)

        with self._repo.locked():
            free = self._engine.free_units(
                equipment_type, facility_record.date, facility_record.start_hour, facility_record.end_hour
            )
            if len(free) < quantity:
                logger.debug("Borrow of %d x %s rejected, %d free", quantity, equipment_type.type_id, len(free))
                raise InsufficientUnitsError(f"Only {len(free)} {equipment_type.name} available in selected time slot.")

            record = EquipmentBookingRecord(
                user_id=user_id,
                date=facility_record.date,
                start_hour=facility_record.start_hour,
                end_hour=facility_record.end_hour,
                equipment=free[:quantity],
                facility_booking_id=facility_record.booking_id,
            )
            self._repo.add(record)

        logger.info(
            "%s borrowed %d x %s (%s)",
            user_id, quantity, equipment_type.name, ", ".join(u.equipment_id for u in record.equipment),
        )
        return record

    def sell(self, user_id: str, facility_booking_id: str, type_id: str, quantity: int) -> EquipmentBookingRecord:
        if quantity < 1 or quantity > MAX_SELL_QUANTITY:
            raise InvalidQuantityError(f"You can only buy between 1 and {MAX_SELL_QUANTITY} equipments at once.")
        facility_record = self._users_facility_booking(user_id, facility_booking_id)
        equipment_type = self._require_type(type_id, EquipmentCategory.SELLABLE, facility_record.facility.sport_type)

        units = self._equipment.units_of_type(equipment_type)
        if not units:
            raise ResourceUnavailableError(f"{equipment_type.name} is out of stock.")

        record = EquipmentBookingRecord(
            user_id=user_id,
            date=facility_record.date,
            start_hour=facility_record.start_hour,
            end_hour=facility_record.end_hour,
            equipment=units,
            quantity=quantity,
            facility_booking_id=facility_record.booking_id,
        )
        self._repo.add(record)

        logger.info("%s bought %d x %s", user_id, quantity, equipment_type.name)
        return record

    def reschedule(self, booking_id: str, new_date: date, start_hour: int, end_hour: int) -> EquipmentBookingRecord:
        with self._repo.locked():
            record = self.get(booking_id)
            validate_time_window(start_hour, end_hour)
            if record.is_sellable:
                raise NotUpdatableError()
            self._require_not_started(record)
            self._require_future_start(new_date, start_hour)

            slots = self._engine.pool_gap_slots(record.equipment, new_date, exclude=record)
            if not slot_contains(slots, start_hour, end_hour):
                logger.debug("Reschedule of %s rejected, pool slots: %s", booking_id, slots)
                raise InsufficientUnitsError()

            free = self._engine.free_units(record.equipment_type, new_date, start_hour, end_hour, exclude=record)
            if len(free) < record.quantity:
                raise InsufficientUnitsError()

            record.assign_units(free[: record.quantity])
            record.move_to(new_date, start_hour, end_hour)
            self._repo.sort()

        logger.info("Equipment booking %s moved to %s %02d:00-%02d:00", booking_id, new_date, start_hour, end_hour)
        return record

    def _require_type(
        self,
        type_id: str,
        category: EquipmentCategory,
        sport_type: Optional[str] = None,
    ) -> EquipmentType:
        equipment_type = self._equipment.get_type(type_id)
        if (
            equipment_type is None
            or equipment_type.category != category
            or (sport_type is not None and equipment_type.sport_type != sport_type)
        ):
            raise ResourceNotFoundError(f"Equipment type {type_id} not found.")
        return equipment_type

    def _users_facility_booking(self, user_id: str, facility_booking_id: str) -> FacilityBookingRecord:
        record = self._facility_bookings.get(facility_booking_id)
        if record is None or record.user_id != user_id or not record.is_active:
            raise RecordNotFoundError("Facility booking not found for this user.")
        self._require_not_started(record, "Equipment can only be added to a booking that has not started.")
        return record


class PaymentService:
    """Totals and confirms a user's pending bookings. Membership discounts are applied elsewhere."""

    def __init__(self, facility_service: FacilityBookingService, equipment_service: EquipmentBookingService) -> None:
        self._facility_service = facility_service
        self._equipment_service = equipment_service

    def quote(self, user_id: str) -> PaymentOut:
        return self._summarise(
            user_id,
            self._facility_service.pending_for_user(user_id),
            self._equipment_service.pending_for_user(user_id),
        )

    def confirm(self, user_id: str) -> PaymentOut:
        # Fails before touching anything when there is nothing pending.
        self.quote(user_id)
        summary = self._summarise(
            user_id,
            self._facility_service.confirm_pending(user_id),
            self._equipment_service.confirm_pending(user_id),
        )
        logger.info("Payment of %.2f confirmed for %s", summary.total_price, user_id)
        return summary

    @staticmethod
    def _summarise(
        user_id: str,
        facility_records: List[FacilityBookingRecord],
        equipment_records: List[EquipmentBookingRecord],
    ) -> PaymentOut:
        if not facility_records and not equipment_records:
            raise NothingToPayError()
        total = sum(r.total_price() for r in facility_records) + sum(r.total_price() for r in equipment_records)
        return PaymentOut(
            user_id=user_id,
            facility_bookings=len(facility_records),
            equipment_bookings=len(equipment_records),
            total_price=round(total, 2),
        )
