from __future__ import annotations

from typing import Dict, List, Type

from fastapi import APIRouter, HTTPException, Path, Query, status

from models import (
    CreateEquipmentBookingIn,
    CreateFacilityBookingIn,
    EquipmentBookingOut,
    EquipmentBookingRecord,
    FacilityBookingOut,
    FacilityBookingRecord,
    FacilityOut,
    PaymentOut,
    ReassignFacilityIn,
    RescheduleIn,
    SlotOut,
    UserBookingsOut,
    parse_booking_date,
)
from services import (
    BookingAlreadyStartedError,
    BookingError,
    EquipmentBookingService,
    FacilityBookingService,
    InsufficientUnitsError,
    InvalidQuantityError,
    InvalidTimeWindowError,
    NothingToPayError,
    NotUpdatableError,
    PaymentService,
    RecordNotFoundError,
    ResourceNotFoundError,
    ResourceUnavailableError,
    SlotUnavailableError,
    StartInPastError,
)

_STATUS_BY_ERROR: Dict[Type[BookingError], int] = {
    InvalidTimeWindowError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    InvalidQuantityError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    StartInPastError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    SlotUnavailableError: status.HTTP_409_CONFLICT,
    InsufficientUnitsError: status.HTTP_409_CONFLICT,
    ResourceUnavailableError: status.HTTP_409_CONFLICT,
    BookingAlreadyStartedError: status.HTTP_409_CONFLICT,
    NotUpdatableError: status.HTTP_409_CONFLICT,
    NothingToPayError: status.HTTP_409_CONFLICT,
    ResourceNotFoundError: status.HTTP_404_NOT_FOUND,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
}


def _http_error(exc: BookingError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=exc.message)


def _query_date(value: str):
    try:
        return parse_booking_date(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Validation error: date must be YYYY-MM-DD or dd/MM/yyyy.",
        )


def facility_booking_out(record: FacilityBookingRecord) -> FacilityBookingOut:
    return FacilityBookingOut(
        booking_id=record.booking_id,
        user_id=record.user_id,
        facility=record.facility.name,
        date=record.date,
        start_hour=record.start_hour,
        end_hour=record.end_hour,
        status=record.status,
        total_price=record.total_price(),
    )


def equipment_booking_out(record: EquipmentBookingRecord) -> EquipmentBookingOut:
    return EquipmentBookingOut(
        booking_id=record.booking_id,
        user_id=record.user_id,
        facility_booking_id=record.facility_booking_id,
        equipment_type_id=record.equipment_type.type_id,
        category=record.equipment_type.category,
        equipment=[] if record.is_sellable else [u.equipment_id for u in record.equipment],
        quantity=record.quantity,
        date=record.date,
        start_hour=record.start_hour,
        end_hour=record.end_hour,
        status=record.status,
        total_price=record.total_price(),
    )


def create_router(
    facilities: FacilityBookingService,
    equipment: EquipmentBookingService,
    payments: PaymentService,
) -> APIRouter:
    router = APIRouter()

    # -----------------------------
    # Facilities
    # -----------------------------
    @router.get("/facilities", response_model=List[FacilityOut])
    def list_facilities(available_only: bool = Query(True)) -> List[FacilityOut]:
        items = facilities.available_facilities() if available_only else facilities.all_facilities()
        return [
            FacilityOut(
                name=f.name,
                type_id=f.facility_type.type_id,
                sport_type=f.sport_type,
                price_per_hour=f.facility_type.price_per_hour,
                status=f.status,
            )
            for f in items
        ]

    @router.get("/facilities/{name}/slots", response_model=List[SlotOut])
    def facility_slots(name: str = Path(..., min_length=1), date: str = Query(...)) -> List[SlotOut]:
        try:
            slots = facilities.available_slots(name, _query_date(date))
        except BookingError as exc:
            raise _http_error(exc)
        return [SlotOut(start_hour=s, end_hour=e) for s, e in slots]

    @router.post("/facility-bookings", response_model=FacilityBookingOut, status_code=status.HTTP_201_CREATED)
    def create_facility_booking(payload: CreateFacilityBookingIn) -> FacilityBookingOut:
        try:
            record = facilities.book(
                payload.user_id, payload.facility, payload.booking_date, payload.start_hour, payload.end_hour
            )
        except BookingError as exc:
            raise _http_error(exc)
        return facility_booking_out(record)

    @router.put("/facility-bookings/{booking_id}/schedule", response_model=FacilityBookingOut)
    def reschedule_facility_booking(payload: RescheduleIn, booking_id: str = Path(..., min_length=1)) -> FacilityBookingOut:
        try:
            record = facilities.reschedule(booking_id, payload.booking_date, payload.start_hour, payload.end_hour)
        except BookingError as exc:
            raise _http_error(exc)
        return facility_booking_out(record)

    @router.put("/facility-bookings/{booking_id}/facility", response_model=FacilityBookingOut)
    def reassign_facility(payload: ReassignFacilityIn, booking_id: str = Path(..., min_length=1)) -> FacilityBookingOut:
        try:
            record = facilities.reassign_facility(booking_id, payload.facility)
        except BookingError as exc:
            raise _http_error(exc)
        return facility_booking_out(record)

    @router.delete("/facility-bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
    def cancel_facility_booking(booking_id: str = Path(..., min_length=1)) -> None:
        try:
            facilities.cancel(booking_id)
            return None
        except BookingError as exc:
            raise _http_error(exc)

    # -----------------------------
    # Equipment
    # -----------------------------
    @router.get("/equipment-types/{type_id}/slots", response_model=List[SlotOut])
    def equipment_pool_slots(
        type_id: str = Path(..., min_length=1),
        date: str = Query(...),
        quantity: int = Query(1, ge=1),
    ) -> List[SlotOut]:
        try:
            slots = equipment.pool_slots(type_id.upper(), _query_date(date), quantity)
        except BookingError as exc:
            raise _http_error(exc)
        return [SlotOut(start_hour=s, end_hour=e) for s, e in slots]

    @router.get("/sports/{sport_type}/equipment-availability", response_model=Dict[str, int])
    def equipment_availability(
        sport_type: str = Path(..., min_length=1),
        date: str = Query(...),
        start_hour: int = Query(...),
        end_hour: int = Query(...),
    ) -> Dict[str, int]:
        try:
            return equipment.available_quantities(sport_type, _query_date(date), start_hour, end_hour)
        except BookingError as exc:
            raise _http_error(exc)

    @router.post("/equipment-bookings/borrow", response_model=EquipmentBookingOut, status_code=status.HTTP_201_CREATED)
    def borrow_equipment(payload: CreateEquipmentBookingIn) -> EquipmentBookingOut:
        try:
            record = equipment.borrow(
                payload.user_id, payload.facility_booking_id, payload.equipment_type_id, payload.quantity
            )
        except BookingError as exc:
            raise _http_error(exc)
        return equipment_booking_out(record)

    @router.post("/equipment-bookings/sell", response_model=EquipmentBookingOut, status_code=status.HTTP_201_CREATED)
    def sell_equipment(payload: CreateEquipmentBookingIn) -> EquipmentBookingOut:
        try:
            record = equipment.sell(
                payload.user_id, payload.facility_booking_id, payload.equipment_type_id, payload.quantity
            )
        except BookingError as exc:
            raise _http_error(exc)
        return equipment_booking_out(record)

    @router.put("/equipment-bookings/{booking_id}/schedule", response_model=EquipmentBookingOut)
    def reschedule_equipment_booking(payload: RescheduleIn, booking_id: str = Path(..., min_length=1)) -> EquipmentBookingOut:
        try:
            record = equipment.reschedule(booking_id, payload.booking_date, payload.start_hour, payload.end_hour)
        except BookingError as exc:
            raise _http_error(exc)
        return equipment_booking_out(record)

    @router.delete("/equipment-bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
    def cancel_equipment_booking(booking_id: str = Path(..., min_length=1)) -> None:
        try:
            equipment.cancel(booking_id)
            return None
        except BookingError as exc:
            raise _http_error(exc)

    # -----------------------------
    # Users and payment
    # -----------------------------
    @router.get("/users/{user_id}/bookings", response_model=UserBookingsOut)
    def user_bookings(user_id: str = Path(..., min_length=1), pending_only: bool = Query(False)) -> UserBookingsOut:
        if pending_only:
            facility_records = facilities.pending_for_user(user_id)
            equipment_records = equipment.pending_for_user(user_id)
        else:
            facility_records = facilities.bookings_for_user(user_id)
            equipment_records = equipment.bookings_for_user(user_id)
        return UserBookingsOut(
            facility_bookings=[facility_booking_out(r) for r in facility_records],
            equipment_bookings=[equipment_booking_out(r) for r in equipment_records],
        )

    @router.get("/users/{user_id}/payment", response_model=PaymentOut)
    def payment_quote(user_id: str = Path(..., min_length=1)) -> PaymentOut:
        try:
            return payments.quote(user_id)
        except BookingError as exc:
            raise _http_error(exc)

    @router.post("/users/{user_id}/payment", response_model=PaymentOut)
    def confirm_payment(user_id: str = Path(..., min_length=1)) -> PaymentOut:
        try:
            return payments.confirm(user_id)
        except BookingError as exc:
            raise _http_error(exc)

    return router
