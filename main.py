from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from api import create_router
from availability import AvailabilityEngine
from clock import Clock, SystemClock
from config import Settings, get_settings
from models import EquipmentCategory, EquipmentType, FacilityType, SportFacility
from repository import (
    EquipmentBookingRepository,
    EquipmentRegistry,
    FacilityBookingRepository,
    FacilityRegistry,
)
from services import EquipmentBookingService, FacilityBookingService, PaymentService
from sweeper import StatusSweeper

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Repositories and services built once per application."""

    facilities: FacilityRegistry
    equipment: EquipmentRegistry
    facility_bookings: FacilityBookingRepository
    equipment_bookings: EquipmentBookingRepository
    facility_service: FacilityBookingService
    equipment_service: EquipmentBookingService
    payment_service: PaymentService
    sweeper: StatusSweeper

    def reset(self) -> None:
        """Clear all bookings. For testing only."""
        self.facility_bookings.reset()
        self.equipment_bookings.reset()


def build_container(settings: Settings, clock: Clock) -> Container:
    facilities = FacilityRegistry()
    equipment = EquipmentRegistry()
    facility_bookings = FacilityBookingRepository()
    equipment_bookings = EquipmentBookingRepository()

    engine = AvailabilityEngine(facility_bookings, equipment_bookings, equipment)
    facility_service = FacilityBookingService(facility_bookings, facilities, engine, clock)
    equipment_service = EquipmentBookingService(equipment_bookings, facility_bookings, equipment, engine, clock)
    payment_service = PaymentService(facility_service, equipment_service)
    sweeper = StatusSweeper(
        [facility_service.update_status_sweep, equipment_service.update_status_sweep],
        clock,
        interval_seconds=settings.sweep_interval_seconds,
    )

    if settings.seed_catalogue:
        seed_catalogue(facilities, equipment)

    return Container(
        facilities=facilities,
        equipment=equipment,
        facility_bookings=facility_bookings,
        equipment_bookings=equipment_bookings,
        facility_service=facility_service,
        equipment_service=equipment_service,
        payment_service=payment_service,
        sweeper=sweeper,
    )


def seed_catalogue(facilities: FacilityRegistry, equipment: EquipmentRegistry) -> None:
    basketball = FacilityType("SFT-001", "Basketball", 30)
    badminton = FacilityType("SFT-002", "Badminton", 20)
    table_tennis = FacilityType("SFT-003", "TableTennis", 15)
    facilities.add(SportFacility("SF-001", basketball))
    facilities.add(SportFacility("SF-002", badminton))
    facilities.add(SportFacility("SF-003", table_tennis))
    facilities.add(SportFacility("SF-004", basketball))

    borrowable = [
        EquipmentType("ET-001", "Basketball Brand A", "BBA", "Basketball", 10, EquipmentCategory.BORROWABLE),
        EquipmentType("ET-002", "Badminton Racket", "BDR", "Badminton", 8, EquipmentCategory.BORROWABLE),
        EquipmentType("ET-003", "Table Tennis Paddle", "TTP", "TableTennis", 5, EquipmentCategory.BORROWABLE),
    ]
    sellable = [
        EquipmentType("ET-101", "Shuttlecock", "SHC", "Badminton", 3, EquipmentCategory.SELLABLE),
        EquipmentType("ET-102", "Table Tennis Ball", "TTB", "TableTennis", 2, EquipmentCategory.SELLABLE),
    ]
    for equipment_type in borrowable:
        equipment.add_units(equipment_type, 5)
    for equipment_type in sellable:
        equipment.add_units(equipment_type, 1)

    logger.info("Seeded %d facilities and %d equipment types", len(facilities.list()), len(borrowable) + len(sellable))


def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    settings = settings or get_settings()
    clock = clock or SystemClock(settings.timezone)
    container = build_container(settings, clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("%s starting up (timezone %s)", settings.app_name, settings.timezone)
        if settings.sweeper_enabled:
            container.sweeper.start()
        yield
        if container.sweeper.running:
            container.sweeper.stop()
        logger.info("%s shutting down", settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.container = container
    app.include_router(
        create_router(container.facility_service, container.equipment_service, container.payment_service)
    )
    return app


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
