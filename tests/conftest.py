from datetime import date, datetime, timedelta

import pytest

from clock import FixedClock
from config import Settings
from main import build_container

TODAY = date(2030, 1, 1)
TOMORROW = TODAY + timedelta(days=1)
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
def settings() -> Settings:
    return Settings(sweeper_enabled=False, seed_catalogue=True)


@pytest.fixture
def clock() -> FixedClock:
    """Fixed at 08:00 on TODAY, one hour before opening."""
    return FixedClock(datetime(2030, 1, 1, 8, 0))


@pytest.fixture
def container(settings, clock):
    return build_container(settings, clock)


@pytest.fixture
def facility_service(container):
    return container.facility_service


@pytest.fixture
def equipment_service(container):
    return container.equipment_service


@pytest.fixture
def payment_service(container):
    return container.payment_service
