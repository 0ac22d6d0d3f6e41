import pytest

from conftest import TOMORROW
from models import BookingRecord, FacilityBookingRecord, parse_booking_date


def test_booking_record_is_abstract():
    with pytest.raises(TypeError):
        BookingRecord("alice", TOMORROW, 10, 12)


def test_facility_record_requires_a_facility():
    with pytest.raises(TypeError):
        FacilityBookingRecord("alice", TOMORROW, 10, 12)


@pytest.mark.parametrize("value", ["2030-01-02", "02/01/2030", " 2030-01-02 "])
def test_parse_booking_date(value):
    assert parse_booking_date(value) == TOMORROW


@pytest.mark.parametrize("value", ["", "tomorrow", "31/02/2030"])
def test_parse_booking_date_rejects_bad_input(value):
    with pytest.raises(ValueError):
        parse_booking_date(value)
