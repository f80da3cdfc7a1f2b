"""Tests for shared utility functions."""

from datetime import date, datetime, time

import pytest

from src.schemas.appointment_schema import Location
from src.utils import (
    as_local_naive,
    calculate_distance,
    format_minutes,
    normalize_address,
    parse_clock_time,
    parse_iso_date,
    to_minutes,
)


class TestNormalizeAddress:
    def test_lowercases(self):
        assert normalize_address("12 Oak Ave") == "12 oak ave"

    def test_collapses_whitespace(self):
        assert normalize_address("  12   Oak\tAve ") == "12 oak ave"

    def test_equal_after_normalizing(self):
        assert normalize_address("500 CASTRO St") == normalize_address("500 castro  st ")


class TestClockHelpers:
    def test_to_minutes(self):
        assert to_minutes(time(10, 30)) == 630

    def test_format_minutes(self):
        assert format_minutes(630) == "10:30"
        assert format_minutes(480) == "08:00"

    def test_parse_clock_time(self):
        assert parse_clock_time("09:05") == time(9, 5)
        assert parse_clock_time(time(14, 0)) == time(14, 0)

    def test_parse_clock_time_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_clock_time("9 o'clock")


class TestParseIsoDate:
    def test_string(self):
        assert parse_iso_date("2025-03-17") == date(2025, 3, 17)

    def test_date_passes_through(self):
        assert parse_iso_date(date(2025, 3, 17)) == date(2025, 3, 17)

    def test_datetime_truncated(self):
        assert parse_iso_date(datetime(2025, 3, 17, 15, 30)) == date(2025, 3, 17)

    def test_invalid_day(self):
        with pytest.raises(ValueError):
            parse_iso_date("2025-02-30")


class TestAsLocalNaive:
    def test_naive_is_unchanged(self):
        moment = datetime(2025, 3, 17, 10, 6)
        assert as_local_naive(moment) is moment

    def test_aware_becomes_local_wall_clock(self):
        moment = datetime(2025, 3, 17, 10, 6)
        converted = as_local_naive(moment.astimezone())
        assert converted == moment
        assert converted.tzinfo is None


class TestDistance:
    def test_same_point(self):
        assert calculate_distance(37.77, -122.42, 37.77, -122.42) == 0.0

    def test_known_distance(self):
        # San Francisco to Los Angeles, roughly 347 miles
        miles = calculate_distance(37.7749, -122.4194, 34.0522, -118.2437)
        assert miles == pytest.approx(347, rel=0.01)

    def test_same_place_by_address(self):
        a = Location(lat=37.0, lng=-122.0, address="12 Oak Ave")
        b = Location(lat=37.5, lng=-122.5, address=" 12 OAK AVE ")
        assert a.is_same_place(b)

    def test_same_place_by_coordinates_without_address(self):
        a = Location(lat=37.7749, lng=-122.4194)
        b = Location(lat=37.77491, lng=-122.41941, address="Depot")
        assert a.is_same_place(b)
        assert not a.is_same_place(Location(lat=37.79, lng=-122.4194))
