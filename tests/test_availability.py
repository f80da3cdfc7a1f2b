"""Tests for the availability calculator and its request boundary."""

from datetime import datetime, time, timedelta

import pytest

from src.errors import InvalidInputError
from src.scheduling.availability import AvailabilityStatus
from src.scheduling.conflicts import intervals_overlap
from src.schemas.availability_schema import UnavailableReason
from tests.conftest import ADDRESS_A, ADDRESS_B, MONDAY, SUNDAY, make_appointment


def _slot_at(result, clock: str):
    return next(s for s in result.slots if s.start_time == clock)


class TestComputeSlots:
    def test_open_day_with_lunch(self, engine):
        result = engine.availability.compute_slots("det_test", MONDAY, 60)
        assert result.status == AvailabilityStatus.OK
        assert len(result.slots) == 20
        # 11:30, 12:00, 12:30 hit lunch; 17:30 runs past close
        assert len(result.available_slots) == 16
        assert _slot_at(result, "12:00").reason == UnavailableReason.LUNCH
        assert _slot_at(result, "17:30").reason == UnavailableReason.CLOSED

    def test_chronological_order(self, engine):
        result = engine.availability.compute_slots("det_test", MONDAY, 30)
        starts = [s.start for s in result.slots]
        assert starts == sorted(starts)

    def test_accepts_iso_date_string(self, engine):
        result = engine.availability.compute_slots("det_test", "2025-03-17", 60)
        assert result.day == MONDAY

    def test_closed_day_has_no_slots(self, engine):
        result = engine.availability.compute_slots("det_test", SUNDAY, 60)
        assert result.status == AvailabilityStatus.CLOSED
        assert result.slots == []
        assert result.provider_found

    def test_unknown_provider_distinct_from_fully_booked(self, engine):
        result = engine.availability.compute_slots("ghost", MONDAY, 60)
        assert result.status == AvailabilityStatus.NO_SUCH_PROVIDER
        assert not result.provider_found
        assert result.slots == []

    def test_existing_job_marks_booked_and_travel(self, engine, store):
        store.create_many([make_appointment(start=time(10, 0), duration=45, location=ADDRESS_A)])
        result = engine.availability.compute_slots("det_test", MONDAY, 30, ADDRESS_B)
        assert _slot_at(result, "10:00").reason == UnavailableReason.BOOKED
        assert _slot_at(result, "10:30").reason == UnavailableReason.BOOKED
        assert _slot_at(result, "09:30").reason == UnavailableReason.TRAVEL
        assert _slot_at(result, "11:00").available

    def test_lead_time_closes_early_slots(self, engine):
        now = datetime.combine(MONDAY, time(8, 0))
        result = engine.availability.compute_slots("det_test", MONDAY, 30, now=now)
        assert _slot_at(result, "09:30").reason == UnavailableReason.CLOSED
        assert _slot_at(result, "10:00").available

    def test_lead_time_accepts_aware_now(self, engine):
        now = datetime.combine(MONDAY, time(8, 0)).astimezone()
        result = engine.availability.compute_slots("det_test", MONDAY, 30, now=now)
        assert _slot_at(result, "09:30").reason == UnavailableReason.CLOSED
        assert _slot_at(result, "10:00").available

    def test_does_not_mutate_store(self, engine, store):
        store.create_many([make_appointment()])
        before = [a.model_dump() for a in store.for_provider("det_test")]
        engine.availability.compute_slots("det_test", MONDAY, 90, ADDRESS_B)
        assert [a.model_dump() for a in store.for_provider("det_test")] == before

    @pytest.mark.parametrize("duration", [30, 45, 60, 90, 150])
    def test_available_slots_never_overlap_jobs(self, engine, store, duration):
        store.create_many([
            make_appointment("APT-1", start=time(8, 30), duration=60, location=ADDRESS_A),
            make_appointment("APT-2", start=time(14, 0), duration=75, location=ADDRESS_B),
            make_appointment("APT-3", start=time(16, 15), duration=40, location=ADDRESS_A),
        ])
        busy = [(a.start, a.end) for a in store.for_provider_on("det_test", MONDAY)]
        result = engine.availability.compute_slots("det_test", MONDAY, duration, ADDRESS_A)
        for slot in result.available_slots:
            assert not any(intervals_overlap(slot.start, slot.end, s, e) for s, e in busy)
            assert not intervals_overlap(slot.start, slot.end, 12 * 60, 13 * 60)
            assert slot.end <= 18 * 60


class TestInputValidation:
    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration(self, engine, duration):
        with pytest.raises(InvalidInputError) as exc_info:
            engine.availability.compute_slots("det_test", MONDAY, duration)
        assert exc_info.value.field == "total_duration_minutes"

    @pytest.mark.parametrize("duration", [True, 45.5, "60"])
    def test_non_integer_duration(self, engine, duration):
        with pytest.raises(InvalidInputError):
            engine.availability.compute_slots("det_test", MONDAY, duration)

    @pytest.mark.parametrize("day", ["2025-13-45", "17/03/2025", ""])
    def test_malformed_date(self, engine, day):
        with pytest.raises(InvalidInputError) as exc_info:
            engine.availability.compute_slots("det_test", day, 60)
        assert exc_info.value.field == "date"


class TestCheckSlot:
    def test_off_grid_start(self, engine, store):
        store.create_many([make_appointment(start=time(10, 0), duration=45, location=ADDRESS_A)])
        same_place = engine.availability.check_slot("det_test", MONDAY, 10 * 60 + 45, 30, ADDRESS_A)
        elsewhere = engine.availability.check_slot("det_test", MONDAY, 10 * 60 + 45, 30, ADDRESS_B)
        assert same_place.available
        assert elsewhere.reason == UnavailableReason.TRAVEL

    def test_exclude_id(self, engine, store):
        store.create_many([make_appointment("APT-SELF", start=time(10, 0), duration=45)])
        slot = engine.availability.check_slot(
            "det_test", MONDAY, 10 * 60 + 30, 45, ADDRESS_A, exclude_id="APT-SELF"
        )
        assert slot.available

    def test_unknown_provider_raises(self, engine):
        with pytest.raises(InvalidInputError) as exc_info:
            engine.availability.check_slot("ghost", MONDAY, 600, 30)
        assert exc_info.value.field == "provider_id"

    def test_closed_day_at_lunch_time_is_closed(self, engine):
        slot = engine.availability.check_slot("det_test", SUNDAY, 12 * 60, 60, ADDRESS_A)
        assert not slot.available
        assert slot.reason == UnavailableReason.CLOSED


class TestFindNextAvailable:
    def test_skips_closed_day(self, engine):
        assert engine.availability.find_next_available("det_test", SUNDAY, 60) == (MONDAY, "08:00")

    def test_skips_fully_booked_day(self, engine, store):
        store.create_many([
            make_appointment("APT-AM", start=time(8, 0), duration=240),
            make_appointment("APT-PM", start=time(13, 0), duration=300),
        ])
        found = engine.availability.find_next_available("det_test", MONDAY, 60, ADDRESS_A)
        assert found == (MONDAY + timedelta(days=1), "08:00")

    def test_unknown_provider(self, engine):
        assert engine.availability.find_next_available("ghost", MONDAY, 60) is None


class TestQueryAvailability:
    def test_response_shape(self, engine):
        response = engine.availability.query_availability({
            "providerId": "det_test",
            "date": "2025-03-17",
            "totalDurationMinutes": 60,
        })
        first = response["slots"][0]
        assert first == {"startTime": "08:00", "endTime": "09:00", "available": True}
        lunch = next(s for s in response["slots"] if s["startTime"] == "12:00")
        assert lunch == {
            "startTime": "12:00", "endTime": "13:00", "available": False, "reason": "lunch",
        }
        assert "error" not in response

    def test_with_location(self, engine, store):
        store.create_many([make_appointment(start=time(10, 0), duration=45, location=ADDRESS_A)])
        response = engine.availability.query_availability({
            "providerId": "det_test",
            "date": "2025-03-17",
            "totalDurationMinutes": 30,
            "location": {"lat": ADDRESS_B.lat, "lng": ADDRESS_B.lng, "address": ADDRESS_B.address},
        })
        slot = next(s for s in response["slots"] if s["startTime"] == "09:30")
        assert slot["reason"] == "travel"

    def test_unknown_provider(self, engine):
        response = engine.availability.query_availability({
            "providerId": "ghost", "date": "2025-03-17", "totalDurationMinutes": 60,
        })
        assert response == {"slots": [], "error": "no_such_provider"}

    def test_missing_field_rejected(self, engine):
        with pytest.raises(InvalidInputError):
            engine.availability.query_availability({"date": "2025-03-17", "totalDurationMinutes": 60})

    def test_zero_duration_rejected(self, engine):
        with pytest.raises(InvalidInputError):
            engine.availability.query_availability({
                "providerId": "det_test", "date": "2025-03-17", "totalDurationMinutes": 0,
            })
