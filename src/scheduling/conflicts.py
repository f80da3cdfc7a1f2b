"""
Slot classification against lunch, existing jobs, travel buffers, and hours.

A slot shows one reason only, so checks run in the fixed order given by
REASON_PRIORITY and the first hit wins. A day with no working hours is
closed outright and never reaches the ordered checks.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from src.schemas.appointment_schema import Appointment, AppointmentStatus, Location
from src.schemas.availability_schema import TimeSlot, UnavailableReason
from src.schemas.provider_schema import ProviderSchedule
from src.utils import to_minutes

logger = logging.getLogger(__name__)

REASON_PRIORITY: tuple[UnavailableReason, ...] = (
    UnavailableReason.LUNCH,
    UnavailableReason.BOOKED,
    UnavailableReason.TRAVEL,
    UnavailableReason.CLOSED,
)

# Minutes past midnight treated as "whole day is before the cutoff"
_END_OF_DAY = 24 * 60


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval intersection: touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class BusyBlock:
    """Time a provider spends at one address for one booking."""

    start: int
    end: int
    location: Location
    appointment_ids: tuple[str, ...]


def busy_blocks(
    appointments: Iterable[Appointment], exclude_id: Optional[str] = None
) -> list[BusyBlock]:
    """Merge vehicles of one booking into a single back-to-back block."""
    groups: dict[tuple[str, int], list[Appointment]] = {}
    for appt in appointments:
        if appt.id == exclude_id:
            continue
        groups.setdefault((appt.booking_id or appt.id, appt.start), []).append(appt)
    blocks = [
        BusyBlock(
            start=members[0].start,
            end=members[0].start + sum(m.duration_minutes for m in members),
            location=members[0].location,
            appointment_ids=tuple(m.id for m in members),
        )
        for members in groups.values()
    ]
    return sorted(blocks, key=lambda b: b.start)


class ConflictResolver:
    """
    Classifies candidate slots for one provider on one date.

    Cancelled appointments and appointments on other dates never block.
    ``not_before`` is the earliest bookable instant; anything starting
    earlier is reported as closed.
    """

    def __init__(
        self,
        schedule: ProviderSchedule,
        appointments: Iterable[Appointment],
        day: date,
        not_before: Optional[datetime] = None,
    ) -> None:
        self.schedule = schedule
        self.day = day
        self.hours = schedule.hours_for(day)
        self.appointments = [
            a for a in appointments
            if a.scheduled_date == day and a.status != AppointmentStatus.CANCELLED
        ]
        self._cutoff = self._cutoff_minutes(not_before)
        self._checks: dict[UnavailableReason, Callable[..., bool]] = {
            UnavailableReason.LUNCH: self._hits_lunch,
            UnavailableReason.BOOKED: self._hits_booking,
            UnavailableReason.TRAVEL: self._within_travel_buffer,
            UnavailableReason.CLOSED: self._outside_hours,
        }

    def _cutoff_minutes(self, not_before: Optional[datetime]) -> Optional[int]:
        if not_before is None or not_before.date() < self.day:
            return None
        if not_before.date() > self.day:
            return _END_OF_DAY
        return to_minutes(not_before.time())

    def classify(
        self,
        start: int,
        duration: int,
        location: Optional[Location] = None,
        exclude_id: Optional[str] = None,
    ) -> TimeSlot:
        """Classify ``[start, start + duration)``.

        Args:
            start: Candidate start, minutes since midnight.
            duration: Requested job length in minutes.
            location: Where the new job takes place, if known. Unknown
                locations always need a travel buffer.
            exclude_id: Appointment to ignore, e.g. the one being moved.

        A day without working hours is closed for every start time; that
        whole-day rule is applied before REASON_PRIORITY.
        """
        end = start + duration
        if self.hours is None:
            return TimeSlot(start=start, end=end, available=False, reason=UnavailableReason.CLOSED)
        blocks = busy_blocks(self.appointments, exclude_id)
        for reason in REASON_PRIORITY:
            if self._checks[reason](start, end, location, blocks):
                return TimeSlot(start=start, end=end, available=False, reason=reason)
        return TimeSlot(start=start, end=end, available=True)

    # ------------------------------------------------------------------ #
    # Individual checks, all sharing one signature
    # ------------------------------------------------------------------ #

    def _hits_lunch(self, start: int, end: int, location, blocks) -> bool:
        lunch = self.schedule.lunch
        if lunch is None:
            return False
        return intervals_overlap(start, end, lunch.start_minutes, lunch.end_minutes)

    def _hits_booking(self, start: int, end: int, location, blocks: list[BusyBlock]) -> bool:
        return any(intervals_overlap(start, end, b.start, b.end) for b in blocks)

    def _within_travel_buffer(
        self,
        start: int,
        end: int,
        location: Optional[Location],
        blocks: list[BusyBlock],
    ) -> bool:
        buffer = self.schedule.travel_buffer_minutes
        if buffer <= 0:
            return False
        for block in blocks:
            if location is not None and block.location.is_same_place(location):
                continue
            # Checked on both sides: after the previous job and before the next one
            if block.end <= start and start - block.end < buffer:
                return True
            if end <= block.start and block.start - end < buffer:
                return True
        return False

    def _outside_hours(self, start: int, end: int, location, blocks) -> bool:
        if self.hours is None:
            return True
        if start < self.hours.open_minutes or end > self.hours.close_minutes:
            return True
        return self._cutoff is not None and start < self._cutoff
