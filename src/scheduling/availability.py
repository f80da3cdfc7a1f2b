"""
Availability calculation for a provider's day.

Read-only: queries never lock and never write. A slot shown as free can
still be claimed by a racing booking, so every write path re-checks with
check_slot under the provider-day lock.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ValidationError

from src.config import settings
from src.errors import InvalidInputError
from src.scheduling.conflicts import ConflictResolver
from src.scheduling.time_grid import TimeGrid
from src.schemas.appointment_schema import Appointment, Location
from src.schemas.availability_schema import (
    AvailabilityRequest,
    AvailabilityResponse,
    SlotView,
    TimeSlot,
)
from src.schemas.provider_schema import ProviderSchedule
from src.tools.appointment_store import AppointmentStore
from src.tools.providers import ProviderDirectory
from src.utils import as_local_naive, format_minutes, parse_iso_date

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DAYS = 7


class AvailabilityStatus(str, Enum):
    OK = "ok"
    NO_SUCH_PROVIDER = "no_such_provider"
    CLOSED = "closed"


@dataclass
class AvailabilityResult:
    """Slots for one provider-day plus why the list may be empty."""

    provider_id: str
    day: date
    status: AvailabilityStatus
    slots: list[TimeSlot] = field(default_factory=list)

    @property
    def provider_found(self) -> bool:
        return self.status != AvailabilityStatus.NO_SUCH_PROVIDER

    @property
    def available_slots(self) -> list[TimeSlot]:
        return [s for s in self.slots if s.available]


def _validate_duration(total_duration_minutes: Any) -> int:
    if isinstance(total_duration_minutes, bool) or not isinstance(total_duration_minutes, int):
        raise InvalidInputError("total_duration_minutes", "must be a whole number of minutes")
    if total_duration_minutes <= 0:
        raise InvalidInputError(
            "total_duration_minutes", f"must be positive, got {total_duration_minutes}"
        )
    return total_duration_minutes


def _validate_day(day: Union[str, date]) -> date:
    try:
        return parse_iso_date(day)
    except (ValueError, TypeError, AttributeError):
        raise InvalidInputError("date", f"expected YYYY-MM-DD, got {day!r}") from None


class AvailabilityCalculator:
    """Answers "which start times fit a booking of D minutes on day X"."""

    def __init__(
        self,
        providers: ProviderDirectory,
        store: AppointmentStore,
        granularity: int = settings.scheduling.slot_granularity_minutes,
        min_lead_minutes: int = settings.scheduling.min_lead_minutes,
    ) -> None:
        self.providers = providers
        self.store = store
        self.granularity = granularity
        self.min_lead_minutes = min_lead_minutes

    def _not_before(self, now: Optional[datetime]) -> Optional[datetime]:
        if now is None:
            return None
        return as_local_naive(now) + timedelta(minutes=self.min_lead_minutes)

    def resolver_for(
        self,
        schedule: ProviderSchedule,
        day: date,
        now: Optional[datetime] = None,
        appointments: Optional[list[Appointment]] = None,
    ) -> ConflictResolver:
        """Conflict resolver over a snapshot of the provider's appointments that day."""
        if appointments is None:
            appointments = self.store.for_provider_on(schedule.provider_id, day)
        return ConflictResolver(schedule, appointments, day, not_before=self._not_before(now))

    def compute_slots(
        self,
        provider_id: str,
        day: Union[str, date],
        total_duration_minutes: int,
        job_location: Optional[Location] = None,
        now: Optional[datetime] = None,
    ) -> AvailabilityResult:
        """Classify every grid start of the day for a job of the given length.

        Args:
            provider_id: Detailer whose calendar is queried.
            day: Calendar date, as ``date`` or ``YYYY-MM-DD``.
            total_duration_minutes: Aggregated duration of the whole cart.
            job_location: Where the job takes place, for travel buffers.
            now: Current time; starts inside the booking lead time are closed.

        Returns:
            AvailabilityResult in chronological slot order. Unknown providers
            yield status ``no_such_provider`` and no slots.

        Raises:
            InvalidInputError: Non-positive duration or malformed date.
        """
        duration = _validate_duration(total_duration_minutes)
        parsed_day = _validate_day(day)

        schedule = self.providers.get_schedule(provider_id)
        if schedule is None:
            logger.info("Availability requested for unknown provider %s", provider_id)
            return AvailabilityResult(provider_id, parsed_day, AvailabilityStatus.NO_SUCH_PROVIDER)

        grid = TimeGrid(schedule.hours_for(parsed_day), self.granularity)
        resolver = self.resolver_for(schedule, parsed_day, now)
        slots = [resolver.classify(start, duration, job_location) for start in grid]
        status = AvailabilityStatus.OK if resolver.hours is not None else AvailabilityStatus.CLOSED
        logger.debug(
            "Computed %d slots (%d free) for %s on %s",
            len(slots), sum(s.available for s in slots), provider_id, parsed_day,
        )
        return AvailabilityResult(provider_id, parsed_day, status, slots)

    def check_slot(
        self,
        provider_id: str,
        day: Union[str, date],
        start: int,
        total_duration_minutes: int,
        job_location: Optional[Location] = None,
        exclude_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TimeSlot:
        """Classify one directly-queried start time, off-grid times included."""
        duration = _validate_duration(total_duration_minutes)
        parsed_day = _validate_day(day)
        schedule = self.providers.get_schedule(provider_id)
        if schedule is None:
            raise InvalidInputError("provider_id", f"no such provider '{provider_id}'")
        resolver = self.resolver_for(schedule, parsed_day, now)
        return resolver.classify(start, duration, job_location, exclude_id=exclude_id)

    def find_next_available(
        self,
        provider_id: str,
        from_day: Union[str, date],
        total_duration_minutes: int,
        job_location: Optional[Location] = None,
        search_days: int = DEFAULT_SEARCH_DAYS,
        now: Optional[datetime] = None,
    ) -> Optional[tuple[date, str]]:
        """First free (date, HH:MM) within ``search_days`` starting at ``from_day``."""
        start_day = _validate_day(from_day)
        for offset in range(search_days):
            day = start_day + timedelta(days=offset)
            result = self.compute_slots(provider_id, day, total_duration_minutes, job_location, now)
            if not result.provider_found:
                return None
            free = result.available_slots
            if free:
                return day, free[0].start_time
        return None

    def query_availability(self, payload: dict) -> dict:
        """HTTP-style boundary: request dict in, ``{"slots": [...]}`` out.

        Raises:
            InvalidInputError: The payload failed validation.
        """
        try:
            request = AvailabilityRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidInputError.from_validation(exc) from None

        location = None
        if request.location is not None:
            location = Location(
                lat=request.location.lat,
                lng=request.location.lng,
                address=request.location.address,
            )
        result = self.compute_slots(
            request.provider_id, request.day, request.total_duration_minutes, location
        )
        if not result.provider_found:
            response = AvailabilityResponse(error=AvailabilityStatus.NO_SUCH_PROVIDER.value)
        else:
            response = AvailabilityResponse(slots=[_slot_view(s) for s in result.slots])
        return response.model_dump(by_alias=True, exclude_none=True, mode="json")


def _slot_view(slot: TimeSlot) -> SlotView:
    return SlotView(
        start_time=format_minutes(slot.start),
        end_time=format_minutes(slot.end),
        available=slot.available,
        reason=slot.reason,
    )

