"""
Mock provider directory.

In production, detailer working hours and breaks would be read from the
provider profile service. Here a handful of demo detailers are seeded.
"""

import logging
from datetime import time
from typing import Iterable, Optional

from src.config import settings
from src.schemas.provider_schema import LunchWindow, ProviderSchedule, WorkingHours

logger = logging.getLogger(__name__)

# Mon-Fri 8am-6pm, Saturday 9am-5pm, closed Sunday
WEEKDAY_HOURS = WorkingHours(open=time(8, 0), close=time(18, 0))
SATURDAY_HOURS = WorkingHours(open=time(9, 0), close=time(17, 0))


def default_week() -> dict[int, WorkingHours]:
    week = {weekday: WEEKDAY_HOURS for weekday in range(5)}
    week[5] = SATURDAY_HOURS
    return week


DEMO_PROVIDERS: list[ProviderSchedule] = [
    ProviderSchedule(
        provider_id="det_1",
        name="Shine On Wheels",
        working_hours=default_week(),
        lunch=LunchWindow(start=time(12, 0), end=time(13, 0)),
        travel_buffer_minutes=settings.scheduling.default_travel_buffer_minutes,
    ),
    ProviderSchedule(
        provider_id="det_2",
        name="Mobile Gloss Co.",
        working_hours=default_week(),
        travel_buffer_minutes=20,
    ),
]


class ProviderDirectory:
    """Schedules of known providers, keyed by provider ID."""

    def __init__(self, providers: Optional[Iterable[ProviderSchedule]] = None) -> None:
        source = DEMO_PROVIDERS if providers is None else providers
        self._providers: dict[str, ProviderSchedule] = {p.provider_id: p for p in source}

    def get_schedule(self, provider_id: str) -> Optional[ProviderSchedule]:
        return self._providers.get(provider_id)

    def upsert(self, schedule: ProviderSchedule) -> None:
        self._providers[schedule.provider_id] = schedule
        logger.info("Provider schedule stored: %s", schedule.provider_id)
