"""Fixed-granularity candidate start times within a provider's working day."""

from typing import Iterator, Optional

from src.config import settings
from src.schemas.provider_schema import WorkingHours


class TimeGrid:
    """
    Candidate start minutes from open through ``close - granularity``.

    Iterating produces a fresh generator each time, so one grid can be
    walked repeatedly. A closed day (no hours, or open == close) is empty.

    Usage:
        grid = TimeGrid(WorkingHours(open="08:00", close="18:00"))
        starts = list(grid)  # [480, 510, ..., 1050]
    """

    def __init__(
        self,
        hours: Optional[WorkingHours],
        granularity: int = settings.scheduling.slot_granularity_minutes,
    ) -> None:
        if granularity <= 0:
            raise ValueError(f"Granularity must be positive, got {granularity}")
        self.hours = hours
        self.granularity = granularity

    def __iter__(self) -> Iterator[int]:
        if self.hours is None or self.hours.is_closed:
            return
        current = self.hours.open_minutes
        last = self.hours.close_minutes - self.granularity
        while current <= last:
            yield current
            current += self.granularity

    def __len__(self) -> int:
        return sum(1 for _ in self)
