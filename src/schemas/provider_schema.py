"""Provider working-hours and break models."""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from src.utils import to_minutes


class WorkingHours(BaseModel):
    """Open/close clock times for one weekday. ``open == close`` means closed."""

    open: time
    close: time

    @model_validator(mode="after")
    def _close_not_before_open(self) -> "WorkingHours":
        if self.close < self.open:
            raise ValueError(f"Close time {self.close} is before open time {self.open}")
        return self

    @property
    def is_closed(self) -> bool:
        return self.open == self.close

    @property
    def open_minutes(self) -> int:
        return to_minutes(self.open)

    @property
    def close_minutes(self) -> int:
        return to_minutes(self.close)


class LunchWindow(BaseModel):
    start: time
    end: time

    @model_validator(mode="after")
    def _end_after_start(self) -> "LunchWindow":
        if self.end <= self.start:
            raise ValueError(f"Lunch end {self.end} must be after start {self.start}")
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)


class ProviderSchedule(BaseModel):
    """Weekly schedule of one detailer.

    ``working_hours`` is keyed by ``date.weekday()`` (Monday is 0). A missing
    weekday is a closed day, as is any date listed in ``blackout_dates``.
    """

    provider_id: str
    name: str = ""
    working_hours: dict[int, WorkingHours] = Field(default_factory=dict)
    lunch: Optional[LunchWindow] = None
    travel_buffer_minutes: int = Field(default=15, ge=0)
    blackout_dates: set[date] = Field(default_factory=set)

    def hours_for(self, day: date) -> Optional[WorkingHours]:
        """Working hours for a calendar date, or None when the provider is off."""
        if day in self.blackout_dates:
            return None
        hours = self.working_hours.get(day.weekday())
        if hours is None or hours.is_closed:
            return None
        return hours
