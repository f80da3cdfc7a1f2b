"""Slot and availability request/response models."""

from datetime import date, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.schemas.appointment_schema import RescheduleReason
from src.utils import format_minutes


class UnavailableReason(str, Enum):
    LUNCH = "lunch"
    BOOKED = "booked"
    TRAVEL = "travel"
    CLOSED = "closed"


class TimeSlot(BaseModel):
    """A computed candidate slot. ``reason`` is set iff the slot is unavailable."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    available: bool
    reason: Optional[UnavailableReason] = None

    @model_validator(mode="after")
    def _reason_iff_unavailable(self) -> "TimeSlot":
        if self.available and self.reason is not None:
            raise ValueError("An available slot cannot carry a reason")
        if not self.available and self.reason is None:
            raise ValueError("An unavailable slot must carry a reason")
        return self

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: Optional[str] = None


class AvailabilityRequest(BaseModel):
    """Availability query as received at the HTTP boundary."""

    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(alias="providerId", min_length=1)
    day: date = Field(alias="date")
    total_duration_minutes: int = Field(alias="totalDurationMinutes")
    location: Optional[Coordinates] = None


class SlotView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    available: bool
    reason: Optional[UnavailableReason] = None


class AvailabilityResponse(BaseModel):
    slots: list[SlotView] = Field(default_factory=list)
    error: Optional[str] = None


class RescheduleRequest(BaseModel):
    """Reschedule request as received at the HTTP boundary."""

    model_config = ConfigDict(populate_by_name=True)

    appointment_id: str = Field(alias="appointmentId", min_length=1)
    new_date: date = Field(alias="newDate")
    new_time: time = Field(alias="newTime")
    reason: Optional[RescheduleReason] = None
