"""Appointment data models and lifecycle enums."""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, model_validator

from src.schemas.catalog_schema import BodyType
from src.utils import calculate_distance, normalize_address, to_minutes

# Coordinates closer than this are the same place when no address is known
SAME_PLACE_MILES = 0.015


class Location(BaseModel):
    """A geocoded point, optionally carrying its street address."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: Optional[str] = None

    def is_same_place(self, other: "Location") -> bool:
        """Same address string, or near-identical coordinates when either lacks one."""
        if self.address and other.address:
            return normalize_address(self.address) == normalize_address(other.address)
        return calculate_distance(self.lat, self.lng, other.lat, other.lng) <= SAME_PLACE_MILES

    def miles_to(self, other: "Location") -> float:
        return calculate_distance(self.lat, self.lng, other.lat, other.lng)


class AppointmentStatus(str, Enum):
    """Lifecycle variant of an appointment."""

    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})


class RescheduleReason(str, Enum):
    """Audit metadata attached to a reschedule. Never checked by policy."""

    WEATHER = "weather"
    EMERGENCY = "emergency"
    SCHEDULE_CONFLICT = "schedule_conflict"
    CUSTOMER_REQUEST = "customer_request"
    OTHER = "other"


class RescheduleRecord(BaseModel):
    """One accepted reschedule, kept for analytics."""

    from_date: date
    from_time: time
    to_date: date
    to_time: time
    reason: Optional[RescheduleReason] = None
    at: datetime


class Appointment(BaseModel):
    """A confirmed job for one vehicle.

    Vehicles booked together share ``booking_id`` and a start time; they are
    worked one after another, so together they occupy the sum of their durations.

    Never hard-deleted: cancellation and completion are status transitions.
    ``version`` is bumped by the store on every write.
    """

    id: str
    provider_id: str
    customer_id: str
    booking_id: Optional[str] = None
    service_id: str
    body_type: BodyType = BodyType.CAR
    luxury_care: bool = False
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int = Field(gt=0)
    price: Decimal = Decimal("0.00")
    location: Location
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    reschedule_count: int = Field(default=0, ge=0)
    is_arrived: bool = False
    is_missed: bool = False
    reschedule_history: list[RescheduleRecord] = Field(default_factory=list)
    version: int = 0

    @model_validator(mode="after")
    def _arrived_excludes_missed(self) -> "Appointment":
        if self.is_arrived and self.is_missed:
            raise ValueError("An appointment cannot be both arrived and missed")
        return self

    @field_serializer("scheduled_time")
    def _serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    @property
    def start(self) -> int:
        """Start as minutes since midnight."""
        return to_minutes(self.scheduled_time)

    @property
    def end(self) -> int:
        return self.start + self.duration_minutes

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def display_status(self) -> str:
        """Status in the vocabulary the provider and customer screens use."""
        if self.is_terminal:
            return self.status.value
        if self.is_arrived:
            return "arrived"
        if self.is_missed:
            return "missed"
        return "scheduled"

    def starts_at(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.scheduled_time)
