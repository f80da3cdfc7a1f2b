"""Shared test fixtures and helpers."""

from datetime import date, time
from decimal import Decimal
from typing import Optional

import pytest

from src.scheduling.engine import SchedulingEngine, build_engine
from src.schemas.appointment_schema import Appointment, AppointmentStatus, Location
from src.schemas.catalog_schema import BodyType, ServiceCatalogItem
from src.schemas.provider_schema import LunchWindow, ProviderSchedule, WorkingHours
from src.tools.appointment_store import AppointmentStore
from src.tools.catalog import ServiceCatalog
from src.tools.providers import ProviderDirectory

# A Monday
MONDAY = date(2025, 3, 17)
SUNDAY = date(2025, 3, 16)

ADDRESS_A = Location(lat=37.7793, lng=-122.4193, address="12 Oak Ave, Richmond")
ADDRESS_B = Location(lat=37.7609, lng=-122.4350, address="500 Castro St")


def make_schedule(
    provider_id: str = "det_test",
    open_at: time = time(8, 0),
    close_at: time = time(18, 0),
    lunch: Optional[tuple[time, time]] = (time(12, 0), time(13, 0)),
    travel_buffer: int = 15,
) -> ProviderSchedule:
    """Mon-Sat working hours, closed Sunday."""
    hours = WorkingHours(open=open_at, close=close_at)
    return ProviderSchedule(
        provider_id=provider_id,
        name="Test Detailer",
        working_hours={weekday: hours for weekday in range(6)},
        lunch=LunchWindow(start=lunch[0], end=lunch[1]) if lunch else None,
        travel_buffer_minutes=travel_buffer,
    )


def make_appointment(
    appointment_id: str = "APT-1",
    start: time = time(10, 0),
    duration: int = 45,
    day: date = MONDAY,
    location: Location = ADDRESS_A,
    provider_id: str = "det_test",
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    **kwargs,
) -> Appointment:
    """Helper to create an Appointment with sensible defaults."""
    return Appointment(
        id=appointment_id,
        provider_id=provider_id,
        customer_id=kwargs.pop("customer_id", "cust_1"),
        service_id=kwargs.pop("service_id", "exterior-wash"),
        scheduled_date=day,
        scheduled_time=start,
        duration_minutes=duration,
        location=location,
        status=status,
        **kwargs,
    )


@pytest.fixture
def schedule() -> ProviderSchedule:
    return make_schedule()


@pytest.fixture
def catalog() -> ServiceCatalog:
    return ServiceCatalog([
        ServiceCatalogItem(
            id="wash",
            name="Wash",
            base_price=Decimal("50"),
            base_duration_minutes=60,
            body_type_multipliers={
                BodyType.CAR: 1.0, BodyType.VAN: 1.3, BodyType.TRUCK: 1.4, BodyType.SUV: 1.25,
            },
            luxury_surcharge_percent=15,
        ),
        ServiceCatalogItem(
            id="interior",
            name="Interior",
            base_price=Decimal("89.99"),
            base_duration_minutes=50,
            luxury_surcharge_percent=12.5,
        ),
    ])


@pytest.fixture
def store() -> AppointmentStore:
    return AppointmentStore()


@pytest.fixture
def engine(schedule, store, catalog) -> SchedulingEngine:
    return build_engine(
        providers=ProviderDirectory([schedule]),
        store=store,
        catalog=catalog,
    )
