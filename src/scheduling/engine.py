"""Wiring of the scheduling services around one shared store and lock registry."""

from dataclasses import dataclass
from typing import Optional

from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.booking import BookingService
from src.scheduling.locks import ProviderDayLocks
from src.scheduling.pricing import DurationAggregator
from src.scheduling.reschedule import ReschedulePolicy
from src.scheduling.route import RouteSequencer
from src.tools.appointment_store import AppointmentStore
from src.tools.catalog import ServiceCatalog
from src.tools.directions import DirectionsProvider, StraightLineDirections
from src.tools.providers import ProviderDirectory


@dataclass
class SchedulingEngine:
    store: AppointmentStore
    providers: ProviderDirectory
    catalog: ServiceCatalog
    availability: AvailabilityCalculator
    pricing: DurationAggregator
    booking: BookingService
    reschedules: ReschedulePolicy
    routes: RouteSequencer


def build_engine(
    providers: Optional[ProviderDirectory] = None,
    store: Optional[AppointmentStore] = None,
    catalog: Optional[ServiceCatalog] = None,
    directions: Optional[DirectionsProvider] = None,
) -> SchedulingEngine:
    """Assemble every service; omitted collaborators get the in-memory defaults."""
    providers = providers or ProviderDirectory()
    store = store or AppointmentStore()
    catalog = catalog or ServiceCatalog()
    locks = ProviderDayLocks()

    availability = AvailabilityCalculator(providers, store)
    pricing = DurationAggregator(catalog)
    return SchedulingEngine(
        store=store,
        providers=providers,
        catalog=catalog,
        availability=availability,
        pricing=pricing,
        booking=BookingService(availability, pricing, locks),
        reschedules=ReschedulePolicy(availability, locks),
        routes=RouteSequencer(directions or StraightLineDirections()),
    )
