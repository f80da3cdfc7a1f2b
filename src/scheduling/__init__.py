from src.scheduling.availability import AvailabilityCalculator, AvailabilityResult, AvailabilityStatus
from src.scheduling.booking import BookingConfirmation, BookingService
from src.scheduling.conflicts import REASON_PRIORITY, ConflictResolver
from src.scheduling.engine import SchedulingEngine, build_engine
from src.scheduling.pricing import DurationAggregator
from src.scheduling.reschedule import AppointmentLifecycle, ReschedulePolicy
from src.scheduling.route import RoutePlan, RouteSequencer
from src.scheduling.time_grid import TimeGrid

__all__ = [
    "TimeGrid", "ConflictResolver", "REASON_PRIORITY",
    "DurationAggregator", "AvailabilityCalculator", "AvailabilityResult",
    "AvailabilityStatus", "BookingService", "BookingConfirmation",
    "AppointmentLifecycle", "ReschedulePolicy", "RouteSequencer", "RoutePlan",
    "SchedulingEngine", "build_engine",
]
