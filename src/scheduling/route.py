"""
Today's route for a provider: job order, drive times, and arrival proximity.

Jobs are visited in scheduled order; the route is never re-optimized.
Leg durations come from the directions collaborator, which is the only
I/O in the engine. A slow or failing collaborator degrades the plan to
a job list without drive times instead of failing the route panel.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from src.config import settings
from src.errors import CollaboratorUnavailableError
from src.schemas.appointment_schema import Appointment, Location
from src.tools.directions import DirectionsProvider
from src.utils import as_local_naive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteLeg:
    """Drive from one waypoint to the job at ``destination``."""

    origin: Location
    destination: Location
    appointment_id: str
    duration_minutes: Optional[float] = None


@dataclass(frozen=True)
class RouteStop:
    appointment: Appointment
    leg: RouteLeg
    projected_arrival: Optional[datetime] = None


@dataclass
class RoutePlan:
    """Ordered stops for the day. ``etas_available`` is False when directions failed."""

    origin: Location
    stops: list[RouteStop] = field(default_factory=list)
    etas_available: bool = False

    @property
    def legs(self) -> list[RouteLeg]:
        return [s.leg for s in self.stops]

    @property
    def total_drive_minutes(self) -> Optional[float]:
        if not self.etas_available:
            return None
        return sum(leg.duration_minutes or 0.0 for leg in self.legs)

    def next_stop(self) -> Optional[RouteStop]:
        """First job the provider has not yet arrived at."""
        for stop in self.stops:
            if not stop.appointment.is_arrived:
                return stop
        return None


class RouteSequencer:
    """Builds a provider's route and evaluates arrival proximity."""

    def __init__(
        self,
        directions: DirectionsProvider,
        timeout_seconds: float = settings.routing.directions_timeout_seconds,
        arrival_radius_miles: float = settings.routing.arrival_radius_miles,
    ) -> None:
        self.directions = directions
        self.timeout_seconds = timeout_seconds
        self.arrival_radius_miles = arrival_radius_miles
        self._inflight: Optional[asyncio.Task] = None

    @staticmethod
    def sequence(appointments: Iterable[Appointment], today: date) -> list[Appointment]:
        """Today's active appointments in scheduled order."""
        todays = [a for a in appointments if a.scheduled_date == today and not a.is_terminal]
        return sorted(todays, key=lambda a: a.scheduled_time)

    async def _leg_minutes(self, waypoints: list[Location]) -> Optional[list[float]]:
        try:
            seconds = await asyncio.wait_for(
                self.directions.leg_durations(waypoints), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Directions timed out after %.1fs; showing route without drive times",
                self.timeout_seconds,
            )
            return None
        except CollaboratorUnavailableError as exc:
            logger.warning("Directions unavailable (%s); showing route without drive times", exc)
            return None
        except Exception:
            logger.warning("Directions failed; showing route without drive times", exc_info=True)
            return None
        if len(seconds) != len(waypoints) - 1:
            logger.warning(
                "Directions returned %d legs for %d waypoints; ignoring",
                len(seconds), len(waypoints),
            )
            return None
        return [s / 60 for s in seconds]

    async def build_route(
        self,
        current_location: Location,
        appointments: Iterable[Appointment],
        today: date,
        now: Optional[datetime] = None,
    ) -> RoutePlan:
        """
        Order today's jobs and attach drive times for the chain
        current location -> job 1 -> ... -> job n.

        Args:
            current_location: Provider's live position.
            appointments: Any set of the provider's appointments; filtered here.
            today: The provider's local date.
            now: When given, each stop also gets a projected arrival time.
        """
        ordered = self.sequence(appointments, today)
        plan = RoutePlan(origin=current_location)
        if not ordered:
            return plan

        waypoints = [current_location] + [a.location for a in ordered]
        minutes = await self._leg_minutes(waypoints)
        plan.etas_available = minutes is not None

        clock = as_local_naive(now) if now is not None else None
        for i, appt in enumerate(ordered):
            drive = minutes[i] if minutes is not None else None
            arrival = None
            if clock is not None and drive is not None:
                arrival = clock + timedelta(minutes=drive)
                # Provider waits for the booked start, then works the job
                clock = max(arrival, appt.starts_at()) + timedelta(minutes=appt.duration_minutes)
            leg = RouteLeg(
                origin=waypoints[i],
                destination=appt.location,
                appointment_id=appt.id,
                duration_minutes=drive,
            )
            plan.stops.append(RouteStop(appointment=appt, leg=leg, projected_arrival=arrival))

        logger.debug(
            "Route for %s: %d stops, etas=%s", today, len(plan.stops), plan.etas_available
        )
        return plan

    async def refresh(
        self,
        current_location: Location,
        appointments: Iterable[Appointment],
        today: date,
        now: Optional[datetime] = None,
    ) -> Optional[RoutePlan]:
        """Rebuild the route after a location update.

        A refresh still waiting on directions is cancelled when a newer
        one starts; the superseded call returns None so stale ETAs are
        never shown.
        """
        task = asyncio.ensure_future(
            self.build_route(current_location, list(appointments), today, now)
        )
        previous, self._inflight = self._inflight, task
        if previous is not None and not previous.done():
            previous.cancel()
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and self._inflight is not task:
                logger.debug("Route refresh superseded by a newer location update")
                return None
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

    def is_arriving(self, live_location: Location, plan: RoutePlan) -> bool:
        """True when the provider is within the arrival radius of the next job.

        Purely derived; marking the appointment arrived is a separate action.
        """
        stop = plan.next_stop()
        if stop is None:
            return False
        return live_location.miles_to(stop.appointment.location) <= self.arrival_radius_miles
