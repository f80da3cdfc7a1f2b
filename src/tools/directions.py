"""
Directions collaborators returning per-leg drive durations.

OsrmDirectionsClient talks to an OSRM-compatible routing server over HTTP.
StraightLineDirections estimates legs from great-circle distance and an
average speed, for offline demos and development.
"""

import logging
from typing import Optional, Protocol, Sequence

import httpx

from src.config import settings
from src.errors import CollaboratorUnavailableError
from src.schemas.appointment_schema import Location

logger = logging.getLogger(__name__)


class DirectionsProvider(Protocol):
    """Anything that can turn an ordered waypoint chain into leg durations."""

    async def leg_durations(self, waypoints: Sequence[Location]) -> list[float]:
        """Return one duration in seconds per consecutive waypoint pair."""
        ...


class OsrmDirectionsClient:
    """Client for the OSRM ``route/v1/driving`` endpoint."""

    def __init__(
        self,
        base_url: str = settings.routing.directions_base_url,
        timeout: float = settings.routing.directions_timeout_seconds,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def leg_durations(self, waypoints: Sequence[Location]) -> list[float]:
        if len(waypoints) < 2:
            return []
        coords = ";".join(f"{w.lng},{w.lat}" for w in waypoints)
        url = f"{self.base_url}/route/v1/driving/{coords}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params={"overview": "false"})
                resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorUnavailableError(f"Directions request failed: {exc}") from exc
        return self._parse_legs(payload, len(waypoints) - 1)

    @staticmethod
    def _parse_legs(payload: dict, expected: int) -> list[float]:
        try:
            routes = payload.get("routes") or []
            if payload.get("code") != "Ok" or not routes:
                raise CollaboratorUnavailableError(
                    f"Directions service returned no route (code={payload.get('code')!r})"
                )
            legs = routes[0].get("legs") or []
            if len(legs) != expected:
                raise CollaboratorUnavailableError(f"Expected {expected} legs, got {len(legs)}")
            return [float(leg["duration"]) for leg in legs]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CollaboratorUnavailableError(
                f"Malformed directions response: {exc!r}"
            ) from exc


class StraightLineDirections:
    """Leg durations from straight-line distance at a constant average speed."""

    def __init__(self, average_speed_mph: float = settings.routing.average_speed_mph) -> None:
        self.average_speed_mph = average_speed_mph

    async def leg_durations(self, waypoints: Sequence[Location]) -> list[float]:
        return [
            origin.miles_to(destination) / self.average_speed_mph * 3600
            for origin, destination in zip(waypoints, waypoints[1:])
        ]
