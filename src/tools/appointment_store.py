"""
Mock appointment store.

In production, this would be the bookings table behind the CRUD API.
Every write bumps ``version`` and updates are rejected when the caller's
copy is stale, so a racing writer gets a ConflictError instead of
silently overwriting.
"""

import logging
import threading
import uuid
from datetime import date
from typing import Iterable, Optional

from src.errors import ConflictError, NotFoundError
from src.schemas.appointment_schema import Appointment

logger = logging.getLogger(__name__)


def new_appointment_id() -> str:
    return f"APT-{uuid.uuid4().hex[:6].upper()}"


class AppointmentStore:
    """Thread-safe in-memory appointment repository returning snapshot copies."""

    def __init__(self) -> None:
        self._appointments: dict[str, Appointment] = {}
        self._lock = threading.Lock()

    def get(self, appointment_id: str) -> Optional[Appointment]:
        """Retrieve an appointment by ID."""
        with self._lock:
            found = self._appointments.get(appointment_id)
            return found.model_copy(deep=True) if found else None

    def require(self, appointment_id: str) -> Appointment:
        found = self.get(appointment_id)
        if found is None:
            raise NotFoundError("Appointment", appointment_id)
        return found

    def for_provider_on(self, provider_id: str, day: date) -> list[Appointment]:
        """All appointments of a provider on a date, earliest first."""
        with self._lock:
            matches = [
                a.model_copy(deep=True)
                for a in self._appointments.values()
                if a.provider_id == provider_id and a.scheduled_date == day
            ]
        return sorted(matches, key=lambda a: a.scheduled_time)

    def for_provider(self, provider_id: str) -> list[Appointment]:
        with self._lock:
            matches = [
                a.model_copy(deep=True)
                for a in self._appointments.values()
                if a.provider_id == provider_id
            ]
        return sorted(matches, key=lambda a: (a.scheduled_date, a.scheduled_time))

    def create_many(self, appointments: Iterable[Appointment]) -> list[Appointment]:
        """Insert new appointments atomically. Existing IDs are rejected."""
        batch = list(appointments)
        with self._lock:
            clashes = [a.id for a in batch if a.id in self._appointments]
            if clashes:
                raise ConflictError(f"Appointments already exist: {', '.join(clashes)}")
            stored = []
            for appt in batch:
                saved = appt.model_copy(update={"version": 1}, deep=True)
                self._appointments[saved.id] = saved
                stored.append(saved.model_copy(deep=True))
        logger.info("Appointments created: %s", [a.id for a in stored])
        return stored

    def update(self, appointment: Appointment, expected_version: int) -> Appointment:
        """Replace an appointment if nobody else has written it since ``expected_version``."""
        with self._lock:
            current = self._appointments.get(appointment.id)
            if current is None:
                raise NotFoundError("Appointment", appointment.id)
            if current.version != expected_version:
                raise ConflictError(
                    f"Appointment {appointment.id} changed concurrently "
                    f"(expected version {expected_version}, found {current.version})",
                    reason="stale_version",
                )
            saved = appointment.model_copy(update={"version": expected_version + 1}, deep=True)
            self._appointments[saved.id] = saved
            return saved.model_copy(deep=True)

    def reset(self) -> None:
        """Clear all appointments. Used by test fixtures for isolation."""
        with self._lock:
            self._appointments.clear()
