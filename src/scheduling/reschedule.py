"""
Appointment lifecycle and the bounded reschedule policy.

Lifecycle states and the triggers between them are an explicit table;
any trigger not listed for the current state is rejected. Rescheduling
returns the appointment to an active state with the counter bumped.

Usage:
    policy = ReschedulePolicy(calculator, locks)
    moved = policy.reschedule("APT-1A2B3C", "2025-04-10", "14:00", "weather")
    assert moved.reschedule_count == 1
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import ValidationError

from src.config import settings
from src.errors import (
    ConflictError,
    InvalidInputError,
    InvalidTransitionError,
    PolicyViolationError,
)
from src.logging_context import get_request_logger, new_request_id
from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.locks import ProviderDayLocks
from src.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    RescheduleReason,
    RescheduleRecord,
)
from src.schemas.availability_schema import RescheduleRequest
from src.utils import parse_clock_time, parse_iso_date, to_minutes

logger = get_request_logger(__name__)


class LifecycleTrigger(str, Enum):
    """Events that move an appointment between lifecycle states."""
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Transition:
    """A single valid lifecycle transition."""
    from_state: AppointmentStatus
    to_state: AppointmentStatus
    trigger: LifecycleTrigger


class AppointmentLifecycle:
    """Transition table over AppointmentStatus. Cancelled and completed are terminal."""

    TRANSITIONS: list[Transition] = [
        # --- Reschedule keeps the appointment active ---
        Transition(AppointmentStatus.SCHEDULED, AppointmentStatus.RESCHEDULED,
                   LifecycleTrigger.RESCHEDULE),
        Transition(AppointmentStatus.RESCHEDULED, AppointmentStatus.RESCHEDULED,
                   LifecycleTrigger.RESCHEDULE),

        # --- Terminal ---
        Transition(AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED,
                   LifecycleTrigger.CANCEL),
        Transition(AppointmentStatus.RESCHEDULED, AppointmentStatus.CANCELLED,
                   LifecycleTrigger.CANCEL),
        Transition(AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED,
                   LifecycleTrigger.COMPLETE),
        Transition(AppointmentStatus.RESCHEDULED, AppointmentStatus.COMPLETED,
                   LifecycleTrigger.COMPLETE),
    ]

    @classmethod
    def next_state(
        cls, current: AppointmentStatus, trigger: LifecycleTrigger
    ) -> AppointmentStatus:
        """
        Resolve the state a trigger leads to.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in cls.TRANSITIONS:
            if t.from_state == current and t.trigger == trigger:
                return t.to_state
        valid = [t.value for t in cls.valid_triggers(current)]
        raise InvalidTransitionError(
            f"No valid transition from '{current.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    @classmethod
    def valid_triggers(cls, current: AppointmentStatus) -> list[LifecycleTrigger]:
        return [t.trigger for t in cls.TRANSITIONS if t.from_state == current]

    @classmethod
    def is_terminal(cls, current: AppointmentStatus) -> bool:
        return not cls.valid_triggers(current)


def _parse_reason(
    reason: Union[str, RescheduleReason, None]
) -> Optional[RescheduleReason]:
    if reason is None or isinstance(reason, RescheduleReason):
        return reason
    try:
        return RescheduleReason(reason)
    except ValueError:
        valid = ", ".join(r.value for r in RescheduleReason)
        raise InvalidInputError("reason", f"'{reason}' is not one of: {valid}") from None


class ReschedulePolicy:
    """
    Accepts a reschedule only while the counter is under the limit and
    the new time is free once the appointment itself is set aside.

    The whole re-check-then-write sequence runs under the provider-day
    locks of both the old and the new date, and the store write carries
    a version check, so two racing reschedules cannot both pass the limit.
    """

    def __init__(
        self,
        calculator: AvailabilityCalculator,
        locks: ProviderDayLocks,
        max_reschedules: int = settings.scheduling.max_reschedules,
    ) -> None:
        self.calculator = calculator
        self.store = calculator.store
        self.locks = locks
        self.max_reschedules = max_reschedules

    def remaining(self, appointment: Appointment) -> int:
        """Reschedules still allowed for this appointment."""
        return max(0, self.max_reschedules - appointment.reschedule_count)

    def can_reschedule(self, appointment: Appointment) -> bool:
        return not appointment.is_terminal and self.remaining(appointment) > 0

    def reschedule(
        self,
        appointment_id: str,
        new_date: Union[str, date],
        new_time: Union[str, time],
        reason: Union[str, RescheduleReason, None] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """
        Move an appointment to a new date and time.

        Returns:
            The stored appointment with the new schedule and counter + 1.

        Raises:
            InvalidInputError: Malformed date, time, or reason code.
            NotFoundError: Unknown appointment.
            InvalidTransitionError: Appointment is cancelled or completed.
            PolicyViolationError: The reschedule limit is already reached.
            ConflictError: The new time is taken, or another write won the race.
        """
        request_id = new_request_id("RESCHED")
        try:
            target_day = parse_iso_date(new_date)
        except (ValueError, TypeError, AttributeError):
            raise InvalidInputError("new_date", f"expected YYYY-MM-DD, got {new_date!r}") from None
        try:
            target_time = parse_clock_time(new_time)
        except (ValueError, TypeError, AttributeError):
            raise InvalidInputError("new_time", f"expected HH:MM, got {new_time!r}") from None
        reason_code = _parse_reason(reason)

        snapshot = self.store.require(appointment_id)
        provider_id = snapshot.provider_id
        with self.locks.hold((provider_id, snapshot.scheduled_date), (provider_id, target_day)):
            current = self.store.require(appointment_id)
            if current.scheduled_date != snapshot.scheduled_date:
                raise ConflictError(
                    f"Appointment {appointment_id} moved while the request was in flight",
                    reason="stale_version",
                )

            next_status = AppointmentLifecycle.next_state(
                current.status, LifecycleTrigger.RESCHEDULE
            )
            if current.is_arrived:
                raise InvalidTransitionError(
                    f"Appointment {appointment_id} is under way and cannot be rescheduled"
                )
            if current.reschedule_count >= self.max_reschedules:
                logger.info(
                    "[%s] Reschedule refused for %s: limit %d reached",
                    request_id, appointment_id, self.max_reschedules,
                )
                raise PolicyViolationError(
                    appointment_id, current.reschedule_count, self.max_reschedules
                )

            slot = self.calculator.check_slot(
                provider_id,
                target_day,
                to_minutes(target_time),
                current.duration_minutes,
                current.location,
                exclude_id=current.id,
                now=now,
            )
            if not slot.available:
                logger.info(
                    "[%s] Reschedule of %s to %s %s conflicts: %s",
                    request_id, appointment_id, target_day, slot.start_time, slot.reason.value,
                )
                raise ConflictError(
                    f"{target_day} at {slot.start_time} is not available ({slot.reason.value})",
                    reason=slot.reason.value,
                )

            record = RescheduleRecord(
                from_date=current.scheduled_date,
                from_time=current.scheduled_time,
                to_date=target_day,
                to_time=target_time,
                reason=reason_code,
                at=now or datetime.now(timezone.utc),
            )
            updated = current.model_copy(
                update={
                    "scheduled_date": target_day,
                    "scheduled_time": target_time,
                    "status": next_status,
                    "reschedule_count": current.reschedule_count + 1,
                    "is_missed": False,
                    "reschedule_history": [*current.reschedule_history, record],
                },
                deep=True,
            )
            saved = self.store.update(updated, expected_version=current.version)

        logger.info(
            "[%s] Appointment %s rescheduled to %s %s (%d/%d)",
            request_id, appointment_id, target_day, slot.start_time,
            saved.reschedule_count, self.max_reschedules,
        )
        return saved

    def reschedule_request(self, payload: dict, now: Optional[datetime] = None) -> dict:
        """HTTP-style boundary for the reschedule modal.

        Takes ``{appointmentId, newDate, newTime, reason?}`` and returns the
        stored appointment with a ``remaining`` count for the UI.
        """
        try:
            request = RescheduleRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidInputError.from_validation(exc) from None
        saved = self.reschedule(
            request.appointment_id, request.new_date, request.new_time, request.reason, now=now
        )
        return {**saved.model_dump(mode="json"), "remaining": self.remaining(saved)}
