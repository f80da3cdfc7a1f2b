"""
Booking confirmation and provider-side appointment actions.

Confirmation re-verifies the chosen time under the provider-day lock
before writing, so a slot that looked free in an earlier availability
query but was claimed in the meantime comes back as a ConflictError.
Arrival and missed marking are idempotent flag flips that never touch
the schedule or the reschedule counter.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Optional, Union

from src.config import settings
from src.errors import ConflictError, InvalidInputError, InvalidTransitionError
from src.logging_context import get_request_logger, new_request_id
from src.scheduling.availability import AvailabilityCalculator
from src.scheduling.locks import ProviderDayLocks
from src.scheduling.pricing import CartEstimate, DurationAggregator
from src.scheduling.reschedule import AppointmentLifecycle, LifecycleTrigger
from src.schemas.appointment_schema import Appointment, Location
from src.schemas.catalog_schema import BookingCartItem
from src.tools.appointment_store import new_appointment_id
from src.utils import as_local_naive, parse_clock_time, parse_iso_date, to_minutes

logger = get_request_logger(__name__)


@dataclass(frozen=True)
class BookingConfirmation:
    """Result of a confirmed booking: one appointment per vehicle."""

    booking_id: str
    appointments: list[Appointment]
    estimate: CartEstimate


class BookingService:
    """Creates appointments from a cart and applies provider actions to them."""

    def __init__(
        self,
        calculator: AvailabilityCalculator,
        aggregator: DurationAggregator,
        locks: ProviderDayLocks,
    ) -> None:
        self.calculator = calculator
        self.store = calculator.store
        self.aggregator = aggregator
        self.locks = locks

    # ------------------------------------------------------------------ #
    # Booking confirmation
    # ------------------------------------------------------------------ #

    def confirm_booking(
        self,
        provider_id: str,
        customer_id: str,
        day: Union[str, date],
        start_time: Union[str, time],
        cart: Iterable[BookingCartItem],
        location: Location,
        now: Optional[datetime] = None,
    ) -> BookingConfirmation:
        """
        Re-check the slot and persist one appointment per cart item.

        Raises:
            InvalidInputError: Bad date/time, empty cart, unknown service or provider.
            ConflictError: The slot is no longer free.
        """
        request_id = new_request_id("BOOK")
        try:
            booking_day = parse_iso_date(day)
        except (ValueError, TypeError, AttributeError):
            raise InvalidInputError("date", f"expected YYYY-MM-DD, got {day!r}") from None
        try:
            start = parse_clock_time(start_time)
        except (ValueError, TypeError, AttributeError):
            raise InvalidInputError("start_time", f"expected HH:MM, got {start_time!r}") from None

        estimate = self.aggregator.aggregate(cart)
        booking_id = f"BK-{uuid.uuid4().hex[:6].upper()}"

        with self.locks.hold((provider_id, booking_day)):
            slot = self.calculator.check_slot(
                provider_id,
                booking_day,
                to_minutes(start),
                estimate.total_duration_minutes,
                location,
                now=now,
            )
            if not slot.available:
                logger.info(
                    "[%s] Booking lost %s %s for %s: %s",
                    request_id, booking_day, slot.start_time, provider_id, slot.reason.value,
                )
                raise ConflictError(
                    f"{booking_day} at {slot.start_time} is no longer available "
                    f"({slot.reason.value}). Please pick another time.",
                    reason=slot.reason.value,
                )

            created = self.store.create_many(
                Appointment(
                    id=new_appointment_id(),
                    provider_id=provider_id,
                    customer_id=customer_id,
                    booking_id=booking_id,
                    service_id=item.service_id,
                    body_type=item.body_type,
                    luxury_care=item.luxury_care,
                    scheduled_date=booking_day,
                    scheduled_time=start,
                    duration_minutes=item.duration_minutes,
                    price=item.price,
                    location=location,
                )
                for item in estimate.items
            )

        logger.info(
            "[%s] Booking %s confirmed: %d vehicles with %s on %s at %s (%s, %d min)",
            request_id, booking_id, len(created), provider_id, booking_day, slot.start_time,
            estimate.total_price, estimate.total_duration_minutes,
        )
        return BookingConfirmation(booking_id=booking_id, appointments=created, estimate=estimate)

    # ------------------------------------------------------------------ #
    # Provider actions
    # ------------------------------------------------------------------ #

    def _apply(
        self, appointment_id: str, change: Callable[[Appointment], Optional[dict]]
    ) -> Appointment:
        """Run ``change`` on a fresh copy and store the update it returns.

        ``change`` returns None when the appointment is already in the
        requested state, which makes the action a no-op.
        """
        current = self.store.require(appointment_id)
        update = change(current)
        if not update:
            return current
        return self.store.update(
            current.model_copy(update=update, deep=True), expected_version=current.version
        )

    def mark_arrived(self, appointment_id: str) -> Appointment:
        """Provider confirms arrival. Clears any missed flag; repeat calls are no-ops."""

        def change(appt: Appointment) -> Optional[dict]:
            if appt.is_terminal:
                raise InvalidTransitionError(
                    f"Cannot mark {appt.status.value} appointment {appt.id} as arrived"
                )
            if appt.is_arrived:
                return None
            return {"is_arrived": True, "is_missed": False}

        updated = self._apply(appointment_id, change)
        logger.info("Appointment %s marked arrived", appointment_id)
        return updated

    def mark_missed(self, appointment_id: str) -> Appointment:
        """Provider flags a no-show. Schedule and reschedule count stay untouched."""

        def change(appt: Appointment) -> Optional[dict]:
            if appt.is_terminal or appt.is_arrived:
                raise InvalidTransitionError(
                    f"Cannot mark appointment {appt.id} as missed ({appt.display_status})"
                )
            if appt.is_missed:
                return None
            return {"is_missed": True}

        updated = self._apply(appointment_id, change)
        logger.info("Appointment %s marked missed", appointment_id)
        return updated

    def undo_missed(self, appointment_id: str) -> Appointment:
        """Clear the missed flag and nothing else."""
        updated = self._apply(
            appointment_id, lambda appt: {"is_missed": False} if appt.is_missed else None
        )
        logger.info("Missed flag cleared on %s", appointment_id)
        return updated

    def _transition(self, appointment_id: str, trigger: LifecycleTrigger) -> Appointment:
        def change(appt: Appointment) -> dict:
            return {"status": AppointmentLifecycle.next_state(appt.status, trigger)}

        with self.locks.hold(*self._lock_keys(appointment_id)):
            updated = self._apply(appointment_id, change)
        logger.info("Appointment %s -> %s", appointment_id, updated.status.value)
        return updated

    def _lock_keys(self, appointment_id: str) -> list[tuple[str, date]]:
        appt = self.store.require(appointment_id)
        return [(appt.provider_id, appt.scheduled_date)]

    def cancel(self, appointment_id: str) -> Appointment:
        return self._transition(appointment_id, LifecycleTrigger.CANCEL)

    def complete(self, appointment_id: str) -> Appointment:
        return self._transition(appointment_id, LifecycleTrigger.COMPLETE)

    def detect_missed(
        self,
        provider_id: str,
        now: datetime,
        grace_minutes: int = settings.scheduling.missed_grace_minutes,
    ) -> list[Appointment]:
        """Flag every active appointment whose start plus grace period has passed.

        Appointment times are naive local wall-clock times, so an aware
        ``now`` is converted to local time and compared without its zone.

        Returns the appointments newly marked missed.
        """
        cutoff = as_local_naive(now) - timedelta(minutes=grace_minutes)
        newly_missed = []
        for appt in self.store.for_provider(provider_id):
            if appt.is_terminal or appt.is_arrived or appt.is_missed:
                continue
            if appt.starts_at() < cutoff:
                newly_missed.append(self.mark_missed(appt.id))
        if newly_missed:
            logger.info(
                "Detected %d missed appointments for %s", len(newly_missed), provider_id
            )
        return newly_missed
