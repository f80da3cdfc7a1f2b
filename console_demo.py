"""
Offline console demo: walks a detailer's day through the scheduling engine.

Uses the real availability calculator, booking service, reschedule policy,
and route sequencer over in-memory collaborators. No network calls; drive
times come from straight-line estimates.

Usage:
    python console_demo.py
    python console_demo.py --scenario reschedule
    python console_demo.py --scenario route
"""

import argparse
import asyncio
from datetime import date, datetime, time, timedelta
from typing import Optional

from src.config import settings
from src.errors import ConflictError, PolicyViolationError
from src.scheduling.engine import SchedulingEngine, build_engine
from src.schemas.appointment_schema import Location
from src.schemas.catalog_schema import BodyType, BookingCartItem

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

PROVIDER_ID = "det_1"

CUSTOMER_HOMES: dict[str, Location] = {
    "cust_1": Location(lat=37.7793, lng=-122.4193, address="1 Dr Carlton B Goodlett Pl, San Francisco"),
    "cust_2": Location(lat=37.7609, lng=-122.4350, address="500 Castro St, San Francisco"),
    "cust_3": Location(lat=37.8024, lng=-122.4058, address="Coit Tower, San Francisco"),
}
DEPOT = Location(lat=37.7749, lng=-122.4194, address="Depot")


def _next_weekday(start: date) -> date:
    day = start + timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


class ConsoleSession:
    """Prints each engine step of a scripted scenario."""

    def __init__(self, day: Optional[date] = None) -> None:
        self.engine: SchedulingEngine = build_engine()
        self.day = day or _next_weekday(date.today())

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def header(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  DETAILING SCHEDULER - {title}{RESET}")
        print(f"{BOLD}  Provider: {PROVIDER_ID}   Date: {self.day.isoformat()}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def show_day(self, duration: int, location: Optional[Location] = None) -> None:
        result = self.engine.availability.compute_slots(PROVIDER_ID, self.day, duration, location)
        print(f"\n{BLUE}Slots for a {duration}-minute job ({result.status.value}):{RESET}")
        for slot in result.slots:
            if slot.available:
                print(f"  {GREEN}{slot.start_time}-{slot.end_time}  available{RESET}")
            else:
                print(f"  {DIM}{slot.start_time}-{slot.end_time}  {slot.reason.value}{RESET}")

    def _seed_bookings(self) -> None:
        booking = self.engine.booking
        booking.confirm_booking(
            PROVIDER_ID, "cust_1", self.day, time(9, 0),
            [BookingCartItem(service_id="exterior-wash")], CUSTOMER_HOMES["cust_1"],
        )
        booking.confirm_booking(
            PROVIDER_ID, "cust_2", self.day, time(14, 0),
            [BookingCartItem(service_id="interior-detail", body_type=BodyType.SUV)],
            CUSTOMER_HOMES["cust_2"],
        )

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def run_booking(self) -> None:
        self.header("Multi-vehicle booking")
        self._seed_bookings()
        cart = [
            BookingCartItem(service_id="exterior-wash", body_type=BodyType.CAR),
            BookingCartItem(service_id="exterior-wash", body_type=BodyType.SUV, luxury_care=True),
        ]
        quote = self.engine.pricing.quote(cart)
        estimate = self.engine.pricing.aggregate(cart)
        for item in estimate.items:
            label = item.body_type.value + (" + luxury" if item.luxury_care else "")
            self.system_log(f"{item.service_id} ({label}): ${item.price}, {item.duration_minutes} min")
        self.say(
            f"Subtotal ${quote.subtotal} + fee "
            f"({settings.pricing.transaction_fee_percent:g}%) ${quote.transaction_fee} "
            f"= ${quote.total}"
        )

        location = CUSTOMER_HOMES["cust_3"]
        self.show_day(estimate.total_duration_minutes, location)

        nxt = self.engine.availability.find_next_available(
            PROVIDER_ID, self.day, estimate.total_duration_minutes, location
        )
        if nxt is None:
            print(f"{RED}No availability in the next seven days.{RESET}")
            return
        day, start = nxt
        confirmation = self.engine.booking.confirm_booking(
            PROVIDER_ID, "cust_3", day, start, cart, location
        )
        self.say(f"Booked {confirmation.booking_id} on {day} at {start}.")
        try:
            self.engine.booking.confirm_booking(PROVIDER_ID, "cust_1", day, start, cart, location)
        except ConflictError as exc:
            print(f"{YELLOW}Second customer for the same slot: {exc}{RESET}")

    def run_reschedule(self) -> None:
        self.header("Reschedule limit")
        self._seed_bookings()
        appt = self.engine.store.for_provider_on(PROVIDER_ID, self.day)[0]
        policy = self.engine.reschedules
        target = self.day
        for attempt in range(1, settings.scheduling.max_reschedules + 2):
            target = _next_weekday(target)
            try:
                appt = policy.reschedule(appt.id, target, "10:00", "customer_request")
                self.say(
                    f"Attempt {attempt}: moved to {target} 10:00 "
                    f"({policy.remaining(appt)} remaining)"
                )
            except PolicyViolationError as exc:
                print(f"{RED}Attempt {attempt}: {exc}{RESET}")

    def run_route(self) -> None:
        self.header("Today's route")
        self._seed_bookings()
        booking = self.engine.booking
        booking.confirm_booking(
            PROVIDER_ID, "cust_3", self.day, time(10, 30),
            [BookingCartItem(service_id="exterior-wash", body_type=BodyType.VAN)],
            CUSTOMER_HOMES["cust_3"],
        )
        appointments = self.engine.store.for_provider_on(PROVIDER_ID, self.day)
        start_of_day = datetime.combine(self.day, time(8, 30))
        plan = asyncio.run(
            self.engine.routes.build_route(DEPOT, appointments, self.day, now=start_of_day)
        )
        for stop in plan.stops:
            appt = stop.appointment
            drive = "drive time unavailable"
            if stop.leg.duration_minutes is not None:
                drive = f"{stop.leg.duration_minutes:.0f} min drive"
            eta = stop.projected_arrival.strftime("%H:%M") if stop.projected_arrival else "--:--"
            print(
                f"  {appt.scheduled_time.strftime('%H:%M')}  {appt.location.address:<45} "
                f"{DIM}{drive}, arrive {eta}{RESET}"
            )
        first = plan.next_stop()
        if first is not None:
            arriving = self.engine.routes.is_arriving(first.appointment.location, plan)
            self.system_log(f"At first job address -> arriving={arriving}")
            booking.mark_arrived(first.appointment.id)
            self.say(f"Marked {first.appointment.id} arrived.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline scheduling engine demo")
    parser.add_argument(
        "--scenario",
        choices=["booking", "reschedule", "route"],
        default="booking",
        help="Which scripted walkthrough to run",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    {
        "booking": session.run_booking,
        "reschedule": session.run_reschedule,
        "route": session.run_route,
    }[args.scenario]()


if __name__ == "__main__":
    main()
