"""
Price and duration aggregation for multi-vehicle bookings.

Each cart item is priced and timed on its own, rounded on its own, and
only then summed: prices to the nearest cent (half-up), durations up to
the next whole minute. Summing rounded items keeps totals independent of
item order and never under-estimates the time a booking needs.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from src.config import settings
from src.errors import InvalidInputError
from src.schemas.catalog_schema import BodyType, BookingCartItem, ServiceCatalogItem
from src.tools.catalog import ServiceCatalog

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal(100)

# Larger bodies take proportionally longer to detail
DEFAULT_DURATION_MULTIPLIERS: dict[BodyType, float] = {
    BodyType.CAR: 1.0,
    BodyType.SUV: 1.25,
    BodyType.VAN: 1.35,
    BodyType.TRUCK: 1.5,
}


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class ItemEstimate:
    """Rounded price and duration of one cart item."""

    service_id: str
    body_type: BodyType
    luxury_care: bool
    price: Decimal
    duration_minutes: int


@dataclass(frozen=True)
class CartEstimate:
    items: tuple[ItemEstimate, ...]
    total_price: Decimal
    total_duration_minutes: int


@dataclass(frozen=True)
class CartQuote:
    """Order summary shown before payment."""

    subtotal: Decimal
    transaction_fee: Decimal
    tip: Decimal
    total: Decimal


class DurationAggregator:
    """Computes per-item and total price/duration for a booking cart."""

    def __init__(
        self,
        catalog: ServiceCatalog,
        duration_multipliers: Optional[dict[BodyType, float]] = None,
        luxury_extra_time_percent: float = settings.pricing.luxury_extra_time_percent,
        transaction_fee_percent: float = settings.pricing.transaction_fee_percent,
    ) -> None:
        self.catalog = catalog
        self.duration_multipliers = duration_multipliers or dict(DEFAULT_DURATION_MULTIPLIERS)
        self.luxury_extra_time_percent = luxury_extra_time_percent
        self.transaction_fee_percent = transaction_fee_percent

    def _service(self, service_id: str) -> ServiceCatalogItem:
        service = self.catalog.get_service(service_id)
        if service is None:
            raise InvalidInputError("service_id", f"unknown service '{service_id}'")
        return service

    def item_price(self, service: ServiceCatalogItem, item: BookingCartItem) -> Decimal:
        """base x body multiplier x (1 + luxury%), rounded half-up to the cent."""
        price = service.base_price * _dec(service.multiplier_for(item.body_type))
        if item.luxury_care:
            price *= 1 + _dec(service.luxury_surcharge_percent) / HUNDRED
        return price.quantize(CENT, rounding=ROUND_HALF_UP)

    def item_duration(self, service: ServiceCatalogItem, item: BookingCartItem) -> int:
        """base x size multiplier x (1 + luxury extra time%), rounded up to the minute."""
        minutes = Decimal(service.base_duration_minutes) * _dec(
            self.duration_multipliers.get(item.body_type, 1.0)
        )
        if item.luxury_care:
            minutes *= 1 + _dec(self.luxury_extra_time_percent) / HUNDRED
        return int(minutes.to_integral_value(rounding=ROUND_CEILING))

    def estimate_item(self, item: BookingCartItem) -> ItemEstimate:
        service = self._service(item.service_id)
        price = self.item_price(service, item)
        duration = self.item_duration(service, item)
        if price < 0 or duration < 0:
            raise InvalidInputError(
                "cart", f"item for service '{item.service_id}' computed a negative amount"
            )
        return ItemEstimate(
            service_id=item.service_id,
            body_type=item.body_type,
            luxury_care=item.luxury_care,
            price=price,
            duration_minutes=duration,
        )

    def aggregate(self, cart: Iterable[BookingCartItem]) -> CartEstimate:
        """Sum rounded per-item estimates across the whole cart."""
        items = tuple(self.estimate_item(item) for item in cart)
        if not items:
            raise InvalidInputError("cart", "at least one vehicle is required")
        total_price = sum((i.price for i in items), Decimal("0.00"))
        total_duration = sum(i.duration_minutes for i in items)
        logger.debug(
            "Cart of %d items: %s over %d minutes", len(items), total_price, total_duration
        )
        return CartEstimate(
            items=items, total_price=total_price, total_duration_minutes=total_duration
        )

    def quote(self, cart: Iterable[BookingCartItem], tip: Decimal = Decimal("0")) -> CartQuote:
        """Subtotal plus transaction fee and optional tip."""
        if tip < 0:
            raise InvalidInputError("tip", "must not be negative")
        subtotal = self.aggregate(cart).total_price
        fee = (subtotal * _dec(self.transaction_fee_percent) / HUNDRED).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        tip = tip.quantize(CENT, rounding=ROUND_HALF_UP)
        return CartQuote(subtotal=subtotal, transaction_fee=fee, tip=tip, total=subtotal + fee + tip)
