"""Detailing service catalog with base pricing, durations, and size multipliers."""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from src.schemas.catalog_schema import BodyType, ServiceCatalogItem

logger = logging.getLogger(__name__)

DEFAULT_SERVICES: list[ServiceCatalogItem] = [
    ServiceCatalogItem(
        id="exterior-wash",
        name="Exterior Hand Wash",
        base_price=Decimal("50.00"),
        base_duration_minutes=45,
        body_type_multipliers={
            BodyType.CAR: 1.0, BodyType.VAN: 1.3, BodyType.TRUCK: 1.4, BodyType.SUV: 1.25,
        },
        luxury_surcharge_percent=15,
    ),
    ServiceCatalogItem(
        id="interior-detail",
        name="Interior Detail",
        base_price=Decimal("90.00"),
        base_duration_minutes=90,
        luxury_surcharge_percent=20,
    ),
    ServiceCatalogItem(
        id="full-detail",
        name="Full Detail",
        base_price=Decimal("150.00"),
        base_duration_minutes=120,
        body_type_multipliers={
            BodyType.CAR: 1.0, BodyType.VAN: 1.4, BodyType.TRUCK: 1.5, BodyType.SUV: 1.3,
        },
        luxury_surcharge_percent=20,
    ),
    ServiceCatalogItem(
        id="ceramic-coating",
        name="Ceramic Coating",
        base_price=Decimal("400.00"),
        base_duration_minutes=240,
        luxury_surcharge_percent=10,
    ),
]


class ServiceCatalog:
    """Lookup of the services detailers offer, keyed by service ID."""

    def __init__(self, services: Optional[Iterable[ServiceCatalogItem]] = None) -> None:
        source = DEFAULT_SERVICES if services is None else services
        self._services: dict[str, ServiceCatalogItem] = {s.id: s for s in source}

    def get_service(self, service_id: str) -> Optional[ServiceCatalogItem]:
        """Get a service by ID, ignoring case and surrounding whitespace."""
        return self._services.get(service_id.lower().strip())

    def get_all_services(self) -> list[dict]:
        """Return all services with basic info."""
        return [
            {"id": s.id, "name": s.name, "base_price": str(s.base_price)}
            for s in self._services.values()
        ]

    def add(self, service: ServiceCatalogItem) -> None:
        self._services[service.id] = service
        logger.info("Service added to catalog: %s", service.id)
