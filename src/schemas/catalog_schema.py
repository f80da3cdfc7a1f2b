"""Service catalog and booking cart models."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

MIN_BODY_MULTIPLIER = 0.5
MAX_BODY_MULTIPLIER = 3.0


class BodyType(str, Enum):
    CAR = "car"
    VAN = "van"
    TRUCK = "truck"
    SUV = "suv"


DEFAULT_BODY_TYPE_MULTIPLIERS: dict[BodyType, float] = {
    BodyType.CAR: 1.0,
    BodyType.VAN: 1.3,
    BodyType.TRUCK: 1.4,
    BodyType.SUV: 1.25,
}


class ServiceCatalogItem(BaseModel):
    """A service a provider offers, with vehicle-size pricing."""

    id: str
    name: str
    base_price: Decimal = Field(ge=0)
    base_duration_minutes: int = Field(gt=0)
    body_type_multipliers: dict[BodyType, float] = Field(
        default_factory=lambda: dict(DEFAULT_BODY_TYPE_MULTIPLIERS)
    )
    luxury_surcharge_percent: float = Field(default=0.0, ge=0, le=100)

    @field_validator("body_type_multipliers")
    @classmethod
    def _multipliers_in_range(cls, value: dict[BodyType, float]) -> dict[BodyType, float]:
        for body_type, multiplier in value.items():
            if not MIN_BODY_MULTIPLIER <= multiplier <= MAX_BODY_MULTIPLIER:
                raise ValueError(
                    f"Multiplier for {body_type.value} must be between "
                    f"{MIN_BODY_MULTIPLIER} and {MAX_BODY_MULTIPLIER}, got {multiplier}"
                )
        return value

    def multiplier_for(self, body_type: BodyType) -> float:
        """Price multiplier for a body type, 1.0 when the provider left it unset."""
        return self.body_type_multipliers.get(body_type, 1.0)


class BookingCartItem(BaseModel):
    """One vehicle in a booking being composed."""

    service_id: str
    body_type: BodyType = BodyType.CAR
    luxury_care: bool = False
