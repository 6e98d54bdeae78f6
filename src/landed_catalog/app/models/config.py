from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ShippingTierConfig(BaseModel):
    max_weight_kg: Decimal
    price: Decimal


def _default_tiers() -> List[ShippingTierConfig]:
    return [
        ShippingTierConfig(max_weight_kg=Decimal("0.5"), price=Decimal("25")),
        ShippingTierConfig(max_weight_kg=Decimal("1.0"), price=Decimal("35")),
        ShippingTierConfig(max_weight_kg=Decimal("1.5"), price=Decimal("45")),
        ShippingTierConfig(max_weight_kg=Decimal("2.0"), price=Decimal("55")),
        ShippingTierConfig(max_weight_kg=Decimal("3.0"), price=Decimal("75")),
        ShippingTierConfig(max_weight_kg=Decimal("5.0"), price=Decimal("110")),
    ]


class PricingConfig(BaseModel):
    margin: Decimal = Decimal("0.35")
    round_to: Decimal = Decimal("0.05")
    endings: List[Decimal] = Field(default_factory=lambda: [Decimal("0.95"), Decimal("0.99")])
    floor_price: Decimal = Decimal("9")
    shipping_tiers: List[ShippingTierConfig] = Field(default_factory=_default_tiers)
    volumetric_divisor: Decimal = Decimal("6000")
    fx_rates: Dict[str, Decimal] = Field(default_factory=lambda: {"USD": Decimal("3.75")})
    local_currency: str = "SAR"
    handling_fee: Decimal = Decimal("0")
    vat_rate: Decimal = Decimal("0")

    @field_validator("margin")
    @classmethod
    def clamp_margin(cls, value: Decimal) -> Decimal:
        return min(max(value, Decimal("0")), Decimal("0.95"))

    @field_validator("endings")
    @classmethod
    def endings_in_unit_interval(cls, value: List[Decimal]) -> List[Decimal]:
        for ending in value:
            if not Decimal("0") <= ending < Decimal("1"):
                raise ValueError("price endings must be in [0, 1)")
        return value

    @field_validator("fx_rates")
    @classmethod
    def positive_rates(cls, value: Dict[str, Decimal]) -> Dict[str, Decimal]:
        normalized: Dict[str, Decimal] = {}
        for currency, rate in value.items():
            if rate <= 0:
                raise ValueError(f"fx rate for {currency} must be > 0")
            normalized[currency.strip().upper()] = rate
        return normalized

    @model_validator(mode="after")
    def monotonic_tiers(self) -> "PricingConfig":
        if not self.shipping_tiers:
            raise ValueError("shipping_tiers must not be empty")
        for previous, current in zip(self.shipping_tiers, self.shipping_tiers[1:]):
            if current.max_weight_kg <= previous.max_weight_kg:
                raise ValueError("shipping_tiers max_weight_kg must be strictly ascending")
            if current.price < previous.price:
                raise ValueError("shipping_tiers price must not decrease with weight")
        return self


class CatalogConfig(BaseModel):
    table_name: Optional[str] = None
    optional_fields: List[str] = Field(default_factory=lambda: ["images", "video_url", "category"])
    supports_variants: bool = True
    max_slug_attempts: int = 50


class AnomalyConfig(BaseModel):
    volumetric_ratio: Decimal = Decimal("3")
    shipping_per_kg: Decimal = Decimal("90")
    thin_margin_ratio: Decimal = Decimal("1.05")
    shipping_share_of_retail: Decimal = Decimal("0.6")
    heavy_parcel_kg: Decimal = Decimal("5")


class EngineConfig(BaseModel):
    schema_version: int = 1
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    anomalies: AnomalyConfig = Field(default_factory=AnomalyConfig)
