from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from landed_catalog.engine.pricing.shipping import (
    DEFAULT_SHIPPING_TIERS,
    ShippingTier,
    validate_tier_table,
)
from landed_catalog.engine.pricing.weight import DEFAULT_VOLUMETRIC_DIVISOR

DEFAULT_ENDINGS: Tuple[Decimal, ...] = (Decimal("0.95"), Decimal("0.99"))


def _default_fx_rates() -> Dict[str, Decimal]:
    return {"USD": Decimal("3.75")}


@dataclass(frozen=True)
class PricingPolicy:
    """Read-only pricing configuration passed explicitly into every pricing call.

    ``PricingPolicy()`` (or ``PricingPolicy.default()``) gives a usable policy
    with no configuration at all.
    """

    margin: Decimal = Decimal("0.35")
    round_to: Decimal = Decimal("0.05")
    endings: Tuple[Decimal, ...] = DEFAULT_ENDINGS
    floor_price: Decimal = Decimal("9")
    shipping_tiers: Tuple[ShippingTier, ...] = DEFAULT_SHIPPING_TIERS
    volumetric_divisor: Decimal = DEFAULT_VOLUMETRIC_DIVISOR
    fx_rates: Mapping[str, Decimal] = field(default_factory=_default_fx_rates, hash=False)
    local_currency: str = "SAR"
    handling_fee: Decimal = Decimal("0")
    vat_rate: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        rates = {currency.strip().upper(): Decimal(str(rate)) for currency, rate in self.fx_rates.items()}
        object.__setattr__(self, "fx_rates", MappingProxyType(rates))
        if not Decimal("0") <= self.margin < Decimal("1"):
            raise ValueError("margin must be in [0, 1)")
        if self.round_to < 0:
            raise ValueError("round_to must be >= 0")
        if self.floor_price < 0:
            raise ValueError("floor_price must be >= 0")
        if self.volumetric_divisor <= 0:
            raise ValueError("volumetric_divisor must be > 0")
        if self.vat_rate < 0:
            raise ValueError("vat_rate must be >= 0")
        validate_tier_table(self.shipping_tiers)

    @classmethod
    def default(cls) -> "PricingPolicy":
        return cls()

    def fx_rate_for(self, currency: str | None) -> Decimal | None:
        """Rate converting ``currency`` to the local currency, None when unknown."""
        if currency is None:
            return Decimal("1")
        normalized = currency.strip().upper()
        if not normalized or normalized == self.local_currency.upper():
            return Decimal("1")
        return self.fx_rates.get(normalized)
