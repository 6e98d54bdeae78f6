from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence, Tuple

MONEY_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class ShippingTier:
    max_weight_kg: Decimal
    price: Decimal


# Placeholder KSA DDP matrix; real carrier tables come from configuration.
DEFAULT_SHIPPING_TIERS: Tuple[ShippingTier, ...] = (
    ShippingTier(max_weight_kg=Decimal("0.5"), price=Decimal("25")),
    ShippingTier(max_weight_kg=Decimal("1.0"), price=Decimal("35")),
    ShippingTier(max_weight_kg=Decimal("1.5"), price=Decimal("45")),
    ShippingTier(max_weight_kg=Decimal("2.0"), price=Decimal("55")),
    ShippingTier(max_weight_kg=Decimal("3.0"), price=Decimal("75")),
    ShippingTier(max_weight_kg=Decimal("5.0"), price=Decimal("110")),
)


def validate_tier_table(tiers: Sequence[ShippingTier]) -> None:
    """Reject tables that would make lookups ambiguous or non-monotonic."""
    if not tiers:
        raise ValueError("shipping tier table must not be empty")
    previous: ShippingTier | None = None
    for index, tier in enumerate(tiers):
        if tier.max_weight_kg <= 0:
            raise ValueError(f"tier {index}: max_weight_kg must be > 0")
        if tier.price < 0:
            raise ValueError(f"tier {index}: price must be >= 0")
        if previous is not None:
            if tier.max_weight_kg <= previous.max_weight_kg:
                raise ValueError(f"tier {index}: max_weight_kg must be strictly ascending")
            if tier.price < previous.price:
                raise ValueError(f"tier {index}: price must not decrease with weight")
        previous = tier


def resolve_shipping_cost(
    billed_weight_kg: Decimal,
    tiers: Sequence[ShippingTier] = DEFAULT_SHIPPING_TIERS,
) -> Decimal:
    if not tiers:
        raise ValueError("shipping tier table must not be empty")
    for tier in tiers:
        if billed_weight_kg <= tier.max_weight_kg:
            return tier.price

    last = tiers[-1]
    if len(tiers) < 2:
        return last.price
    previous = tiers[-2]
    per_kg = (last.price - previous.price) / (last.max_weight_kg - previous.max_weight_kg)
    extra_kg = billed_weight_kg - last.max_weight_kg
    return (last.price + per_kg * extra_kg).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
