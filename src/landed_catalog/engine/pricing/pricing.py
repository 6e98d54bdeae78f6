from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Optional, Sequence

from landed_catalog.engine.pricing.policy import PricingPolicy
from landed_catalog.engine.pricing.shipping import MONEY_QUANTUM, resolve_shipping_cost
from landed_catalog.engine.pricing.weight import billed_weight_kg, volumetric_weight_kg

MIN_MARGIN_DIVISOR = Decimal("0.000001")


@dataclass(frozen=True)
class WeightInput:
    actual_kg: Decimal
    length_cm: Decimal = Decimal("0")
    width_cm: Decimal = Decimal("0")
    height_cm: Decimal = Decimal("0")


@dataclass(frozen=True)
class PricingResult:
    actual_weight_kg: Decimal
    volumetric_weight_kg: Decimal
    billed_weight_kg: Decimal
    shipping_cost: Decimal
    landed_cost: Decimal
    retail_price: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def round_to_granularity(value: Decimal, step: Decimal) -> Decimal:
    if step <= 0:
        return _money(value)
    increments = (value / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return _money(increments * step)


def pretty_price(value: Decimal, endings: Sequence[Decimal]) -> Decimal:
    """Snap ``value`` to the closest preferred ending within its integer floor."""
    if not endings:
        return _money(value)
    floor = value.to_integral_value(rounding=ROUND_FLOOR)
    best = value
    best_diff: Optional[Decimal] = None
    for ending in endings:
        candidate = floor + ending
        diff = abs(candidate - value)
        if best_diff is None or diff < best_diff:
            best = candidate
            best_diff = diff
    return _money(best)


def compute_retail_from_landed(
    landed_cost: Decimal,
    policy: Optional[PricingPolicy] = None,
    *,
    margin: Optional[Decimal] = None,
    round_to: Optional[Decimal] = None,
    endings: Optional[Sequence[Decimal]] = None,
) -> Decimal:
    """Margin-divide, round to the granularity, then snap to a pretty ending.

    The result is never clamped to the policy floor; see ``apply_floor``.
    """
    policy = policy or PricingPolicy.default()
    margin = policy.margin if margin is None else margin
    step = policy.round_to if round_to is None else round_to
    endings = policy.endings if endings is None else endings
    divisor = max(Decimal("1") - margin, MIN_MARGIN_DIVISOR)
    preliminary = landed_cost / divisor
    rounded = round_to_granularity(preliminary, step)
    return pretty_price(rounded, endings)


def apply_floor(price: Decimal, policy: Optional[PricingPolicy] = None) -> Decimal:
    policy = policy or PricingPolicy.default()
    if price < policy.floor_price:
        return policy.floor_price
    return price


def convert_to_local(
    amount: Decimal,
    currency: Optional[str],
    policy: Optional[PricingPolicy] = None,
) -> Optional[Decimal]:
    """Convert ``amount`` to the policy's local currency.

    Returns None when no rate is configured for ``currency``.
    """
    policy = policy or PricingPolicy.default()
    rate = policy.fx_rate_for(currency)
    if rate is None:
        return None
    return _money(amount * rate)


def landed_cost_for(
    supplier_cost: Decimal,
    shipping_cost: Decimal,
    policy: Optional[PricingPolicy] = None,
    handling_fee: Optional[Decimal] = None,
) -> Decimal:
    policy = policy or PricingPolicy.default()
    handling = policy.handling_fee if handling_fee is None else handling_fee
    goods = max(supplier_cost, Decimal("0")) + max(shipping_cost, Decimal("0"))
    vat = goods * policy.vat_rate
    return _money(goods + vat + max(handling, Decimal("0")))


def calculate_retail(
    supplier_cost: Decimal,
    weight: WeightInput,
    policy: Optional[PricingPolicy] = None,
    handling_fee: Optional[Decimal] = None,
) -> PricingResult:
    policy = policy or PricingPolicy.default()
    divisor = policy.volumetric_divisor
    volumetric = volumetric_weight_kg(weight.length_cm, weight.width_cm, weight.height_cm, divisor)
    billed = billed_weight_kg(weight.actual_kg, weight.length_cm, weight.width_cm, weight.height_cm, divisor)
    shipping = resolve_shipping_cost(billed, policy.shipping_tiers)
    landed = landed_cost_for(supplier_cost, shipping, policy, handling_fee)
    retail = compute_retail_from_landed(landed, policy)
    return PricingResult(
        actual_weight_kg=weight.actual_kg,
        volumetric_weight_kg=volumetric,
        billed_weight_kg=billed,
        shipping_cost=shipping,
        landed_cost=landed,
        retail_price=retail,
    )
