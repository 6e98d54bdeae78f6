from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

DEFAULT_VOLUMETRIC_DIVISOR = Decimal("6000")
WEIGHT_QUANTUM = Decimal("0.001")


def _to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def resolve_divisor(divisor: Optional[object]) -> Decimal:
    if divisor is None:
        return DEFAULT_VOLUMETRIC_DIVISOR
    value = _to_decimal(divisor)
    if value <= 0:
        return DEFAULT_VOLUMETRIC_DIVISOR
    return value


def volumetric_weight_kg(
    length_cm: object,
    width_cm: object,
    height_cm: object,
    divisor: Optional[object] = None,
) -> Decimal:
    dims = [max(_to_decimal(value), Decimal("0")) for value in (length_cm, width_cm, height_cm)]
    volume = dims[0] * dims[1] * dims[2]
    return (volume / resolve_divisor(divisor)).quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP)


def billed_weight_kg(
    actual_kg: object,
    length_cm: object,
    width_cm: object,
    height_cm: object,
    divisor: Optional[object] = None,
) -> Decimal:
    """Return the billable weight: the greater of actual and volumetric weight.

    Zero or negative dimensions give a near-zero volumetric weight, so the
    actual weight dominates.
    """
    volumetric = volumetric_weight_kg(length_cm, width_cm, height_cm, divisor)
    billed = max(_to_decimal(actual_kg), volumetric)
    return billed.quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP)
