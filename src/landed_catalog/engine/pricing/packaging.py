from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from landed_catalog.engine.pricing.weight import billed_weight_kg


@dataclass(frozen=True)
class PackagingOption:
    code: str
    length_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal
    description: str = ""


@dataclass(frozen=True)
class PackagingRecommendation:
    option: PackagingOption
    billed_weight_kg: Decimal


# Declared smallest/cheapest first; ties resolve to the earlier entry.
DEFAULT_PACKAGING_OPTIONS: Tuple[PackagingOption, ...] = (
    PackagingOption("POLY_MAILER", Decimal("25"), Decimal("20"), Decimal("3"), "Tight fold apparel; poly mailer"),
    PackagingOption("PADDED_BAG", Decimal("30"), Decimal("25"), Decimal("6"), "Padded bag for light footwear"),
    PackagingOption("SMALL_BOX", Decimal("33"), Decimal("22"), Decimal("12"), "Small carton for accessories and shoes"),
)


def recommend_packaging(
    actual_weight_kg: Decimal,
    length_cm: Decimal,
    width_cm: Decimal,
    height_cm: Decimal,
    options: Optional[Sequence[PackagingOption]] = None,
    divisor: Optional[Decimal] = None,
) -> PackagingRecommendation:
    candidates = tuple(options) if options is not None else DEFAULT_PACKAGING_OPTIONS
    if not candidates:
        raise ValueError("at least one packaging option is required")

    best: Optional[PackagingRecommendation] = None
    for option in candidates:
        # The envelope grows to fit the product on any axis where the product is larger.
        billed = billed_weight_kg(
            actual_weight_kg,
            max(option.length_cm, length_cm),
            max(option.width_cm, width_cm),
            max(option.height_cm, height_cm),
            divisor,
        )
        if best is None or billed < best.billed_weight_kg:
            best = PackagingRecommendation(option=option, billed_weight_kg=billed)
    return best
