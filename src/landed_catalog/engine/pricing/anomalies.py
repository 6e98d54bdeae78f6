from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from landed_catalog.engine.pricing.pricing import PricingResult

SEVERITIES = ("info", "warn", "error")


@dataclass(frozen=True)
class PricingAnomaly:
    code: str
    severity: str
    message: str


@dataclass(frozen=True)
class AnomalyThresholds:
    # Heuristics; tune once the real DDP matrix is known.
    volumetric_ratio: Decimal = Decimal("3")
    shipping_per_kg: Decimal = Decimal("90")
    thin_margin_ratio: Decimal = Decimal("1.05")
    shipping_share_of_retail: Decimal = Decimal("0.6")
    heavy_parcel_kg: Decimal = Decimal("5")


def _fmt(value: Decimal) -> str:
    return f"{value:.2f}"


def _checks(
    actual_weight_kg: Decimal,
    volumetric_weight_kg: Decimal,
    billed_weight_kg: Decimal,
    shipping_cost: Decimal,
    landed_cost: Decimal,
    retail_price: Decimal,
    thresholds: AnomalyThresholds,
) -> List[PricingAnomaly]:
    found: List[PricingAnomaly] = []
    zero = Decimal("0")

    ratio = volumetric_weight_kg / actual_weight_kg if volumetric_weight_kg > zero and actual_weight_kg > zero else zero
    if ratio >= thresholds.volumetric_ratio:
        found.append(
            PricingAnomaly(
                code="VOL_OVER_ACTUAL",
                severity="warn",
                message=(
                    f"Disproportionate dimensional weight: volumetric {_fmt(volumetric_weight_kg)}kg "
                    f"is {ratio:.1f}x actual {_fmt(actual_weight_kg)}kg"
                ),
            )
        )

    per_kg = shipping_cost / billed_weight_kg if billed_weight_kg > zero else zero
    if per_kg > thresholds.shipping_per_kg:
        found.append(
            PricingAnomaly(
                code="HIGH_SHIPPING_PER_KG",
                severity="warn",
                message=f"Shipping cost per billed kg seems high: {_fmt(per_kg)}/kg",
            )
        )

    if retail_price < landed_cost * thresholds.thin_margin_ratio:
        found.append(
            PricingAnomaly(
                code="LOW_MARGIN",
                severity="warn",
                message=(
                    f"Margin too thin: retail {_fmt(retail_price)} is within "
                    f"{(thresholds.thin_margin_ratio - 1) * 100:.0f}% of landed cost {_fmt(landed_cost)}"
                ),
            )
        )

    if shipping_cost > retail_price * thresholds.shipping_share_of_retail:
        found.append(
            PricingAnomaly(
                code="SHIPPING_SHARE_HIGH",
                severity="info",
                message=f"Shipping {_fmt(shipping_cost)} is a large fraction of retail {_fmt(retail_price)}",
            )
        )

    if billed_weight_kg > thresholds.heavy_parcel_kg:
        found.append(
            PricingAnomaly(
                code="HEAVY_PARCEL",
                severity="info",
                message=f"Heavy parcel: billed weight {_fmt(billed_weight_kg)}kg; verify service level and tiers",
            )
        )
    return found


def detect_pricing_anomalies(
    *,
    actual_weight_kg: Decimal,
    volumetric_weight_kg: Decimal,
    billed_weight_kg: Decimal,
    shipping_cost: Decimal,
    landed_cost: Decimal,
    retail_price: Decimal,
    thresholds: Optional[AnomalyThresholds] = None,
) -> List[PricingAnomaly]:
    """Return advisory anomalies for a pricing computation. Never raises."""
    try:
        return _checks(
            Decimal(actual_weight_kg),
            Decimal(volumetric_weight_kg),
            Decimal(billed_weight_kg),
            Decimal(shipping_cost),
            Decimal(landed_cost),
            Decimal(retail_price),
            thresholds or AnomalyThresholds(),
        )
    except (ArithmeticError, InvalidOperation, TypeError, ValueError) as exc:
        return [
            PricingAnomaly(
                code="ANOMALY_CHECK_FAILED",
                severity="error",
                message=f"could not evaluate pricing anomalies: {exc}",
            )
        ]


def detect_result_anomalies(
    result: PricingResult,
    thresholds: Optional[AnomalyThresholds] = None,
) -> List[PricingAnomaly]:
    return detect_pricing_anomalies(
        actual_weight_kg=result.actual_weight_kg,
        volumetric_weight_kg=result.volumetric_weight_kg,
        billed_weight_kg=result.billed_weight_kg,
        shipping_cost=result.shipping_cost,
        landed_cost=result.landed_cost,
        retail_price=result.retail_price,
        thresholds=thresholds,
    )
