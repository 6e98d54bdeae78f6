from decimal import Decimal

from landed_catalog.engine.pricing.anomalies import (
    AnomalyThresholds,
    detect_pricing_anomalies,
    detect_result_anomalies,
)
from landed_catalog.engine.pricing.pricing import PricingResult


def _detect(**overrides):
    values = {
        "actual_weight_kg": Decimal("1"),
        "volumetric_weight_kg": Decimal("0.5"),
        "billed_weight_kg": Decimal("1"),
        "shipping_cost": Decimal("10"),
        "landed_cost": Decimal("50"),
        "retail_price": Decimal("100"),
    }
    values.update(overrides)
    thresholds = values.pop("thresholds", None)
    return detect_pricing_anomalies(**values, thresholds=thresholds)


def _codes(anomalies) -> list[str]:
    return [anomaly.code for anomaly in anomalies]


def test_healthy_pricing_has_no_anomalies() -> None:
    assert _detect() == []


def test_thin_margin_is_flagged() -> None:
    anomalies = _detect(landed_cost=Decimal("100"), retail_price=Decimal("104"))
    assert "LOW_MARGIN" in _codes(anomalies)
    low_margin = next(anomaly for anomaly in anomalies if anomaly.code == "LOW_MARGIN")
    assert low_margin.severity == "warn"
    assert "too thin" in low_margin.message


def test_landed_at_half_of_retail_is_not_thin() -> None:
    assert "LOW_MARGIN" not in _codes(_detect(landed_cost=Decimal("100"), retail_price=Decimal("200")))


def test_disproportionate_volumetric_weight() -> None:
    anomalies = _detect(volumetric_weight_kg=Decimal("3"), billed_weight_kg=Decimal("3"))
    assert "VOL_OVER_ACTUAL" in _codes(anomalies)


def test_volumetric_ratio_ignored_without_actual_weight() -> None:
    assert "VOL_OVER_ACTUAL" not in _codes(_detect(actual_weight_kg=Decimal("0"), volumetric_weight_kg=Decimal("3")))


def test_high_shipping_per_kg() -> None:
    anomalies = _detect(shipping_cost=Decimal("100"), retail_price=Decimal("400"), landed_cost=Decimal("150"))
    assert _codes(anomalies) == ["HIGH_SHIPPING_PER_KG"]


def test_shipping_share_of_retail_is_info() -> None:
    anomalies = _detect(shipping_cost=Decimal("70"), billed_weight_kg=Decimal("2"))
    assert _codes(anomalies) == ["SHIPPING_SHARE_HIGH"]
    assert anomalies[0].severity == "info"


def test_heavy_parcel_is_info() -> None:
    assert _codes(_detect(billed_weight_kg=Decimal("5"))) == []
    anomalies = _detect(billed_weight_kg=Decimal("5.5"), actual_weight_kg=Decimal("5.5"))
    assert _codes(anomalies) == ["HEAVY_PARCEL"]
    assert anomalies[0].severity == "info"


def test_thresholds_are_tunable() -> None:
    thresholds = AnomalyThresholds(heavy_parcel_kg=Decimal("2"))
    anomalies = _detect(billed_weight_kg=Decimal("3"), actual_weight_kg=Decimal("3"), thresholds=thresholds)
    assert _codes(anomalies) == ["HEAVY_PARCEL"]


def test_detector_never_raises_on_bad_input() -> None:
    anomalies = _detect(retail_price=Decimal("NaN"))
    assert _codes(anomalies) == ["ANOMALY_CHECK_FAILED"]
    assert anomalies[0].severity == "error"


def test_result_helper_uses_pricing_result_fields() -> None:
    result = PricingResult(
        actual_weight_kg=Decimal("0.2"),
        volumetric_weight_kg=Decimal("12"),
        billed_weight_kg=Decimal("12"),
        shipping_cost=Decimal("232.50"),
        landed_cost=Decimal("250"),
        retail_price=Decimal("384.95"),
    )
    codes = _codes(detect_result_anomalies(result))
    assert codes == ["VOL_OVER_ACTUAL", "SHIPPING_SHARE_HIGH", "HEAVY_PARCEL"]
