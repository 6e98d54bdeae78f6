from decimal import Decimal

from landed_catalog.engine.pricing.weight import billed_weight_kg, volumetric_weight_kg


def test_actual_weight_wins_when_heavier() -> None:
    billed = billed_weight_kg(Decimal("1.2"), Decimal("30"), Decimal("20"), Decimal("10"))
    assert billed == Decimal("1.200")


def test_volumetric_weight_wins_when_bulky() -> None:
    billed = billed_weight_kg(Decimal("0.5"), Decimal("40"), Decimal("30"), Decimal("20"))
    assert billed == Decimal("4.000")


def test_custom_divisor() -> None:
    assert volumetric_weight_kg(30, 20, 10, divisor=5000) == Decimal("1.200")


def test_non_positive_divisor_falls_back_to_default() -> None:
    assert volumetric_weight_kg(30, 20, 10, divisor=0) == Decimal("1.000")


def test_negative_dimensions_let_actual_weight_dominate() -> None:
    billed = billed_weight_kg(Decimal("0.5"), Decimal("-10"), Decimal("-20"), Decimal("30"))
    assert billed == Decimal("0.500")


def test_billed_is_max_of_actual_and_volumetric() -> None:
    for actual in (Decimal("0"), Decimal("0.25"), Decimal("1"), Decimal("3.5")):
        for dims in ((10, 10, 10), (25, 20, 3), (60, 40, 30)):
            volumetric = volumetric_weight_kg(*dims)
            assert billed_weight_kg(actual, *dims) == max(actual, volumetric)
