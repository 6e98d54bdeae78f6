from decimal import Decimal

import pytest

from landed_catalog.engine.pricing.packaging import PackagingOption, recommend_packaging


def test_light_small_product_gets_poly_mailer() -> None:
    recommendation = recommend_packaging(Decimal("0.2"), Decimal("10"), Decimal("10"), Decimal("2"))
    assert recommendation.option.code == "POLY_MAILER"
    assert recommendation.billed_weight_kg == Decimal("0.250")


def test_envelope_grows_to_fit_larger_product() -> None:
    recommendation = recommend_packaging(Decimal("0.5"), Decimal("32"), Decimal("21"), Decimal("10"))
    # 32 x 21 x 10 / 6000
    assert recommendation.option.code == "POLY_MAILER"
    assert recommendation.billed_weight_kg == Decimal("1.120")


def test_ties_prefer_first_declared_option() -> None:
    recommendation = recommend_packaging(Decimal("5"), Decimal("5"), Decimal("5"), Decimal("5"))
    assert recommendation.option.code == "POLY_MAILER"
    assert recommendation.billed_weight_kg == Decimal("5.000")


def test_strictly_better_option_is_chosen() -> None:
    options = [
        PackagingOption("BIG_BOX", Decimal("50"), Decimal("50"), Decimal("50")),
        PackagingOption("TINY_BAG", Decimal("10"), Decimal("10"), Decimal("10")),
    ]
    recommendation = recommend_packaging(Decimal("0.1"), Decimal("5"), Decimal("5"), Decimal("5"), options=options)
    assert recommendation.option.code == "TINY_BAG"
    assert recommendation.billed_weight_kg == Decimal("0.167")


def test_requires_at_least_one_option() -> None:
    with pytest.raises(ValueError):
        recommend_packaging(Decimal("1"), Decimal("1"), Decimal("1"), Decimal("1"), options=[])
