from decimal import Decimal

import pytest

from landed_catalog.engine.pricing.policy import PricingPolicy
from landed_catalog.engine.pricing.pricing import (
    WeightInput,
    apply_floor,
    calculate_retail,
    compute_retail_from_landed,
    convert_to_local,
)


def test_retail_from_landed_applies_margin_rounding_and_ending() -> None:
    # 50 / 0.65 = 76.923 -> 76.90 -> 76.95
    assert compute_retail_from_landed(Decimal("50")) == Decimal("76.95")


def test_retail_overrides_take_precedence_over_policy() -> None:
    price = compute_retail_from_landed(Decimal("50"), margin=Decimal("0.5"), endings=[Decimal("0.49")])
    assert price == Decimal("100.49")


def test_calculator_never_clamps_to_floor() -> None:
    policy = PricingPolicy(floor_price=Decimal("9"))
    price = compute_retail_from_landed(Decimal("1"), policy)
    assert price == Decimal("1.95")
    assert apply_floor(price, policy) == Decimal("9")
    assert apply_floor(Decimal("12.95"), policy) == Decimal("12.95")


def test_retail_is_monotonic_in_landed_cost() -> None:
    previous = Decimal("0")
    landed = Decimal("0")
    while landed <= Decimal("300"):
        retail = compute_retail_from_landed(landed)
        assert retail >= previous, landed
        previous = retail
        landed += Decimal("0.37")


def test_calculate_retail_runs_full_landed_cost_chain() -> None:
    weight = WeightInput(
        actual_kg=Decimal("0.8"),
        length_cm=Decimal("20"),
        width_cm=Decimal("15"),
        height_cm=Decimal("10"),
    )
    result = calculate_retail(Decimal("20"), weight)
    assert result.volumetric_weight_kg == Decimal("0.500")
    assert result.billed_weight_kg == Decimal("0.800")
    assert result.shipping_cost == Decimal("35")
    assert result.landed_cost == Decimal("55.00")
    assert result.retail_price == Decimal("84.95")


def test_calculate_retail_includes_handling_fee() -> None:
    weight = WeightInput(actual_kg=Decimal("0.8"))
    result = calculate_retail(Decimal("20"), weight, handling_fee=Decimal("5"))
    assert result.landed_cost == Decimal("60.00")
    assert result.retail_price == Decimal("92.95")


def test_calculate_retail_applies_flat_vat_component() -> None:
    policy = PricingPolicy(vat_rate=Decimal("0.15"))
    result = calculate_retail(Decimal("20"), WeightInput(actual_kg=Decimal("0.8")), policy)
    assert result.landed_cost == Decimal("63.25")
    assert result.retail_price == Decimal("97.95")


def test_convert_to_local_uses_configured_rates() -> None:
    assert convert_to_local(Decimal("10"), "USD") == Decimal("37.50")
    assert convert_to_local(Decimal("10"), "usd") == Decimal("37.50")
    assert convert_to_local(Decimal("10"), None) == Decimal("10.00")
    assert convert_to_local(Decimal("10"), "SAR") == Decimal("10.00")
    assert convert_to_local(Decimal("10"), "EUR") is None


def test_convert_to_local_with_custom_rate_table() -> None:
    policy = PricingPolicy(fx_rates={"EUR": Decimal("4.10")})
    assert convert_to_local(Decimal("10"), "EUR", policy) == Decimal("41.00")


def test_policy_rate_table_is_read_only() -> None:
    rates = {"eur": 4.1}
    policy = PricingPolicy(fx_rates=rates)
    rates["EUR"] = Decimal("99")

    assert policy.fx_rates == {"EUR": Decimal("4.1")}
    with pytest.raises(TypeError):
        policy.fx_rates["USD"] = Decimal("1")
    assert hash(policy) == hash(PricingPolicy(fx_rates={"EUR": Decimal("4.1")}))
