from decimal import Decimal

from landed_catalog.engine.pricing.pricing import pretty_price, round_to_granularity

ENDINGS = [Decimal("0.95"), Decimal("0.99")]


def test_round_to_nearest_step() -> None:
    assert round_to_granularity(Decimal("76.923"), Decimal("0.05")) == Decimal("76.90")
    assert round_to_granularity(Decimal("10.024"), Decimal("0.05")) == Decimal("10.00")


def test_round_half_goes_away_from_zero() -> None:
    assert round_to_granularity(Decimal("76.925"), Decimal("0.05")) == Decimal("76.95")


def test_zero_step_only_quantizes_to_cents() -> None:
    assert round_to_granularity(Decimal("12.345"), Decimal("0")) == Decimal("12.35")


def test_pretty_price_snaps_to_closest_ending_in_same_floor() -> None:
    assert pretty_price(Decimal("142.30"), ENDINGS) == Decimal("142.95")
    assert pretty_price(Decimal("142.98"), ENDINGS) == Decimal("142.99")


def test_pretty_price_tie_prefers_first_ending() -> None:
    assert pretty_price(Decimal("142.97"), ENDINGS) == Decimal("142.95")


def test_pretty_price_without_endings_keeps_value() -> None:
    assert pretty_price(Decimal("142.30"), []) == Decimal("142.30")
