from decimal import Decimal

import pytest
from pydantic import ValidationError

from landed_catalog.engine.canonical.models import SupplierProduct, SupplierVariant


def test_external_id_is_required() -> None:
    with pytest.raises(ValidationError):
        SupplierProduct(external_id="  ", name="Shirt")


def test_variant_label_combines_size_and_color() -> None:
    assert SupplierVariant(size="M", color="Blue").label == "M / Blue"
    assert SupplierVariant(size="M").label == "M"
    assert SupplierVariant(color="Blue").label == "Blue"
    assert SupplierVariant().label == "-"
    assert SupplierVariant(color="Blue").option_name == "Color"


def test_negative_stock_is_coerced_to_zero() -> None:
    assert SupplierVariant(stock=-1).stock == 0


def test_negative_cost_is_rejected() -> None:
    with pytest.raises(ValidationError):
        SupplierVariant(unit_cost=Decimal("-1"))


def test_total_stock_sums_variants() -> None:
    product = SupplierProduct(
        external_id="CJ-1",
        name="Shirt",
        variants=[SupplierVariant(stock=3), SupplierVariant(stock=2), SupplierVariant(stock=-4)],
    )
    assert product.total_stock == 5


def test_blank_images_are_dropped() -> None:
    product = SupplierProduct(external_id="CJ-1", name="Shirt", images=["a.jpg", " ", ""])
    assert product.images == ["a.jpg"]
