from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SupplierVariant(BaseModel):
    size: Optional[str] = None
    color: Optional[str] = None
    sku: Optional[str] = None
    unit_cost: Optional[Decimal] = None
    currency: Optional[str] = None
    stock: int = 0
    weight_kg: Optional[Decimal] = None
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None

    @field_validator("size", "color", "sku", "currency")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @field_validator("stock", mode="before")
    @classmethod
    def non_negative_stock(cls, value: object) -> int:
        # Suppliers report -1 for "unknown"; treat it as out of stock.
        if value is None:
            return 0
        return max(int(value), 0)

    @field_validator("unit_cost")
    @classmethod
    def non_negative_cost(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        if value is not None and value < 0:
            raise ValueError("unit_cost must be >= 0")
        return value

    @property
    def label(self) -> str:
        parts = [part for part in (self.size, self.color) if part]
        return " / ".join(parts) if parts else "-"

    @property
    def option_name(self) -> str:
        if self.size and self.color:
            return "Size / Color"
        if self.color:
            return "Color"
        return "Size"


class SupplierProduct(BaseModel):
    external_id: str
    name: str
    images: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    variants: List[SupplierVariant] = Field(default_factory=list)

    @field_validator("external_id", "name")
    @classmethod
    def required_stripped(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("value is required")
        return value.strip()

    @field_validator("images")
    @classmethod
    def drop_blank_images(cls, value: List[str]) -> List[str]:
        return [url.strip() for url in value if url and url.strip()]

    @property
    def total_stock(self) -> int:
        return sum(max(variant.stock, 0) for variant in self.variants)


class LocalProduct(BaseModel):
    product_id: str
    external_id: Optional[str] = None
    slug: str
    title: str
    price: Decimal = Decimal("0")
    stock: int = 0
    images: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    category: Optional[str] = None


class LocalVariant(BaseModel):
    product_id: str
    option_name: str = "Size"
    option_value: str = "-"
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    stock: int = 0


PRODUCT_OPTIONAL_FIELDS = frozenset({"images", "video_url", "category"})
