from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional, Protocol

from landed_catalog.engine.canonical.models import LocalProduct, LocalVariant
from landed_catalog.util.errors import CatalogStoreError, SlugConflictError


class CatalogStore(Protocol):
    def find_by_external_id(self, external_id: str) -> Optional[LocalProduct]: ...

    def slug_exists(self, slug: str) -> bool: ...

    def insert_product(self, payload: Dict[str, Any]) -> str: ...

    def update_product(self, product_id: str, payload: Dict[str, Any]) -> None: ...

    def replace_variants(self, product_id: str, variants: List[LocalVariant]) -> None: ...


class InMemoryCatalogStore:
    """Dict-backed catalog store with the same contract as ``DynamoCatalog``."""

    def __init__(self) -> None:
        self._products: Dict[str, LocalProduct] = {}
        self._variants: Dict[str, List[LocalVariant]] = {}
        self._ids = itertools.count(1)

    def find_by_external_id(self, external_id: str) -> Optional[LocalProduct]:
        for product in self._products.values():
            if product.external_id == external_id:
                return product
        return None

    def slug_exists(self, slug: str) -> bool:
        return any(product.slug == slug for product in self._products.values())

    def insert_product(self, payload: Dict[str, Any]) -> str:
        slug = payload.get("slug")
        if not slug:
            raise CatalogStoreError("slug is required")
        if self.slug_exists(slug):
            raise SlugConflictError(slug)
        product_id = str(next(self._ids))
        self._products[product_id] = LocalProduct(product_id=product_id, **payload)
        return product_id

    def update_product(self, product_id: str, payload: Dict[str, Any]) -> None:
        current = self._products.get(product_id)
        if current is None:
            raise CatalogStoreError(f"product not found: {product_id}")
        new_slug = payload.get("slug")
        if new_slug and new_slug != current.slug and self.slug_exists(new_slug):
            raise SlugConflictError(new_slug)
        self._products[product_id] = current.model_copy(update=payload)

    def replace_variants(self, product_id: str, variants: List[LocalVariant]) -> None:
        if product_id not in self._products:
            raise CatalogStoreError(f"product not found: {product_id}")
        self._variants[product_id] = [variant.model_copy() for variant in variants]

    def get_product(self, product_id: str) -> Optional[LocalProduct]:
        return self._products.get(product_id)

    def list_products(self) -> List[LocalProduct]:
        return list(self._products.values())

    def list_variants(self, product_id: str) -> List[LocalVariant]:
        return list(self._variants.get(product_id, []))
