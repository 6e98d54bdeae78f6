from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from landed_catalog.engine.canonical.models import (
    PRODUCT_OPTIONAL_FIELDS,
    LocalVariant,
    SupplierProduct,
    SupplierVariant,
)
from landed_catalog.engine.pricing.anomalies import (
    AnomalyThresholds,
    PricingAnomaly,
    detect_result_anomalies,
)
from landed_catalog.engine.pricing.policy import PricingPolicy
from landed_catalog.engine.pricing.pricing import (
    PricingResult,
    apply_floor,
    compute_retail_from_landed,
    convert_to_local,
    landed_cost_for,
)
from landed_catalog.engine.pricing.shipping import resolve_shipping_cost
from landed_catalog.engine.pricing.weight import billed_weight_kg, volumetric_weight_kg
from landed_catalog.engine.reconcile.slug import DEFAULT_MAX_ATTEMPTS, ensure_unique_slug
from landed_catalog.persistence.catalog_store import CatalogStore
from landed_catalog.util.errors import (
    CatalogNotConfiguredError,
    CatalogStoreError,
    ShippingUnavailableError,
    SlugConflictError,
)
from landed_catalog.util.logging import get_logger, log_event
from landed_catalog.util.metrics import CloudWatchMetrics

ShippingQuoter = Callable[[SupplierProduct, Optional[SupplierVariant], PricingPolicy], Decimal]
ProductInput = Union[SupplierProduct, Mapping[str, Any]]

ZERO = Decimal("0")


@dataclass(frozen=True)
class CatalogCapabilities:
    """Optional product fields and tables the catalog store actually has."""

    optional_fields: FrozenSet[str] = PRODUCT_OPTIONAL_FIELDS
    supports_variants: bool = True

    def supports(self, field_name: str) -> bool:
        return field_name in self.optional_fields


@dataclass(frozen=True)
class ReconcileOptions:
    update_images: bool = False
    update_video: bool = False
    update_price: bool = False
    category: Optional[str] = None
    update_category: bool = False


@dataclass
class ReconcileResult:
    ok: bool
    product_id: Optional[str] = None
    external_id: Optional[str] = None
    updated: List[str] = field(default_factory=list)
    error: Optional[str] = None
    anomalies: List[PricingAnomaly] = field(default_factory=list)
    pricing: Optional[PricingResult] = None
    degraded: List[str] = field(default_factory=list)

    @classmethod
    def success(
        cls,
        product_id: str,
        updated: List[str],
        *,
        external_id: Optional[str] = None,
        anomalies: Optional[List[PricingAnomaly]] = None,
        pricing: Optional[PricingResult] = None,
        degraded: Optional[List[str]] = None,
    ) -> "ReconcileResult":
        return cls(
            ok=True,
            product_id=product_id,
            external_id=external_id,
            updated=updated,
            anomalies=anomalies or [],
            pricing=pricing,
            degraded=degraded or [],
        )

    @classmethod
    def failure(cls, error: str, *, external_id: Optional[str] = None) -> "ReconcileResult":
        return cls(ok=False, error=error, external_id=external_id)


@dataclass
class _CostBasis:
    variant: Optional[SupplierVariant]
    unit_cost: Decimal
    local_costs: List[Optional[Decimal]]


def tier_shipping_quote(
    product: SupplierProduct,
    variant: Optional[SupplierVariant],
    policy: PricingPolicy,
) -> Decimal:
    """Default quoter: billed weight of ``variant`` looked up in the policy tier table."""
    if variant is None or variant.weight_kg is None:
        raise ShippingUnavailableError(f"no weight for product {product.external_id}")
    billed = billed_weight_kg(
        variant.weight_kg,
        variant.length_cm or ZERO,
        variant.width_cm or ZERO,
        variant.height_cm or ZERO,
        policy.volumetric_divisor,
    )
    return resolve_shipping_cost(billed, policy.shipping_tiers)


class CatalogReconciler:
    def __init__(
        self,
        store: Optional[CatalogStore],
        *,
        policy: Optional[PricingPolicy] = None,
        capabilities: Optional[CatalogCapabilities] = None,
        shipping_quoter: Optional[ShippingQuoter] = None,
        thresholds: Optional[AnomalyThresholds] = None,
        metrics: Optional[CloudWatchMetrics] = None,
        max_slug_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.store = store
        self.policy = policy or PricingPolicy.default()
        self.capabilities = capabilities or CatalogCapabilities()
        self.shipping_quoter = shipping_quoter or tier_shipping_quote
        self.thresholds = thresholds or AnomalyThresholds()
        self.metrics = metrics or CloudWatchMetrics.from_env()
        self.max_slug_attempts = max_slug_attempts
        self.clock = clock
        self.logger = get_logger(self.__class__.__name__)

    def reconcile_many(
        self,
        products: Iterable[ProductInput],
        options: Optional[ReconcileOptions] = None,
        *,
        policy: Optional[PricingPolicy] = None,
    ) -> List[ReconcileResult]:
        return [self.reconcile(product, options, policy=policy) for product in products]

    def reconcile(
        self,
        product: ProductInput,
        options: Optional[ReconcileOptions] = None,
        *,
        policy: Optional[PricingPolicy] = None,
    ) -> ReconcileResult:
        options = options or ReconcileOptions()
        policy = policy or self.policy

        external_id = _raw_external_id(product)
        if self.store is None:
            return self._fail(str(CatalogNotConfiguredError("catalog store not configured")), external_id)
        try:
            supplier = product if isinstance(product, SupplierProduct) else SupplierProduct.model_validate(product)
        except ValidationError as exc:
            return self._fail(f"invalid supplier product: {_summarize(exc)}", external_id)

        log_event(self.logger, "reconcile_started", external_id=supplier.external_id)
        try:
            result = self._reconcile(self.store, supplier, options, policy)
        except CatalogStoreError as exc:
            return self._fail(f"catalog write failed: {exc}", supplier.external_id)
        except Exception as exc:
            return self._fail(f"reconcile failed: {type(exc).__name__}: {exc}", supplier.external_id)

        log_event(
            self.logger,
            "reconcile_succeeded",
            external_id=supplier.external_id,
            product_id=result.product_id,
            updated=result.updated,
            degraded=result.degraded,
        )
        self.metrics.record_reconcile_outcome(failed=False)
        return result

    def _fail(self, message: str, external_id: Optional[str]) -> ReconcileResult:
        log_event(self.logger, "reconcile_failed", level=logging.ERROR, external_id=external_id, error=message)
        self.metrics.record_reconcile_outcome(failed=True)
        return ReconcileResult.failure(message, external_id=external_id)

    def _reconcile(
        self,
        store: CatalogStore,
        product: SupplierProduct,
        options: ReconcileOptions,
        policy: PricingPolicy,
    ) -> ReconcileResult:
        degraded: List[str] = []
        basis = self._cost_basis(product, policy, degraded)
        existing = store.find_by_external_id(product.external_id)

        payload: Dict[str, Any] = {
            "title": product.name,
            "stock": product.total_stock,
            "external_id": product.external_id,
        }
        payload.update(self._optional_fields(product, options, inserting=existing is None))

        updated: List[str] = []
        if existing is not None:
            store.update_product(existing.product_id, payload)
            product_id = existing.product_id
        else:
            payload["price"] = basis.unit_cost
            product_id = self._insert(store, product, payload)
        updated.append("product")

        pricing: Optional[PricingResult] = None
        anomalies: List[PricingAnomaly] = []
        if options.update_price:
            pricing = self._price(product, basis, policy, degraded)
            anomalies = detect_result_anomalies(pricing, self.thresholds)
            self._report_anomalies(product.external_id, anomalies)
            store.update_product(product_id, {"price": apply_floor(pricing.retail_price, policy)})
            updated.append("price")

        if self.capabilities.supports_variants:
            rows = [
                LocalVariant(
                    product_id=product_id,
                    option_name=variant.option_name,
                    option_value=variant.label,
                    sku=variant.sku,
                    price=local_cost,
                    stock=variant.stock,
                )
                for variant, local_cost in zip(product.variants, basis.local_costs)
            ]
            store.replace_variants(product_id, rows)
            updated.append("variants")

        return ReconcileResult.success(
            product_id,
            updated,
            external_id=product.external_id,
            anomalies=anomalies,
            pricing=pricing,
            degraded=degraded,
        )

    def _optional_fields(
        self,
        product: SupplierProduct,
        options: ReconcileOptions,
        *,
        inserting: bool,
    ) -> Dict[str, Any]:
        requested: Dict[str, Any] = {}
        if options.update_images:
            requested["images"] = list(product.images)
        if options.update_video:
            requested["video_url"] = product.video_url
        if inserting or options.update_category:
            requested["category"] = options.category
        return {name: value for name, value in requested.items() if self.capabilities.supports(name)}

    def _insert(self, store: CatalogStore, product: SupplierProduct, payload: Dict[str, Any]) -> str:
        payload["slug"] = ensure_unique_slug(
            store, product.name, max_attempts=self.max_slug_attempts, clock=self.clock
        )
        try:
            return store.insert_product(payload)
        except SlugConflictError as exc:
            # A concurrent insert took the slug between lookup and write.
            payload["slug"] = ensure_unique_slug(
                store, product.name, max_attempts=self.max_slug_attempts, clock=self.clock
            )
            log_event(
                self.logger,
                "slug_conflict_retry",
                level=logging.WARNING,
                external_id=product.external_id,
                conflicting_slug=exc.slug,
                slug=payload["slug"],
            )
            return store.insert_product(payload)

    def _cost_basis(self, product: SupplierProduct, policy: PricingPolicy, degraded: List[str]) -> _CostBasis:
        local_costs: List[Optional[Decimal]] = []
        cheapest: Optional[Tuple[Decimal, SupplierVariant]] = None
        for variant in product.variants:
            if variant.unit_cost is None:
                local_costs.append(None)
                continue
            local = convert_to_local(variant.unit_cost, variant.currency, policy)
            if local is None:
                if "fx" not in degraded:
                    degraded.append("fx")
                    log_event(
                        self.logger,
                        "fx_degraded",
                        level=logging.WARNING,
                        external_id=product.external_id,
                        currency=variant.currency,
                        local_currency=policy.local_currency,
                    )
                local = variant.unit_cost
            local_costs.append(local)
            if cheapest is None or local < cheapest[0]:
                cheapest = (local, variant)

        if cheapest is None:
            fallback = product.variants[0] if product.variants else None
            return _CostBasis(variant=fallback, unit_cost=ZERO, local_costs=local_costs)
        return _CostBasis(variant=cheapest[1], unit_cost=cheapest[0], local_costs=local_costs)

    def _price(
        self,
        product: SupplierProduct,
        basis: _CostBasis,
        policy: PricingPolicy,
        degraded: List[str],
    ) -> PricingResult:
        variant = basis.variant
        actual = variant.weight_kg if variant and variant.weight_kg is not None else ZERO
        dims = (
            (variant.length_cm or ZERO, variant.width_cm or ZERO, variant.height_cm or ZERO)
            if variant
            else (ZERO, ZERO, ZERO)
        )
        volumetric = volumetric_weight_kg(*dims, policy.volumetric_divisor)
        billed = billed_weight_kg(actual, *dims, policy.volumetric_divisor)

        try:
            shipping = Decimal(str(self.shipping_quoter(product, variant, policy)))
            if not shipping.is_finite():
                raise ShippingUnavailableError(f"non-finite shipping quote: {shipping}")
        except Exception as exc:
            degraded.append("shipping")
            log_event(
                self.logger,
                "shipping_degraded",
                level=logging.WARNING,
                external_id=product.external_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            shipping = ZERO

        landed = landed_cost_for(basis.unit_cost, shipping, policy)
        retail = compute_retail_from_landed(landed, policy)
        return PricingResult(
            actual_weight_kg=actual,
            volumetric_weight_kg=volumetric,
            billed_weight_kg=billed,
            shipping_cost=shipping,
            landed_cost=landed,
            retail_price=retail,
        )

    def _report_anomalies(self, external_id: str, anomalies: List[PricingAnomaly]) -> None:
        for anomaly in anomalies:
            log_event(
                self.logger,
                "pricing_anomaly",
                level=logging.WARNING if anomaly.severity != "info" else logging.INFO,
                external_id=external_id,
                code=anomaly.code,
                severity=anomaly.severity,
                message=anomaly.message,
            )
            self.metrics.record_pricing_anomaly(code=anomaly.code, severity=anomaly.severity)


def _raw_external_id(product: ProductInput) -> Optional[str]:
    if isinstance(product, SupplierProduct):
        return product.external_id
    if isinstance(product, Mapping):
        value = product.get("external_id")
        return str(value) if value is not None else None
    return None


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)
